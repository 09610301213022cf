#!/usr/bin/env python3
"""Eidos CLI - render a CSV file as a Plotly 3D figure.

Usage:
    python run_viz.py data.csv                      # profile + compatible models
    python run_viz.py data.csv --model galaxy_3d --out fig.json
    python run_viz.py --list-models
"""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

load_dotenv()

from src.data_pipeline.csv_loader import UploadError, load_csv, profile_dataset  # noqa: E402
from src.logging_setup import setup_logging  # noqa: E402
from src.viz.catalogue import CATALOGUE, compatible_models, get_model  # noqa: E402
from src.viz.classifier import classify_columns  # noqa: E402
from src.viz.generators import render_visualization  # noqa: E402


def print_catalogue() -> None:
    category = None
    for m in CATALOGUE:
        if m.category != category:
            category = m.category
            print(f"\n{category}")
        print(f"  {m.id:<22} {m.name:<22} [{m.complexity}] {m.description}")


def print_profile(profile: dict) -> None:
    print(f"\n{profile['rows']} rows x {len(profile['columns'])} columns")
    for col, info in profile["column_types"].items():
        extra = ""
        if "min" in info:
            extra = f"  range [{info['min']:g}, {info['max']:g}]"
        elif "categories" in info:
            extra = f"  {len(info['categories'])} categories"
        print(f"  {col:<24} {info['type']:<12}{extra}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render a CSV file as a 3D Plotly figure.")
    parser.add_argument("csv", nargs="?", help="Path to the CSV file")
    parser.add_argument("--model", default="scatter3d", help="Catalogue model id")
    parser.add_argument("--out", help="Write the Plotly JSON figure to this file")
    parser.add_argument("--list-models", action="store_true", help="Print the catalogue and exit")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    if args.list_models:
        print_catalogue()
        return 0
    if not args.csv:
        parser.error("a CSV file is required unless --list-models is given")

    try:
        dataset = load_csv(args.csv)
    except UploadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    classifications = classify_columns(dataset)
    print_profile(profile_dataset(dataset, classifications))
    compatible = compatible_models(classifications)
    print(f"\nCompatible models ({len(compatible)}):")
    print("  " + ", ".join(m.id for m in compatible))

    if get_model(args.model) is None:
        print(f"\nUnknown model '{args.model}', rendering the classic scatter instead.")
    result = render_visualization(args.model, dataset)
    print(f"\n{result['title']}: {result['description']}")

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(result["config"], f, indent=2)
        print(f"Figure written to {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
