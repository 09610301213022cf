"""3D visualization tools.

LangChain tool wrappers over the visualization engine. All tool logic is
here (single source of truth); the MCP server imports from this module.
Tools return ``{"error": ...}`` instead of raising so an agent can recover.
"""

from __future__ import annotations

import json
from typing import Any

from langchain_core.tools import tool

from src.data_pipeline.csv_loader import UploadError, load_csv, profile_dataset
from src.viz.catalogue import compatible_models
from src.viz.classifier import classify_columns
from src.viz.fallback import build_fallback
from src.viz.generators import render_visualization
from src.viz.types import Dataset


def _parse(data_json: str) -> list[dict]:
    if isinstance(data_json, list):
        return data_json
    try:
        rows = json.loads(data_json)
    except (json.JSONDecodeError, TypeError):
        return []
    return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []


def _columns(columns: str) -> list[str] | None:
    cols = [c.strip() for c in (columns or "").split(",") if c.strip()]
    return cols or None


@tool
def profile_csv(path: str) -> dict[str, Any]:
    """Load a CSV file and return its column type profile.

    Args:
        path: Local path to the CSV file.

    Returns:
        Dict with rows, columns, per-column types and a few sample rows.
    """
    try:
        dataset = load_csv(path)
    except UploadError as e:
        return {"error": str(e)}
    return profile_dataset(dataset)


@tool
def list_compatible_models(data_json: str, columns: str = "") -> dict[str, Any]:
    """List the 3D visualization models whose column requirements the data meets.

    Args:
        data_json: JSON array of row objects.
        columns: Optional comma-separated column order (defaults to first row keys).
    """
    rows = _parse(data_json)
    if not rows:
        return {"error": "No data rows provided."}
    dataset = Dataset.from_records(rows, _columns(columns))
    models = compatible_models(classify_columns(dataset))
    return {
        "total": len(models),
        "models": [{"id": m.id, "name": m.name, "category": m.category} for m in models],
    }


@tool
def render_visualization_tool(model_id: str, data_json: str, columns: str = "") -> dict[str, Any]:
    """Compute the Plotly 3D figure for one catalogue model.

    Args:
        model_id: Catalogue id, e.g. "scatter3d", "galaxy_3d", "timeline_3d".
        data_json: JSON array of row objects.
        columns: Optional comma-separated column order.

    Returns:
        Dict with type, config {data, layout}, title, description and mapping.
    """
    rows = _parse(data_json)
    if not rows:
        return {"error": "No data rows provided."}
    return render_visualization(model_id, Dataset.from_records(rows, _columns(columns)))


@tool
def build_fallback_visualization(requested_type: str, data_json: str = "[]",
                                 columns: str = "") -> dict[str, Any]:
    """Build a deterministic local 3D config (scatter3d, surface3d, mesh3d or default).

    Never fails: empty or malformed data produces a synthetic preview.
    """
    return build_fallback(requested_type, _parse(data_json), _columns(columns))
