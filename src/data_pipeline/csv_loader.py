"""CSV upload boundary: parse a delimited file into a Dataset and profile it.

Cells are kept as raw strings (no NA coercion); typing happens later in
the column classifier. Header cells that are blank are dropped, as are rows
where every kept column is blank.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import IO, Any, Union

import pandas as pd
from loguru import logger

from src.viz.classifier import classify_columns, type_counts
from src.viz.types import ColumnClassification, Dataset

CsvSource = Union[str, Path, bytes, IO[bytes], IO[str]]

SAMPLE_ROWS = 5


class UploadError(ValueError):
    """The uploaded file cannot be turned into a dataset."""


def _read_raw(source: CsvSource) -> pd.DataFrame:
    if isinstance(source, bytes):
        source = io.BytesIO(source)
    try:
        return pd.read_csv(
            source,
            header=None,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError as e:
        raise UploadError("The CSV file is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise UploadError(f"Could not read file: {e}") from e
    except FileNotFoundError as e:
        raise UploadError(f"File not found: {source}") from e


def load_csv(source: CsvSource) -> Dataset:
    """Parse CSV content (path, bytes or file object) into a Dataset.

    Raises:
        UploadError: empty file, no usable header, or unreadable content.
    """
    raw = _read_raw(source)
    if len(raw) < 2:
        raise UploadError("The CSV file is empty")

    header = list(raw.iloc[0])
    first_pos: dict[str, int] = {}
    for pos, name in enumerate(header):
        if isinstance(name, str) and name.strip():
            first_pos.setdefault(name, pos)
    if not first_pos:
        raise UploadError("No valid columns found")

    keep = [(pos, name) for name, pos in first_pos.items()]
    columns = list(first_pos)
    rows: list[dict[str, Any]] = []
    for values in raw.iloc[1:].itertuples(index=False, name=None):
        # short rows come back padded with NaN
        row = {name: values[pos] if isinstance(values[pos], str) else "" for pos, name in keep}
        if any(v and v.strip() for v in row.values()):
            rows.append(row)

    logger.info("Loaded CSV: {} rows x {} columns ({} blank rows dropped)",
                len(rows), len(columns), len(raw) - 1 - len(rows))
    return Dataset.from_records(rows, columns)


def profile_dataset(dataset: Dataset,
                    classifications: dict[str, ColumnClassification] | None = None) -> dict[str, Any]:
    """Shape, per-column type summary and a few sample rows.

    Pass ``classifications`` when the caller already has them.
    """
    if classifications is None:
        classifications = classify_columns(dataset)
    counts = type_counts(classifications)
    return {
        "rows": len(dataset),
        "columns": list(dataset.columns),
        "column_types": {col: c.to_dict() for col, c in classifications.items()},
        "type_counts": {kind.value: n for kind, n in counts.items()},
        "sample": list(dataset.rows[:SAMPLE_ROWS]),
    }
