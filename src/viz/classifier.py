"""Column type classifier: infers numeric / temporal / categorical / mixed.

Works on raw cell values as they come out of the CSV loader (mostly
strings). Empty cells never take part in the ratios, so a sparse numeric
column still classifies as numeric.

Decision order (temporal is checked before numeric):
    temporal_ratio > 0.7                      -> temporal
    numeric_ratio  > 0.7                      -> numeric
    unique_ratio   < 0.3 or distinct <= 20    -> categorical
    otherwise                                 -> mixed
"""

from __future__ import annotations

import math
import numbers
from typing import Any, Iterable, Sequence

import pandas as pd
from loguru import logger
from pandas.tseries.api import guess_datetime_format

from src.viz.types import MAX_CATEGORIES, ColumnClassification, ColumnType, Dataset

TYPE_THRESHOLD = 0.7
UNIQUE_RATIO_THRESHOLD = 0.3

# Bare numbers only count as dates when they look like epoch milliseconds
# (1e11 ms is early 1973), otherwise every small integer column would parse
# as a year.
_EPOCH_MS_FLOOR = 1e11
_EPOCH_MS_CEIL = 1e13
_MIN_YEAR = 1900
_MAX_YEAR = 2100


def is_empty(value: Any) -> bool:
    """True for None, NaN and blank strings."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def parse_number(value: Any) -> float | None:
    """Parse a cell as a finite float. Returns None when it is not one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        # float() accepts "1_000"; CSV numbers never use underscores
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _keep_in_window(out: list[float | None], positions: list[int], stamps: pd.Series) -> None:
    for pos, stamp in zip(positions, stamps):
        if not pd.isna(stamp) and _MIN_YEAR < stamp.year < _MAX_YEAR:
            out[pos] = stamp.value / 1e6


def parse_timestamps(values: Sequence[Any]) -> list[float | None]:
    """Parse a column of cells as calendar dates, in epoch milliseconds.

    The result is aligned with ``values``; cells that are not dates give
    None. Only dates with 1900 < year < 2100 are accepted. Text is parsed
    in bulk: ISO 8601 first, then the remaining cells with the format
    guessed from the first of them.
    """
    out: list[float | None] = [None] * len(values)
    epoch_pos: list[int] = []
    epoch_ms: list[float] = []
    text_pos: list[int] = []
    texts: list[str] = []
    for pos, value in enumerate(values):
        if is_empty(value) or isinstance(value, bool):
            continue
        number = parse_number(value)
        if number is not None:
            if number.is_integer() and _EPOCH_MS_FLOOR <= abs(number) < _EPOCH_MS_CEIL:
                epoch_pos.append(pos)
                epoch_ms.append(number)
        elif isinstance(value, str):
            text_pos.append(pos)
            texts.append(value.strip())

    if epoch_pos:
        stamps = pd.to_datetime(pd.Series(epoch_ms, dtype=float), unit="ms", utc=True,
                                errors="coerce")
        _keep_in_window(out, epoch_pos, stamps)

    if text_pos:
        series = pd.Series(texts, dtype=object)
        stamps = pd.to_datetime(series, utc=True, errors="coerce", format="ISO8601")
        missing = stamps.isna()
        if missing.any():
            rest = series[missing]
            fmt = guess_datetime_format(rest.iloc[0])
            if fmt is not None:
                stamps = stamps.fillna(pd.to_datetime(rest, utc=True, errors="coerce", format=fmt))
        _keep_in_window(out, text_pos, stamps)
    return out


def parse_timestamp(value: Any) -> float | None:
    """Single-cell :func:`parse_timestamps`."""
    return parse_timestamps([value])[0]


def _distinct(values: list[Any]) -> list[Any]:
    """Distinct values in first-seen order."""
    try:
        return list(dict.fromkeys(values))
    except TypeError:
        seen: dict[str, Any] = {}
        for v in values:
            seen.setdefault(repr(v), v)
        return list(seen.values())


def classify(values: Iterable[Any]) -> ColumnClassification:
    """Classify one column from its raw values."""
    present = [v for v in values if not is_empty(v)]
    if not present:
        return ColumnClassification(kind=ColumnType.MIXED)

    total = len(present)
    numbers_ = [n for n in (parse_number(v) for v in present) if n is not None]
    stamps = [t for t in parse_timestamps(present) if t is not None]
    distinct = _distinct(present)

    numeric_ratio = len(numbers_) / total
    temporal_ratio = len(stamps) / total
    unique_ratio = len(distinct) / total
    stats = {
        "non_empty": total,
        "unique": len(distinct),
        "numeric_ratio": numeric_ratio,
        "temporal_ratio": temporal_ratio,
        "unique_ratio": unique_ratio,
    }

    if temporal_ratio > TYPE_THRESHOLD:
        return ColumnClassification(
            kind=ColumnType.TEMPORAL, minimum=min(stamps), maximum=max(stamps),
            values=tuple(stamps), **stats,
        )
    if numeric_ratio > TYPE_THRESHOLD:
        return ColumnClassification(
            kind=ColumnType.NUMERIC, minimum=min(numbers_), maximum=max(numbers_),
            values=tuple(numbers_), **stats,
        )
    if unique_ratio < UNIQUE_RATIO_THRESHOLD or len(distinct) <= MAX_CATEGORIES:
        return ColumnClassification(
            kind=ColumnType.CATEGORICAL,
            categories=tuple(distinct[:MAX_CATEGORIES]), **stats,
        )
    if numbers_:
        return ColumnClassification(
            kind=ColumnType.MIXED, minimum=min(numbers_), maximum=max(numbers_),
            values=tuple(numbers_), **stats,
        )
    return ColumnClassification(kind=ColumnType.MIXED, **stats)


def classify_columns(dataset: Dataset) -> dict[str, ColumnClassification]:
    """Classify every column of the dataset, keeping column order."""
    out = {col: classify(dataset.column_values(col)) for col in dataset.columns}
    logger.debug("Classified {} columns: {}", len(out),
                 ", ".join(f"{col}={c.kind.value}" for col, c in out.items()))
    return out


def columns_of_type(classifications: dict[str, ColumnClassification],
                    kind: ColumnType) -> list[str]:
    return [col for col, c in classifications.items() if c.kind is kind]


def type_counts(classifications: dict[str, ColumnClassification]) -> dict[ColumnType, int]:
    counts = {kind: 0 for kind in ColumnType}
    for c in classifications.values():
        counts[c.kind] += 1
    return counts
