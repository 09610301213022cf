"""Mapping resolver: assigns visual roles to columns.

The resolver never raises. Datasets with no numeric or temporal columns
still get a usable mapping built from the ``index``/``count`` sentinels.
"""

from __future__ import annotations

from typing import Any

from src.viz.classifier import columns_of_type, parse_number, parse_timestamps
from src.viz.types import (
    COUNT,
    INDEX,
    ColumnClassification,
    ColumnType,
    DataMapping,
    Dataset,
)

ROLES = ("x_axis", "y_axis", "z_axis", "color_by", "size_by", "category_by")


def resolve_mapping(classifications: dict[str, ColumnClassification]) -> DataMapping:
    """Pick default x/y/z/color/size/category roles from column types."""
    numeric = columns_of_type(classifications, ColumnType.NUMERIC)
    temporal = columns_of_type(classifications, ColumnType.TEMPORAL)
    categorical = columns_of_type(classifications, ColumnType.CATEGORICAL)

    ordered = numeric + temporal
    category = categorical[0] if categorical else None

    if len(ordered) >= 3:
        return DataMapping(
            x_axis=ordered[0],
            y_axis=ordered[1],
            z_axis=ordered[2],
            color_by=ordered[0],
            size_by=ordered[3] if len(ordered) > 3 else ordered[0],
            category_by=category,
        )
    if len(ordered) == 2:
        return DataMapping(
            x_axis=ordered[0],
            y_axis=ordered[1],
            z_axis=ordered[0],
            color_by=ordered[1],
            size_by=ordered[0],
            category_by=category,
        )
    if len(ordered) == 1:
        col = ordered[0]
        return DataMapping(
            x_axis=col, y_axis=INDEX, z_axis=col, color_by=col, size_by=col,
            category_by=category,
        )
    return DataMapping(
        x_axis=INDEX,
        y_axis=category or INDEX,
        z_axis=COUNT,
        color_by=category or INDEX,
        size_by=COUNT,
        category_by=category,
    )


def _range_values(raw: list[Any], classification: ColumnClassification) -> list[float]:
    if classification.kind is ColumnType.TEMPORAL:
        parsed = parse_timestamps(raw)
    else:
        parsed = [parse_number(v) for v in raw]
    return [v if v is not None else classification.minimum for v in parsed]


def extract_role_values(
    dataset: Dataset,
    mapping: DataMapping,
    classifications: dict[str, ColumnClassification],
    role: str,
) -> list[float]:
    """Numeric value per row for one role of the mapping.

    ``index`` gives the row position, ``count`` gives 1. A column with a
    range gives its parsed value (the column minimum when a cell does not
    parse). A categorical column gives the position of the raw value in
    its category list, 0 when the value is not listed. Anything else falls
    back to the row position.
    """
    column = mapping.role(role)
    n = len(dataset)

    if column == INDEX:
        return [float(i) for i in range(n)]
    if column == COUNT:
        return [1.0] * n

    classification = classifications.get(column) if column else None
    if classification is not None and column in dataset.columns:
        if classification.has_range:
            return _range_values(dataset.column_values(column), classification)
        if classification.categories:
            lookup: dict[Any, int] = {}
            for pos, cat in enumerate(classification.categories):
                lookup.setdefault(cat, pos)
            return [float(_category_index(lookup, row.get(column))) for row in dataset.rows]

    return [float(i) for i in range(n)]


def _category_index(lookup: dict[Any, int], value: Any) -> int:
    try:
        return lookup.get(value, 0)
    except TypeError:
        return 0
