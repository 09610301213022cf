"""Shared data types for the Eidos visualization engine.

Everything the classifier, mapping resolver, catalogue and geometry
generators pass between each other lives here. Plotly traces and layouts
stay plain dicts (the frontend consumes them as JSON), everything else is
a small frozen dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Sentinel role values: row position and constant 1
INDEX = "index"
COUNT = "count"

MAX_CATEGORIES = 20


class ColumnType(str, Enum):
    """Semantic type inferred for a column."""

    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    CATEGORICAL = "categorical"
    MIXED = "mixed"


@dataclass(frozen=True)
class Dataset:
    """Uploaded rows plus the ordered list of usable column names."""

    rows: tuple[dict[str, Any], ...]
    columns: tuple[str, ...]

    @classmethod
    def from_records(cls, rows: list[dict[str, Any]] | None,
                     columns: list[str] | None = None) -> Dataset:
        rows = list(rows or [])
        if columns is None:
            columns = list(rows[0].keys()) if rows else []
        return cls(rows=tuple(rows), columns=tuple(columns))

    def __len__(self) -> int:
        return len(self.rows)

    def column_values(self, column: str) -> list[Any]:
        return [row.get(column) for row in self.rows]


@dataclass(frozen=True)
class ColumnClassification:
    """Inferred type of one column plus the statistics derived from it.

    ``minimum``/``maximum``/``values`` are set for numeric and temporal
    columns (temporal values are epoch milliseconds) and for mixed columns
    that still contain numbers. ``categories`` holds at most
    ``MAX_CATEGORIES`` distinct raw values, in first-seen order.
    """

    kind: ColumnType
    minimum: float | None = None
    maximum: float | None = None
    values: tuple[float, ...] = ()
    categories: tuple[Any, ...] = ()
    non_empty: int = 0
    unique: int = 0
    numeric_ratio: float = 0.0
    temporal_ratio: float = 0.0
    unique_ratio: float = 0.0

    @property
    def has_range(self) -> bool:
        return self.minimum is not None and self.maximum is not None

    @property
    def span(self) -> float:
        if not self.has_range:
            return 0.0
        return self.maximum - self.minimum

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.kind.value,
            "non_empty": self.non_empty,
            "unique": self.unique,
        }
        if self.has_range:
            out["min"] = self.minimum
            out["max"] = self.maximum
        if self.categories:
            out["categories"] = list(self.categories)
        return out


@dataclass(frozen=True)
class DataMapping:
    """Assignment of visual roles to column names or sentinels."""

    x_axis: str
    y_axis: str
    z_axis: str
    color_by: str
    size_by: str
    category_by: str | None = None

    def role(self, name: str) -> str | None:
        return getattr(self, name)

    def to_dict(self) -> dict[str, str]:
        out = {
            "xAxis": self.x_axis,
            "yAxis": self.y_axis,
            "zAxis": self.z_axis,
            "colorBy": self.color_by,
            "sizeBy": self.size_by,
        }
        if self.category_by is not None:
            out["categoryBy"] = self.category_by
        return out


@dataclass(frozen=True)
class ColumnRequirement:
    """One ``specific_columns`` entry of a model's requirements."""

    type: ColumnType
    count: int
    usage: str = ""


@dataclass(frozen=True)
class ModelRequirements:
    min_numeric_columns: int | None = None
    min_temporal_columns: int | None = None
    min_categorical_columns: int | None = None
    specific_columns: tuple[ColumnRequirement, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.min_numeric_columns is not None:
            out["minNumericColumns"] = self.min_numeric_columns
        if self.min_temporal_columns is not None:
            out["minTemporalColumns"] = self.min_temporal_columns
        if self.min_categorical_columns is not None:
            out["minCategoricalColumns"] = self.min_categorical_columns
        if self.specific_columns:
            out["specificColumns"] = [
                {"type": r.type.value, "count": r.count, "usage": r.usage}
                for r in self.specific_columns
            ]
        return out


@dataclass(frozen=True)
class VisualizationModel:
    """Static catalogue entry. Compatibility is never stored here."""

    id: str
    name: str
    description: str
    category: str
    tags: tuple[str, ...]
    complexity: str
    prompt: str
    requirements: ModelRequirements = field(default_factory=ModelRequirements)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "complexity": self.complexity,
            "prompt": self.prompt,
            "requirements": self.requirements.to_dict(),
        }


@dataclass
class GeneratedGeometry:
    """Plotly traces and layout produced by one generator run."""

    data: list[dict[str, Any]]
    layout: dict[str, Any]
    title: str = ""

    @property
    def point_count(self) -> int:
        return sum(len(trace.get("x") or []) for trace in self.data)

    def to_plotly(self) -> dict[str, Any]:
        return {"data": self.data, "layout": self.layout}
