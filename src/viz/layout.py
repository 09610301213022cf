"""Plotly layout builder shared by every geometry generator."""

from __future__ import annotations

from typing import Any

from src.viz.classifier import columns_of_type
from src.viz.types import ColumnClassification, ColumnType, DataMapping, Dataset

ACCENT = "#ea580c"

_BASE_LAYOUT: dict[str, Any] = {
    "paper_bgcolor": "rgba(0,0,0,0)",
    "font": {"family": "Inter, system-ui, sans-serif"},
    "margin": {"l": 0, "r": 0, "t": 60, "b": 0},
}


def _axis(column: str, classifications: dict[str, ColumnClassification]) -> dict[str, Any]:
    c = classifications.get(column)
    text = f"{column} ({c.kind.value})" if c is not None else column
    return {
        "title": {"text": text, "font": {"size": 12, "color": ACCENT}},
        "showbackground": True,
        "backgroundcolor": "rgba(240, 240, 240, 0.8)",
    }


def mapping_annotation(title: str, dataset: Dataset, mapping: DataMapping,
                       classifications: dict[str, ColumnClassification]) -> dict[str, Any]:
    """Paper-anchored note listing the model, data shape and role mapping."""
    n_num = len(columns_of_type(classifications, ColumnType.NUMERIC))
    n_cat = len(columns_of_type(classifications, ColumnType.CATEGORICAL))
    data_info = f"{len(dataset)} rows • {n_num} num. • {n_cat} cat."

    lines = [
        f"<b>Model:</b> {title}",
        f"<b>Data:</b> {data_info}",
        "<b>Mapping:</b>",
        f"• X: {mapping.x_axis}",
        f"• Y: {mapping.y_axis}",
        f"• Z: {mapping.z_axis}",
        f"• Color: {mapping.color_by}",
        f"• Size: {mapping.size_by}",
    ]
    if mapping.category_by:
        lines.append(f"• Category: {mapping.category_by}")

    return {
        "text": "<br>".join(lines),
        "showarrow": False,
        "xref": "paper", "yref": "paper",
        "x": -0.15, "y": 0.95,
        "xanchor": "left", "yanchor": "top",
        "bgcolor": "rgba(255, 255, 255, 0.8)",
        "bordercolor": "rgba(234, 88, 12, 0.3)",
        "borderwidth": 1,
        "font": {"size": 8, "color": "#666"},
    }


def create_layout(title: str, dataset: Dataset, mapping: DataMapping,
                  classifications: dict[str, ColumnClassification],
                  camera: dict[str, Any] | None = None,
                  scene_bgcolor: str | None = None) -> dict[str, Any]:
    """Build the 3D scene layout: axis titles, camera, title and annotation."""
    scene: dict[str, Any] = {
        "xaxis": _axis(mapping.x_axis, classifications),
        "yaxis": _axis(mapping.y_axis, classifications),
        "zaxis": _axis(mapping.z_axis, classifications),
        "camera": camera or {"eye": {"x": 1.25, "y": 1.25, "z": 1.25}},
    }
    if scene_bgcolor:
        scene["bgcolor"] = scene_bgcolor

    return {
        **_BASE_LAYOUT,
        "title": {"text": title, "font": {"size": 18, "color": ACCENT}},
        "scene": scene,
        "annotations": [mapping_annotation(title, dataset, mapping, classifications)],
    }
