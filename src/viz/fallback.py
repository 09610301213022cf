"""Deterministic visualization configs used when AI generation is unavailable.

``build_fallback`` never raises. Cells that do not parse and empty datasets
are filled with coordinates from a seeded generator, so the same input
always produces the same figure.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from loguru import logger

from src.viz.classifier import parse_number
from src.viz.generators import FALLBACK_SEED

ACCENT = "#ea580c"
SYNTHETIC_POINTS = 20
SURFACE_MAX = 20
SURFACE_SYNTHETIC = 10

_COLORBAR_STYLE: dict[str, Any] = {
    "thickness": 12,
    "len": 0.6,
    "x": 1.01,
    "bgcolor": "rgba(255, 255, 255, 0.8)",
    "bordercolor": "rgba(0, 0, 0, 0.1)",
    "borderwidth": 1,
}


def numeric_columns(data: list[dict[str, Any]], columns: list[str]) -> list[str]:
    """Columns where at least one row holds a finite number."""
    return [c for c in columns if any(parse_number(row.get(c)) is not None for row in data)]


def pick_axes(data: list[dict[str, Any]], columns: list[str]) -> tuple[str, str, str]:
    """x/y/z columns: numeric first, then raw column order, then literal names."""
    nums = numeric_columns(data, columns)
    picks = []
    for i, literal in enumerate(("x", "y", "z")):
        if i < len(nums):
            picks.append(nums[i])
        elif i < len(columns):
            picks.append(columns[i])
        else:
            picks.append(literal)
    return picks[0], picks[1], picks[2]


def _note(text: str) -> dict[str, Any]:
    return {
        "text": text,
        "showarrow": False,
        "xref": "paper", "yref": "paper",
        "x": -0.15, "y": 0.95,
        "xanchor": "left", "yanchor": "top",
        "bgcolor": "rgba(255, 255, 255, 0.7)",
        "bordercolor": "rgba(234, 88, 12, 0.3)",
        "borderwidth": 1,
        "font": {"size": 9, "color": "#666"},
    }


def _title(text: str) -> dict[str, Any]:
    return {"text": text, "font": {"size": 18, "color": ACCENT}}


def _coords(data: list[dict[str, Any]], axes: tuple[str, str, str],
            rng: np.random.Generator) -> tuple[list[float], list[float], list[float]]:
    """Parsed x/y/z per row; unparseable cells and empty data get seeded values."""
    if not data:
        pts = rng.random((SYNTHETIC_POINTS, 3)) * 10
        return pts[:, 0].tolist(), pts[:, 1].tolist(), pts[:, 2].tolist()
    out: tuple[list[float], list[float], list[float]] = ([], [], [])
    for row in data:
        for values, col in zip(out, axes):
            v = parse_number(row.get(col))
            values.append(v if v is not None else float(rng.random() * 10))
    return out


def _hover(data: list[dict[str, Any]], axes: tuple[str, str, str]) -> list[str]:
    x_col, y_col, z_col = axes
    return [
        f"Point {i + 1}<br>{x_col}: {row.get(x_col) or 'N/A'}"
        f"<br>{y_col}: {row.get(y_col) or 'N/A'}<br>{z_col}: {row.get(z_col) or 'N/A'}"
        for i, row in enumerate(data)
    ]


def _scatter(data, columns, rng) -> dict[str, Any]:
    axes = pick_axes(data, columns)
    x_col, y_col, z_col = axes
    x, y, z = _coords(data, axes, rng)
    title = "3D Data Constellation"
    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": x, "y": y, "z": z,
        "marker": {
            "size": 6,
            "color": list(range(len(x))),
            "colorscale": "Viridis",
            "opacity": 0.8,
            "colorbar": {"title": {"text": x_col, "font": {"size": 10, "color": "#888"}},
                         **_COLORBAR_STYLE},
            "line": {"color": "rgba(255, 255, 255, 0.1)", "width": 0.5},
        },
        "hovertemplate": "%{text}<extra></extra>",
    }
    if data:
        trace["text"] = _hover(data, axes)
    else:
        trace["hovertemplate"] = "(%{x:.2f}, %{y:.2f}, %{z:.2f})<extra></extra>"

    axis_style = {"showbackground": True, "backgroundcolor": "rgba(240, 240, 240, 0.8)"}
    layout = {
        "scene": {
            "xaxis": {"title": x_col, **axis_style},
            "yaxis": {"title": y_col, **axis_style},
            "zaxis": {"title": z_col, **axis_style},
            "camera": {"eye": {"x": 1.25, "y": 1.25, "z": 1.25}},
        },
        "title": _title(title),
        "paper_bgcolor": "rgba(0,0,0,0)",
        "margin": {"l": 0, "r": 0, "t": 40, "b": 0},
        "annotations": [_note(f"<b>Legend:</b><br>• Color: {x_col}<br>• Total: {len(x)} pts")],
    }
    return {
        "type": "scatter3d",
        "config": {"data": [trace], "layout": layout},
        "title": title,
        "description": f"3D view of {len(data)} points",
    }


def surface_grid(data: list[dict[str, Any]], nums: list[str],
                 rng: np.random.Generator) -> list[list[float]]:
    """Rows resampled onto a square grid of the first numeric column."""
    size = int(min(SURFACE_MAX, math.sqrt(len(data))))
    if size < 2 or not nums:
        grid = rng.random((SURFACE_SYNTHETIC, SURFACE_SYNTHETIC)) * 10
        return grid.tolist()
    col = nums[0]
    surface = []
    for i in range(size):
        row = []
        for j in range(size):
            idx = (i * size + j) * len(data) // (size * size)
            v = parse_number(data[idx].get(col))
            row.append(v if v is not None else 0.0)
        surface.append(row)
    return surface


def _surface(data, columns, rng) -> dict[str, Any]:
    nums = numeric_columns(data, columns)
    label = nums[0] if nums else "Values"
    title = "3D Data Surface"
    trace = {
        "type": "surface",
        "z": surface_grid(data, nums, rng),
        "colorscale": "Plasma",
        "colorbar": {"title": {"text": label, "font": {"size": 10, "color": "#888"}},
                     **_COLORBAR_STYLE},
        "contours": {
            "z": {"show": True, "usecolormap": True, "highlightcolor": "#42f462",
                  "project": {"z": True}},
        },
        "lighting": {"ambient": 0.4, "diffuse": 0.8, "fresnel": 0.2,
                     "specular": 0.05, "roughness": 0.05},
    }
    layout = {
        "scene": {
            "camera": {"eye": {"x": 1.87, "y": 0.88, "z": -0.64}},
            "aspectratio": {"x": 1, "y": 1, "z": 0.7},
            "xaxis": {"title": "Position X", "showbackground": False},
            "yaxis": {"title": "Position Y", "showbackground": False},
            "zaxis": {"title": label, "showbackground": False},
        },
        "title": _title(title),
        "paper_bgcolor": "rgba(0,0,0,0)",
        "margin": {"l": 0, "r": 0, "t": 40, "b": 0},
        "annotations": [_note(
            f"<b>Source:</b><br>• Variable: {nums[0] if nums else 'Simulated'}"
            f"<br>• Points: {len(data)}")],
    }
    return {
        "type": "surface3d",
        "config": {"data": [trace], "layout": layout},
        "title": title,
        "description": "Surface generated from the data",
    }


def _mesh(data, columns, rng) -> dict[str, Any]:
    axes = pick_axes(data, columns)
    x, y, z = _coords(data, axes, rng)
    title = "3D Data Mesh"
    trace = {
        "type": "mesh3d",
        "x": x, "y": y, "z": z,
        "intensity": list(z),
        "colorscale": "Viridis",
        "opacity": 0.7,
        "colorbar": {"title": {"text": axes[2], "font": {"size": 10, "color": "#888"}},
                     **_COLORBAR_STYLE},
    }
    layout = {
        "scene": {
            "xaxis": {"title": axes[0]},
            "yaxis": {"title": axes[1]},
            "zaxis": {"title": axes[2]},
            "camera": {"eye": {"x": 1.5, "y": 1.5, "z": 1.2}},
        },
        "title": _title(title),
        "paper_bgcolor": "rgba(0,0,0,0)",
        "margin": {"l": 0, "r": 0, "t": 40, "b": 0},
        "annotations": [_note(f"<b>Mesh:</b><br>• Vertices: {len(x)}")],
    }
    return {
        "type": "mesh3d",
        "config": {"data": [trace], "layout": layout},
        "title": title,
        "description": f"Mesh built from {len(x)} vertices",
    }


def _default(data, columns, rng) -> dict[str, Any]:
    axes = pick_axes(data, columns)
    x_col, y_col, z_col = axes
    x, y, z = _coords(data, axes, rng)
    title = "Interactive 3D Visualization"
    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": x, "y": y, "z": z,
        "marker": {
            "size": 8,
            "color": list(range(len(x))),
            "colorscale": "Plasma",
            "opacity": 0.9,
            "colorbar": {"title": {"text": x_col, "font": {"size": 10, "color": "#888"}},
                         "thickness": 12, "len": 0.6, "x": 1.01},
        },
    }
    layout = {
        "scene": {
            "xaxis": {"title": x_col},
            "yaxis": {"title": y_col},
            "zaxis": {"title": z_col},
        },
        "title": _title(title),
        "margin": {"l": 0, "r": 0, "t": 40, "b": 0},
        "annotations": [_note(f"<b>Analysis:</b><br>• {len(data)} rows")],
    }
    return {
        "type": "scatter3d",
        "config": {"data": [trace], "layout": layout},
        "title": title,
        "description": f"Analysis of {len(data)} rows",
    }


_BUILDERS = {
    "scatter3d": _scatter,
    "surface3d": _surface,
    "mesh3d": _mesh,
}


def _minimal(rng: np.random.Generator) -> dict[str, Any]:
    pts = rng.random((SYNTHETIC_POINTS, 3)) * 10
    return {
        "type": "scatter3d",
        "config": {
            "data": [{"type": "scatter3d", "mode": "markers",
                      "x": pts[:, 0].tolist(), "y": pts[:, 1].tolist(), "z": pts[:, 2].tolist(),
                      "marker": {"size": 6, "colorscale": "Viridis"}}],
            "layout": {"title": _title("3D Visualization")},
        },
        "title": "3D Visualization",
        "description": "Synthetic preview",
    }


def build_fallback(requested_type: str | None, data: list[dict[str, Any]] | None,
                   columns: list[str] | None = None) -> dict[str, Any]:
    """Local config for ``scatter3d``, ``surface3d``, ``mesh3d`` or anything else.

    Returns ``{type, config: {data, layout}, title, description}``.
    """
    rows = [r for r in (data or []) if isinstance(r, dict)]
    cols = list(columns) if columns else (list(rows[0].keys()) if rows else [])
    rng = np.random.default_rng(FALLBACK_SEED)
    builder = _BUILDERS.get(requested_type or "", _default)
    try:
        config = builder(rows, cols, rng)
    except Exception:
        logger.exception("Fallback builder failed for {!r}; using minimal config", requested_type)
        return _minimal(np.random.default_rng(FALLBACK_SEED))
    logger.info("Built fallback {} config ({} rows)", config["type"], len(rows))
    return config
