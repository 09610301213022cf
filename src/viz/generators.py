"""Geometry generators: turn mapped rows into Plotly 3D traces.

Every generator has the same signature
``(dataset, mapping, classifications) -> GeneratedGeometry`` and is
registered in ``GENERATORS`` under the catalogue ids it renders. Ids with no
dedicated algorithm point at the closest generator; unknown ids fall back to
the classic scatter. Generators only read the dataset and never share
state, so they can run concurrently for different requests.

Grid-based generators (density field, contour surface) are vectorized with
numpy. Point sets are processed in chunks so memory stays bounded for large
uploads.
"""

from __future__ import annotations

import math
import os
from typing import Any, Callable

import numpy as np
from dotenv import load_dotenv
from loguru import logger

from src.viz.catalogue import get_model
from src.viz.classifier import classify_columns, columns_of_type
from src.viz.layout import create_layout
from src.viz.mapping import extract_role_values, resolve_mapping
from src.viz.types import (
    ColumnClassification,
    ColumnType,
    DataMapping,
    Dataset,
    GeneratedGeometry,
)

load_dotenv()

FALLBACK_SEED = int(os.getenv("FALLBACK_SEED", "7"))

Generator = Callable[[Dataset, DataMapping, dict[str, ColumnClassification]], GeneratedGeometry]

_POINT_CHUNK = 4096


def _clamp(lo: float, hi: float, value: float) -> float:
    return max(lo, min(hi, value))


def _role(dataset: Dataset, mapping: DataMapping,
          classifications: dict[str, ColumnClassification], role: str) -> np.ndarray:
    return np.asarray(extract_role_values(dataset, mapping, classifications, role), dtype=float)


def _range_of(classifications: dict[str, ColumnClassification],
              column: str | None) -> ColumnClassification | None:
    c = classifications.get(column) if column else None
    return c if c is not None and c.has_range else None


def _normalize(value: float, rng: ColumnClassification) -> float:
    return (value - rng.minimum) / rng.span if rng.span else 0.0


def _cell(row: dict[str, Any], column: str | None) -> Any:
    return (row.get(column) if column else None) or "N/A"


def _colorbar(title: str) -> dict[str, Any]:
    return {"title": {"text": title, "font": {"size": 10}}}


# ---------------------------------------------------------------------------
# Classic scatter
# ---------------------------------------------------------------------------

def classic_scatter(dataset: Dataset, mapping: DataMapping,
                    classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """One marker per row, sized by point count."""
    n = len(dataset)
    x = _role(dataset, mapping, classifications, "x_axis")
    y = _role(dataset, mapping, classifications, "y_axis")
    z = _role(dataset, mapping, classifications, "z_axis")
    color = _role(dataset, mapping, classifications, "color_by")

    marker_size = _clamp(3, 12, 100 / math.sqrt(n)) if n else 12
    opacity = max(0.6, 1 - n / 1000)

    hover = []
    for i, row in enumerate(dataset.rows):
        tip = f"<b>Point {i + 1}</b><br>"
        tip += f"<b>{mapping.x_axis}:</b> {_cell(row, mapping.x_axis)}<br>"
        tip += f"<b>{mapping.y_axis}:</b> {_cell(row, mapping.y_axis)}<br>"
        tip += f"<b>{mapping.z_axis}:</b> {_cell(row, mapping.z_axis)}<br>"
        if mapping.category_by and row.get(mapping.category_by):
            tip += f"<b>{mapping.category_by}:</b> {row[mapping.category_by]}<br>"
        hover.append(tip)

    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": x.tolist(), "y": y.tolist(), "z": z.tolist(),
        "marker": {
            "size": marker_size,
            "color": color.tolist(),
            "colorscale": "Viridis",
            "opacity": opacity,
            "colorbar": _colorbar(mapping.color_by),
        },
        "text": hover,
        "hovertemplate": "%{text}<extra></extra>",
        "name": f"3D Scatter - {n} points",
    }
    title = "Classic 3D Scatter"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications),
        title=title,
    )


# ---------------------------------------------------------------------------
# Density field
# ---------------------------------------------------------------------------

def density_grid_size(n: int) -> int:
    return int(_clamp(10, 25, math.sqrt(n)))


def density_field(dataset: Dataset, mapping: DataMapping,
                  classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Gaussian point density sampled on a regular 3D grid.

    Only cells whose density exceeds half the mean density per cell are
    emitted.
    """
    xr = _range_of(classifications, mapping.x_axis)
    yr = _range_of(classifications, mapping.y_axis)
    zr = _range_of(classifications, mapping.z_axis)
    if xr is None or yr is None or zr is None:
        return classic_scatter(dataset, mapping, classifications)

    n = len(dataset)
    k = density_grid_size(n)
    points = np.column_stack([
        _role(dataset, mapping, classifications, "x_axis"),
        _role(dataset, mapping, classifications, "y_axis"),
        _role(dataset, mapping, classifications, "z_axis"),
    ]) if n else np.zeros((0, 3))

    radius = max(xr.span, yr.span, zr.span) / (k * 0.8)
    r2 = radius * radius
    threshold = (n / k ** 3) * 0.5
    logger.debug("Density field: {} points, grid {}^3, radius {:.4f}", n, k, radius)

    steps = np.arange(k) / (k - 1)
    gx = xr.minimum + steps * xr.span
    gy = yr.minimum + steps * yr.span
    gz = zr.minimum + steps * zr.span

    # (y, z) plane of cells, y-major, reused for every x slice
    py, pz = np.meshgrid(gy, gz, indexing="ij")
    plane = np.column_stack([py.ravel(), pz.ravel()])

    xs: list[float] = []
    ys: list[float] = []
    zs: list[float] = []
    densities: list[float] = []
    for cx in gx:
        cells = np.column_stack([np.full(len(plane), cx), plane])
        density = np.zeros(len(cells))
        if r2 > 0:
            for start in range(0, n, _POINT_CHUNK):
                chunk = points[start:start + _POINT_CHUNK]
                d2 = ((cells[:, None, :] - chunk[None, :, :]) ** 2).sum(axis=2)
                density += np.where(d2 < r2, np.exp(-d2 / r2), 0.0).sum(axis=1)
        keep = density > threshold
        xs.extend(cells[keep, 0].tolist())
        ys.extend(cells[keep, 1].tolist())
        zs.extend(cells[keep, 2].tolist())
        densities.extend(density[keep].tolist())

    sizes = [_clamp(4, 20, d * 15) for d in densities]
    hover = [
        f"<b>Dense zone {i + 1}</b><br>Density: {d:.2f}<br>"
        f"Position: ({xs[i]:.1f}, {ys[i]:.1f}, {zs[i]:.1f})"
        for i, d in enumerate(densities)
    ]
    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": xs, "y": ys, "z": zs,
        "marker": {
            "size": sizes,
            "color": densities,
            "colorscale": "Hot",
            "opacity": 0.7,
            "colorbar": _colorbar("Local density"),
        },
        "text": hover,
        "hovertemplate": "%{text}<extra></extra>",
        "name": f"3D Density - {len(xs)} zones",
    }
    title = "3D Density - Concentration Zones"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications),
        title=title,
    )


# ---------------------------------------------------------------------------
# Bubble scatter
# ---------------------------------------------------------------------------

BUBBLE_MIN = 10
BUBBLE_MAX = 50


def bubble_scatter(dataset: Dataset, mapping: DataMapping,
                   classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Scatter whose marker size is the size role scaled into [10, 50]."""
    n = len(dataset)
    x = _role(dataset, mapping, classifications, "x_axis")
    y = _role(dataset, mapping, classifications, "y_axis")
    z = _role(dataset, mapping, classifications, "z_axis")
    color = _role(dataset, mapping, classifications, "color_by")
    size = _role(dataset, mapping, classifications, "size_by")

    if n:
        lo, hi = float(size.min()), float(size.max())
        if hi > lo:
            sizes = (BUBBLE_MIN + (size - lo) / (hi - lo) * (BUBBLE_MAX - BUBBLE_MIN)).tolist()
        else:
            sizes = [(BUBBLE_MIN + BUBBLE_MAX) / 2] * n
    else:
        sizes = []

    hover = []
    for i, row in enumerate(dataset.rows):
        tip = f"<b>Bubble {i + 1}</b><br>"
        tip += f"<b>Size ({mapping.size_by}):</b> {_cell(row, mapping.size_by)}<br>"
        tip += f"<b>Color ({mapping.color_by}):</b> {_cell(row, mapping.color_by)}<br>"
        if mapping.category_by and row.get(mapping.category_by):
            tip += f"<b>Category:</b> {row[mapping.category_by]}<br>"
        hover.append(tip)

    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": x.tolist(), "y": y.tolist(), "z": z.tolist(),
        "marker": {
            "size": sizes,
            "color": color.tolist(),
            "colorscale": "Plasma",
            "opacity": 0.75,
            "colorbar": _colorbar(mapping.color_by),
            "line": {"color": "rgba(255, 255, 255, 0.3)", "width": 1},
        },
        "text": hover,
        "hovertemplate": "%{text}<extra></extra>",
        "name": f"3D Bubbles - {n} items",
    }
    title = "3D Bubbles - Proportional Sizes"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications),
        title=title,
    )


# ---------------------------------------------------------------------------
# Contour surface
# ---------------------------------------------------------------------------

def contour_grid_size(n: int) -> int:
    return int(_clamp(15, 30, math.sqrt(n)))


def contour_surface(dataset: Dataset, mapping: DataMapping,
                    classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Surface interpolated from the rows by Gaussian-weighted averaging of z."""
    xr = _range_of(classifications, mapping.x_axis)
    yr = _range_of(classifications, mapping.y_axis)
    if xr is None or yr is None:
        return classic_scatter(dataset, mapping, classifications)

    n = len(dataset)
    size = contour_grid_size(n)
    x = _role(dataset, mapping, classifications, "x_axis")
    y = _role(dataset, mapping, classifications, "y_axis")
    z = _role(dataset, mapping, classifications, "z_axis")

    x_grid = xr.minimum + np.arange(size) / (size - 1) * xr.span
    y_grid = yr.minimum + np.arange(size) / (size - 1) * yr.span
    max_distance = math.sqrt(xr.span ** 2 + yr.span ** 2) / 5
    md2 = max_distance * max_distance
    logger.debug("Contour surface: {} points, grid {}x{}", n, size, size)

    surface: list[list[float]] = []
    for ty in y_grid:
        weighted = np.zeros(size)
        total = np.zeros(size)
        if md2 > 0:
            for start in range(0, n, _POINT_CHUNK):
                sl = slice(start, start + _POINT_CHUNK)
                dx = x[sl][None, :] - x_grid[:, None]
                dy = (y[sl] - ty)[None, :]
                d2 = dx * dx + dy * dy
                w = np.where(d2 < md2, np.exp(-d2 / md2), 0.0)
                weighted += (w * z[sl][None, :]).sum(axis=1)
                total += w.sum(axis=1)
        row = np.divide(weighted, total, out=np.zeros(size), where=total > 0)
        surface.append(row.tolist())

    trace = {
        "type": "surface",
        "z": surface,
        "x": x_grid.tolist(),
        "y": y_grid.tolist(),
        "colorscale": "Earth",
        "contours": {
            "z": {
                "show": True,
                "usecolormap": True,
                "highlightcolor": "#42f462",
                "project": {"z": True},
                "width": 2,
            },
        },
        "colorbar": _colorbar(mapping.z_axis),
        "name": f"Surface - {n} source points",
    }
    title = "3D Surface - Contour Lines"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications),
        title=title,
    )


# ---------------------------------------------------------------------------
# Mandala
# ---------------------------------------------------------------------------

def mandala(dataset: Dataset, mapping: DataMapping,
            classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Rose curve driven by the color role, with petals per category."""
    n = len(dataset)
    color = _role(dataset, mapping, classifications, "color_by")
    size = _role(dataset, mapping, classifications, "size_by")
    color_range = _range_of(classifications, mapping.color_by)
    size_scale = (color_range.maximum if color_range else 0) or 1

    cat = classifications.get(mapping.category_by) if mapping.category_by else None
    petals = min(6, len(cat.categories)) if cat is not None and cat.categories else 5

    xs: list[float] = []
    ys: list[float] = []
    zs: list[float] = []
    colors: list[float] = []
    sizes: list[float] = []
    for i in range(n):
        t = i / n
        c = float(color[i])
        tours = 4 + _normalize(c, color_range) * 4 if color_range else 6
        angle = t * tours * math.pi
        radius = 1 + math.sin(angle * 3) * 0.5
        height = math.sin(angle * 2) * 0.3
        cx = math.cos(angle) * radius
        cy = math.sin(angle) * radius

        xs.append(cx)
        ys.append(cy)
        zs.append(height)
        colors.append(c)
        sizes.append(_clamp(3, 8, float(size[i]) / size_scale * 6 + 3))

        petal_radius = radius * 0.3
        for j in range(petals):
            petal_angle = angle + j * 2 * math.pi / petals
            xs.append(cx + math.cos(petal_angle) * petal_radius)
            ys.append(cy + math.sin(petal_angle) * petal_radius)
            zs.append(height + math.sin(petal_angle * 2) * 0.1)
            colors.append(c * 0.8)
            sizes.append(max(2, sizes[-1] * 0.6))

    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": xs, "y": ys, "z": zs,
        "marker": {
            "size": sizes,
            "color": colors,
            "colorscale": "Rainbow",
            "opacity": 0.8,
            "colorbar": _colorbar(f"Harmony ({mapping.color_by})"),
        },
        "name": f"3D Mandala - {n} source rows",
    }
    title = "3D Mandala - Sacred Patterns"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications,
                             camera={"eye": {"x": 0, "y": 0, "z": 2.5}}),
        title=title,
    )


# ---------------------------------------------------------------------------
# Galaxy
# ---------------------------------------------------------------------------

def galaxy(dataset: Dataset, mapping: DataMapping,
           classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Spiral galaxy: color sets the arm angle, size the distance from the core.

    Vertical jitter comes from a generator seeded with ``FALLBACK_SEED`` so
    the same dataset always renders the same galaxy.
    """
    n = len(dataset)
    color = _role(dataset, mapping, classifications, "color_by")
    size = _role(dataset, mapping, classifications, "size_by")
    color_range = _range_of(classifications, mapping.color_by)
    size_range = _range_of(classifications, mapping.size_by)
    rng = np.random.default_rng(FALLBACK_SEED)

    xs: list[float] = []
    ys: list[float] = []
    zs: list[float] = []
    colors: list[float] = []
    sizes: list[float] = []
    for i in range(n):
        t = i / n
        c = float(color[i])
        norm_color = _normalize(c, color_range) if color_range else t
        norm_size = _normalize(float(size[i]), size_range) if size_range else 0.5

        angle = norm_color * 6 * math.pi + t * 2 * math.pi
        radius = norm_size * 3 + t * 0.5
        height = (rng.random() - 0.5) * 0.2 * (1 - t)

        xs.append(math.cos(angle) * radius)
        ys.append(math.sin(angle) * radius)
        zs.append(height)
        colors.append(c)
        sizes.append(_clamp(2, 12, (1 - norm_size) * 8 + 3))

        if n > 20:
            angle2 = angle + math.pi * 0.8
            radius2 = radius * 0.7
            xs.append(math.cos(angle2) * radius2)
            ys.append(math.sin(angle2) * radius2)
            zs.append(height * 0.5)
            colors.append(c * 0.8)
            sizes.append(max(1, sizes[-1] * 0.7))

    trace = {
        "type": "scatter3d",
        "mode": "markers",
        "x": xs, "y": ys, "z": zs,
        "marker": {
            "size": sizes,
            "color": colors,
            "colorscale": "Viridis",
            "opacity": 0.8,
            "colorbar": _colorbar(f"Brightness ({mapping.color_by})"),
        },
        "name": f"3D Galaxy - {n} stars",
    }
    title = "3D Galaxy - Cosmic Spiral"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications,
                             camera={"eye": {"x": 1.5, "y": 1.5, "z": 1}},
                             scene_bgcolor="rgba(0, 0, 20, 0.9)"),
        title=title,
    )


# ---------------------------------------------------------------------------
# DNA helix
# ---------------------------------------------------------------------------

def dna_helix(dataset: Dataset, mapping: DataMapping,
              classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Two strands offset by pi; color widens the helix, size lifts it."""
    n = len(dataset)
    color = _role(dataset, mapping, classifications, "color_by")
    size = _role(dataset, mapping, classifications, "size_by")
    color_range = _range_of(classifications, mapping.color_by)
    size_range = _range_of(classifications, mapping.size_by)
    size_scale = (size_range.maximum if size_range else 0) or 1

    x1: list[float] = []
    y1: list[float] = []
    x2: list[float] = []
    y2: list[float] = []
    zs: list[float] = []
    colors: list[float] = []
    sizes: list[float] = []
    for i in range(n):
        t = i / n * 8 * math.pi
        z = i / n * 4
        c = float(color[i])
        s = float(size[i])
        radius = 1 + 0.3 * _normalize(c, color_range) if color_range else 1
        lift = 0.1 * _normalize(s, size_range) if size_range else 0

        x1.append(math.cos(t) * radius)
        y1.append(math.sin(t) * radius)
        x2.append(math.cos(t + math.pi) * radius)
        y2.append(math.sin(t + math.pi) * radius)
        zs.append(z + lift)
        colors.append(c)
        sizes.append(_clamp(4, 10, s / size_scale * 6 + 4))

    strand_1 = {
        "type": "scatter3d",
        "mode": "markers+lines",
        "x": x1, "y": y1, "z": zs,
        "marker": {
            "size": sizes,
            "color": colors,
            "colorscale": "RdYlBu",
            "colorbar": _colorbar(mapping.color_by),
        },
        "line": {"color": "rgba(255, 100, 100, 0.8)", "width": 4},
        "name": f"DNA strand 1 - {n} bases",
    }
    strand_2 = {
        "type": "scatter3d",
        "mode": "markers+lines",
        "x": x2, "y": y2, "z": list(zs),
        "marker": {"size": list(sizes), "color": list(colors), "colorscale": "RdYlBu"},
        "line": {"color": "rgba(100, 100, 255, 0.8)", "width": 4},
        "name": f"DNA strand 2 - {n} bases",
        "showlegend": False,
    }
    title = "DNA Double Helix"
    return GeneratedGeometry(
        data=[strand_1, strand_2],
        layout=create_layout(title, dataset, mapping, classifications,
                             camera={"eye": {"x": 2, "y": 0, "z": 1}}),
        title=title,
    )


# ---------------------------------------------------------------------------
# Timeline
# ---------------------------------------------------------------------------

def timeline(dataset: Dataset, mapping: DataMapping,
             classifications: dict[str, ColumnClassification]) -> GeneratedGeometry:
    """Rows ordered by x and lifted step by step along z."""
    n = len(dataset)
    temporal = columns_of_type(classifications, ColumnType.TEMPORAL)
    time_column = temporal[0] if temporal else mapping.x_axis
    value_column = mapping.y_axis

    times = _role(dataset, mapping, classifications, "x_axis")
    values = _role(dataset, mapping, classifications, "y_axis")
    color = _role(dataset, mapping, classifications, "color_by")

    order = sorted(range(n), key=lambda i: times[i])
    hover = []
    for i in order:
        row = dataset.rows[i]
        hover.append(
            f"<b>Time point {i + 1}</b><br>"
            f"<b>Time:</b> {_cell(row, time_column)}<br>"
            f"<b>Value:</b> {_cell(row, value_column)}<br>"
        )

    trace = {
        "type": "scatter3d",
        "mode": "markers+lines",
        "x": [float(times[i]) for i in order],
        "y": [float(values[i]) for i in order],
        "z": [rank * 0.1 for rank in range(n)],
        "marker": {
            "size": 6,
            "color": [float(color[i]) for i in order],
            "colorscale": "Viridis",
            "opacity": 0.8,
            "colorbar": _colorbar(mapping.color_by),
        },
        "line": {"color": "rgba(100, 100, 100, 0.6)", "width": 3},
        "text": hover,
        "hovertemplate": "%{text}<extra></extra>",
        "name": f"3D Timeline - {n} points",
    }
    title = "3D Timeline - Evolution Over Time"
    return GeneratedGeometry(
        data=[trace],
        layout=create_layout(title, dataset, mapping, classifications),
        title=title,
    )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

GENERATORS: dict[str, Generator] = {
    "scatter3d": classic_scatter,
    "scatter_density": density_field,
    "scatter_bubble": bubble_scatter,
    "surface_contour": contour_surface,
    "mandala_3d": mandala,
    "galaxy_3d": galaxy,
    "dna_helix": dna_helix,
    "timeline_3d": timeline,
}

# Catalogue ids without a dedicated algorithm
_ALIASES: dict[Generator, tuple[str, ...]] = {
    classic_scatter: (
        "scatter_animated", "cube_matrix", "cone_field", "crystal_3d", "network_3d",
        "tree_3d", "globe_3d", "molecule_3d", "vector_field",
    ),
    bubble_scatter: (
        "scatter_clustered", "bars3d", "bars_grouped", "bars_simple", "bars_stacked",
        "bars_cylindrical", "bars_pyramid", "sphere_pack", "histogram_3d", "box_plot_3d",
    ),
    contour_surface: (
        "surface3d", "surface_mesh", "surface_gradient", "surface_parametric", "terrain_3d",
    ),
    dna_helix: ("helix_spiral",),
    mandala: ("fractal_3d",),
    timeline: ("wave_temporal", "spiral_time"),
}
for _generator, _ids in _ALIASES.items():
    GENERATORS.update({model_id: _generator for model_id in _ids})


def get_generator(model_id: str) -> Generator:
    return GENERATORS.get(model_id, classic_scatter)


def render_visualization(model_id: str, dataset: Dataset) -> dict[str, Any]:
    """Classify, map and generate geometry for one catalogue model.

    Returns ``{type, config: {data, layout}, title, description, mapping}``.
    """
    classifications = classify_columns(dataset)
    mapping = resolve_mapping(classifications)
    generator = get_generator(model_id)
    logger.info("Rendering {} with {} ({} rows, {} columns)",
                model_id, generator.__name__, len(dataset), len(dataset.columns))

    geometry = generator(dataset, mapping, classifications)
    model = get_model(model_id)
    name = model.name if model else geometry.title
    return {
        "type": model_id,
        "config": geometry.to_plotly(),
        "title": geometry.title,
        "description": f"{name}: {geometry.point_count} points from {len(dataset)} rows",
        "mapping": mapping.to_dict(),
    }


DEMO_ROWS = 50


def demo_dataset(seed: int = FALLBACK_SEED) -> Dataset:
    """Fixed-seed 50-row dataset shown before any upload."""
    rng = np.random.default_rng(seed)
    rows = [
        {
            "x": float(rng.random() * 10),
            "y": float(rng.random() * 10),
            "z": float(rng.random() * 10),
            "value": float(rng.random() * 100),
            "category": f"Cat{int(rng.integers(1, 6))}",
        }
        for _ in range(DEMO_ROWS)
    ]
    return Dataset.from_records(rows, ["x", "y", "z", "value", "category"])


def render_demo(model_id: str = "scatter3d") -> dict[str, Any]:
    payload = render_visualization(model_id, demo_dataset())
    payload["description"] = f"Demo data. {payload['description']}"
    return payload
