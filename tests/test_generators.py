"""Tests for the geometry generators and model dispatch."""

import pytest

from src.viz.classifier import classify_columns
from src.viz.generators import (
    BUBBLE_MAX,
    BUBBLE_MIN,
    GENERATORS,
    bubble_scatter,
    classic_scatter,
    contour_grid_size,
    contour_surface,
    demo_dataset,
    density_field,
    density_grid_size,
    dna_helix,
    galaxy,
    get_generator,
    mandala,
    render_demo,
    render_visualization,
    timeline,
)
from src.viz.mapping import resolve_mapping
from src.viz.types import Dataset


def _prepare(dataset):
    classifications = classify_columns(dataset)
    return dataset, resolve_mapping(classifications), classifications


@pytest.fixture
def cube_points():
    """100 rows spread over [0, 9] on each axis."""
    rows = [
        {"x": str(i % 10), "y": str((i // 10) % 10), "z": str((i * 7) % 10)}
        for i in range(100)
    ]
    return Dataset.from_records(rows, ["x", "y", "z"])


def test_two_row_scatter_end_to_end():
    dataset = Dataset.from_records(
        [{"a": "1", "b": "2", "c": "3"}, {"a": "4", "b": "5", "c": "6"}], ["a", "b", "c"]
    )
    result = render_visualization("scatter3d", dataset)

    assert result["mapping"] == {
        "xAxis": "a", "yAxis": "b", "zAxis": "c", "colorBy": "a", "sizeBy": "a",
    }
    trace = result["config"]["data"][0]
    assert trace["x"] == [1.0, 4.0]
    assert trace["y"] == [2.0, 5.0]
    assert trace["z"] == [3.0, 6.0]
    assert trace["marker"]["color"] == [1.0, 4.0]
    assert trace["marker"]["size"] == 12
    assert result["type"] == "scatter3d"


def test_scatter_marker_shrinks_with_point_count():
    rows = [{"a": str(i), "b": str(i), "c": str(i)} for i in range(2500)]
    geometry = classic_scatter(*_prepare(Dataset.from_records(rows)))
    assert geometry.data[0]["marker"]["size"] == 3


def test_scatter_on_empty_dataset():
    geometry = classic_scatter(*_prepare(Dataset.from_records([], ["a", "b"])))
    assert geometry.data[0]["x"] == []
    assert geometry.data[0]["marker"]["size"] == 12


def test_density_grid_bounds(cube_points):
    assert density_grid_size(100) == 10
    assert density_grid_size(4) == 10
    assert density_grid_size(10_000) == 25

    geometry = density_field(*_prepare(cube_points))
    trace = geometry.data[0]
    assert 0 < len(trace["x"]) <= 25 ** 3
    assert all(0 <= v <= 9 for v in trace["x"])
    assert all(4 <= s <= 20 for s in trace["marker"]["size"])


def test_density_without_ranges_uses_scatter():
    rows = [{"kind": k} for k in ["cat", "dog", "cat"]]
    geometry = density_field(*_prepare(Dataset.from_records(rows)))
    assert geometry.title == classic_scatter(*_prepare(Dataset.from_records(rows))).title


def test_bubble_sizes_scaled():
    dataset = Dataset.from_records(
        [{"a": str(i), "b": str(i), "c": str(i), "d": str(i * 10)} for i in range(5)]
    )
    sizes = bubble_scatter(*_prepare(dataset)).data[0]["marker"]["size"]
    assert min(sizes) == BUBBLE_MIN
    assert max(sizes) == BUBBLE_MAX


def test_bubble_constant_size():
    dataset = Dataset.from_records([{"a": "1", "b": "2", "c": "3"}] * 4)
    sizes = bubble_scatter(*_prepare(dataset)).data[0]["marker"]["size"]
    assert sizes == [30.0] * 4


def test_contour_surface_grid(cube_points):
    assert contour_grid_size(100) == 15
    assert contour_grid_size(2000) == 30

    trace = contour_surface(*_prepare(cube_points)).data[0]
    assert trace["type"] == "surface"
    assert len(trace["z"]) == 15
    assert all(len(row) == 15 for row in trace["z"])
    assert trace["x"][0] == 0.0
    assert trace["x"][-1] == 9.0


def test_galaxy_is_deterministic(xyz_dataset):
    first = galaxy(*_prepare(xyz_dataset)).to_plotly()
    second = galaxy(*_prepare(xyz_dataset)).to_plotly()
    assert first == second


def test_galaxy_adds_second_arm_for_large_datasets():
    rows = [{"a": str(i), "b": str(i * 2), "c": str(i % 7)} for i in range(30)]
    geometry = galaxy(*_prepare(Dataset.from_records(rows)))
    assert len(geometry.data[0]["x"]) == 60


def test_dna_helix_has_two_strands(xyz_dataset):
    geometry = dna_helix(*_prepare(xyz_dataset))
    assert len(geometry.data) == 2
    strand_1, strand_2 = geometry.data
    assert strand_1["z"] == strand_2["z"]
    assert strand_1["x"][0] == pytest.approx(-strand_2["x"][0])


def test_mandala_petals_follow_categories(xyz_dataset):
    # three categories -> three petals per row
    geometry = mandala(*_prepare(xyz_dataset))
    assert len(geometry.data[0]["x"]) == len(xyz_dataset) * 4


def test_timeline_is_ordered():
    rows = [
        {"when": "2024-03-01", "v": "3", "w": "1"},
        {"when": "2024-01-01", "v": "1", "w": "2"},
        {"when": "2024-02-01", "v": "2", "w": "3"},
    ]
    dataset, mapping, classifications = _prepare(Dataset.from_records(rows))
    trace = timeline(dataset, mapping, classifications).data[0]
    assert trace["x"] == sorted(trace["x"])
    assert trace["z"] == [0.0, 0.1, 0.2]


def test_aliases_and_unknown_ids():
    assert get_generator("scatter3d") is classic_scatter
    assert get_generator("bars3d") is bubble_scatter
    assert get_generator("terrain_3d") is contour_surface
    assert get_generator("helix_spiral") is dna_helix
    assert get_generator("not_a_model") is classic_scatter
    assert "galaxy_3d" in GENERATORS


def test_render_unknown_model_still_renders(xyz_dataset):
    result = render_visualization("not_a_model", xyz_dataset)
    assert result["type"] == "not_a_model"
    assert result["config"]["data"][0]["type"] == "scatter3d"
    assert "10 rows" in result["description"]


def test_layout_axis_titles(xyz_dataset):
    layout = render_visualization("scatter3d", xyz_dataset)["config"]["layout"]
    assert layout["scene"]["xaxis"]["title"]["text"] == "a (numeric)"
    assert "Category: group" in layout["annotations"][0]["text"]


def test_demo_dataset_is_fixed():
    assert demo_dataset() == demo_dataset()
    assert len(demo_dataset()) == 50
    result = render_demo()
    assert result["description"].startswith("Demo data.")
    assert len(result["config"]["data"][0]["x"]) == 50


def test_timeline_keeps_row_order_for_equal_times():
    rows = [
        {"t": "2", "v": "10"},
        {"t": "1", "v": "20"},
        {"t": "2", "v": "30"},
        {"t": "1", "v": "40"},
    ]
    trace = timeline(*_prepare(Dataset.from_records(rows))).data[0]
    assert trace["x"] == [1.0, 1.0, 2.0, 2.0]
    assert trace["y"] == [20.0, 40.0, 10.0, 30.0]


def test_colorbar_title_object(xyz_dataset):
    marker = classic_scatter(*_prepare(xyz_dataset)).data[0]["marker"]
    assert marker["colorbar"]["title"] == {"text": "a", "font": {"size": 10}}
    assert "titlefont" not in marker["colorbar"]
