"""Tests for the deterministic fallback configs."""

from src.viz import fallback
from src.viz.fallback import SYNTHETIC_POINTS, build_fallback, numeric_columns, pick_axes


ROWS = [
    {"name": "n1", "x": "1", "y": "2", "z": "3"},
    {"name": "n2", "x": "4", "y": "5", "z": "6"},
    {"name": "n3", "x": "7", "y": "bad", "z": "9"},
]
COLUMNS = ["name", "x", "y", "z"]


def test_unknown_type_on_empty_data():
    result = build_fallback("unknown_type", [], [])
    config = result["config"]
    assert config["data"]
    assert isinstance(config["layout"], dict)
    assert result["type"] == "scatter3d"
    assert len(config["data"][0]["x"]) == SYNTHETIC_POINTS


def test_none_inputs():
    result = build_fallback(None, None)
    assert result["config"]["data"]


def test_same_input_same_output():
    assert build_fallback("scatter3d", [], []) == build_fallback("scatter3d", [], [])
    assert build_fallback("mesh3d", ROWS, COLUMNS) == build_fallback("mesh3d", ROWS, COLUMNS)


def test_axes_prefer_numeric_columns():
    assert numeric_columns(ROWS, COLUMNS) == ["x", "y", "z"]
    assert pick_axes(ROWS, COLUMNS) == ("x", "y", "z")
    assert pick_axes([{"only": "1"}], ["only"]) == ("only", "y", "z")
    assert pick_axes([], []) == ("x", "y", "z")


def test_scatter_uses_parsed_values():
    result = build_fallback("scatter3d", ROWS, COLUMNS)
    trace = result["config"]["data"][0]
    assert trace["x"] == [1.0, 4.0, 7.0]
    assert trace["y"][:2] == [2.0, 5.0]
    assert 0 <= trace["y"][2] <= 10
    assert trace["marker"]["size"] == 6
    assert trace["text"][0].startswith("Point 1")


def test_surface_grid_from_rows():
    rows = [{"v": str(i)} for i in range(16)]
    result = build_fallback("surface3d", rows, ["v"])
    z = result["config"]["data"][0]["z"]
    assert result["type"] == "surface3d"
    assert z == [[0.0, 1.0, 2.0, 3.0], [4.0, 5.0, 6.0, 7.0],
                 [8.0, 9.0, 10.0, 11.0], [12.0, 13.0, 14.0, 15.0]]


def test_surface_too_small_is_synthetic():
    result = build_fallback("surface3d", ROWS[:3], COLUMNS)
    z = result["config"]["data"][0]["z"]
    assert len(z) == 10
    assert all(len(row) == 10 for row in z)


def test_mesh_intensity_follows_z():
    trace = build_fallback("mesh3d", ROWS, COLUMNS)["config"]["data"][0]
    assert trace["type"] == "mesh3d"
    assert trace["intensity"] == trace["z"]


def test_default_branch():
    result = build_fallback("galaxy_3d", ROWS, COLUMNS)
    assert result["type"] == "scatter3d"
    assert result["config"]["data"][0]["marker"]["size"] == 8
    assert result["description"] == "Analysis of 3 rows"


def test_builder_failure_returns_minimal_config(monkeypatch):
    def boom(data, columns, rng):
        raise RuntimeError("broken")

    monkeypatch.setitem(fallback._BUILDERS, "scatter3d", boom)
    result = build_fallback("scatter3d", ROWS, COLUMNS)
    assert result["description"] == "Synthetic preview"
    assert len(result["config"]["data"][0]["x"]) == SYNTHETIC_POINTS
