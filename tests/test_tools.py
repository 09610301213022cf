"""Tests for the LangChain tools, the MCP wrappers and the CLI."""

import json

from run_viz import main
from src.agent.tools.viz_tools import (
    build_fallback_visualization,
    list_compatible_models,
    profile_csv,
    render_visualization_tool,
)
from src.mcp_servers import viz_server

ROWS = json.dumps([{"a": "1", "b": "2", "c": "3"}, {"a": "4", "b": "5", "c": "6"}])


def _write_csv(tmp_path):
    path = tmp_path / "points.csv"
    path.write_text("a,b,c\n1,2,3\n4,5,6\n7,8,9\n", encoding="utf-8")
    return path


def test_profile_csv_tool(tmp_path):
    result = profile_csv.invoke({"path": str(_write_csv(tmp_path))})
    assert result["rows"] == 3
    assert result["type_counts"]["numeric"] == 3


def test_profile_csv_tool_reports_errors(tmp_path):
    result = profile_csv.invoke({"path": str(tmp_path / "nope.csv")})
    assert "error" in result


def test_list_compatible_models_tool():
    result = list_compatible_models.invoke({"data_json": ROWS})
    assert result["total"] == len(result["models"])
    assert "scatter3d" in {m["id"] for m in result["models"]}
    assert "error" in list_compatible_models.invoke({"data_json": "not json"})


def test_render_tool_respects_column_order():
    result = render_visualization_tool.invoke(
        {"model_id": "scatter3d", "data_json": ROWS, "columns": "c, b, a"}
    )
    assert result["mapping"]["xAxis"] == "c"
    assert result["config"]["data"][0]["x"] == [3.0, 6.0]


def test_fallback_tool_never_fails():
    result = build_fallback_visualization.invoke({"requested_type": "mesh3d", "data_json": "{"})
    assert result["config"]["data"]


def test_mcp_wrappers_delegate():
    result = viz_server.render_visualization("galaxy_3d", ROWS)
    assert result["type"] == "galaxy_3d"
    assert viz_server.build_fallback_visualization("surface3d")["type"] == "surface3d"


def test_cli_list_models(capsys):
    assert main(["--list-models"]) == 0
    out = capsys.readouterr().out
    assert "scatter3d" in out
    assert "Artistic" in out


def test_cli_render_to_file(tmp_path, capsys):
    out_file = tmp_path / "fig.json"
    code = main([str(_write_csv(tmp_path)), "--model", "timeline_3d", "--out", str(out_file)])
    assert code == 0
    figure = json.loads(out_file.read_text(encoding="utf-8"))
    assert set(figure) == {"data", "layout"}
    assert "3 rows x 3 columns" in capsys.readouterr().out


def test_cli_bad_file(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    assert main([str(empty)]) == 1
