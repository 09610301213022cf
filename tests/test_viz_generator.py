"""Tests for AI visualization generation and its fallback paths."""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from src.agent import viz_generator
from src.agent.viz_generator import generate_visualization

ROWS = [{"x": "1", "y": "2", "z": "3"}, {"x": "4", "y": "5", "z": "6"}]
COLUMNS = ["x", "y", "z"]

GOOD_REPLY = """```json
{"type": "surface3d", "title": "Hills",
 "config": {"data": [{"type": "surface", "z": [[1, 2], [3, 4]]}], "layout": {"title": "Hills"}},
 "description": "A surface"}
```"""


@pytest.fixture
def hosted(monkeypatch):
    """Pretend a model is configured; returns the mock standing in for invoke_with_timeout."""
    monkeypatch.setattr(viz_generator, "is_configured", lambda: True)
    monkeypatch.setattr(viz_generator, "get_llm", lambda **kwargs: Mock())
    invoke = Mock()
    monkeypatch.setattr(viz_generator, "invoke_with_timeout", invoke)
    return invoke


def test_unconfigured_uses_fallback(monkeypatch):
    monkeypatch.setattr(viz_generator, "is_configured", lambda: False)
    result = generate_visualization(ROWS, COLUMNS, "scatter3d")
    assert result["source"] == "fallback"
    assert result["type"] == "scatter3d"
    assert result["config"]["data"][0]["x"] == [1.0, 4.0]


def test_valid_reply(hosted):
    hosted.return_value = (SimpleNamespace(content=GOOD_REPLY), None)
    result = generate_visualization(ROWS, COLUMNS, "surface3d")
    assert result["source"] == "ai"
    assert result["title"] == "Hills"
    assert result["config"]["layout"] == {"title": "Hills"}
    hosted.assert_called_once()


def test_timeout_falls_back(hosted):
    hosted.return_value = (None, TimeoutError("slow"))
    result = generate_visualization(ROWS, COLUMNS, "mesh3d")
    assert result["source"] == "fallback"
    assert result["type"] == "mesh3d"
    assert "AI generation timed out" in result["description"]


def test_error_falls_back(hosted):
    hosted.return_value = (None, RuntimeError("boom"))
    result = generate_visualization(ROWS, COLUMNS, "scatter3d")
    assert "RuntimeError" in result["description"]


def test_unparseable_reply_keeps_short_excerpt(hosted):
    hosted.return_value = (SimpleNamespace(content="x" * 500), None)
    result = generate_visualization(ROWS, COLUMNS, "scatter3d")
    assert result["source"] == "fallback"
    assert "AI response: " + "x" * 200 in result["description"]
    assert "x" * 201 not in result["description"]


def test_reply_without_layout_is_rejected(hosted):
    hosted.return_value = (SimpleNamespace(content='{"config": {"data": []}}'), None)
    result = generate_visualization(ROWS, COLUMNS, "surface3d")
    assert result["source"] == "fallback"
    assert result["type"] == "surface3d"


def test_columns_default_to_first_row_keys(monkeypatch):
    monkeypatch.setattr(viz_generator, "is_configured", lambda: False)
    result = generate_visualization(ROWS, None, "")
    assert result["type"] == "scatter3d"
    assert result["config"]["layout"]["scene"]["xaxis"]["title"] == "x"


def test_request_text_samples_rows():
    rows = [{"v": str(i)} for i in range(80)]
    text = viz_generator._request_text(rows, ["v"], "scatter3d")
    assert "Total rows: 80" in text
    assert "first 50" in text
    assert '"v": "49"' in text
    assert '"v": "50"' not in text


def test_reply_without_traces_is_rejected(hosted):
    hosted.return_value = (SimpleNamespace(content='{"config": {"data": [], "layout": {}}}'), None)
    result = generate_visualization(ROWS, COLUMNS, "scatter3d")
    assert result["source"] == "fallback"
    assert result["config"]["data"]
    assert "AI response: " in result["description"]


def test_reply_with_non_object_trace_is_rejected(hosted):
    reply = '{"config": {"data": [{"type": "scatter3d"}, 3], "layout": {}}}'
    hosted.return_value = (SimpleNamespace(content=reply), None)
    assert generate_visualization(ROWS, COLUMNS, "scatter3d")["source"] == "fallback"
