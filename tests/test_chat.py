"""Tests for the chat assistant: directives, local replies and streaming."""

from types import SimpleNamespace
from unittest.mock import Mock

from src.agent import chat
from src.agent.chat import (
    dataset_context,
    detect_visualization_request,
    local_reply,
    stream_chat,
    strip_directive,
)
from src.agent.prompts.system import NO_DATASET_CONTEXT


def _hosted(monkeypatch, stream):
    monkeypatch.setattr(chat, "is_configured", lambda: True)
    llm = Mock()
    llm.stream.side_effect = stream
    monkeypatch.setattr(chat, "get_llm", lambda **kwargs: llm)
    return llm


def test_directive_wins():
    reply = "Great idea!\nVISUALIZATION_TYPE: galaxy_3d"
    assert detect_visualization_request(reply, "show a bubble chart") == "galaxy_3d"


def test_directive_in_brackets():
    assert detect_visualization_request("VISUALIZATION_TYPE: [dna_helix]") == "dna_helix"


def test_unknown_directive_falls_back_to_keywords():
    reply = "VISUALIZATION_TYPE: hologram"
    assert detect_visualization_request(reply, "make it a bubble plot") == "scatter_bubble"


def test_keyword_order():
    assert detect_visualization_request("", "a fractal mandala please") == "mandala_3d"
    assert detect_visualization_request("", "Show how sales change OVER TIME") == "timeline_3d"
    assert detect_visualization_request("", "what is the average?") is None


def test_strip_directive():
    assert strip_directive("Here it is.\nVISUALIZATION_TYPE: scatter3d") == "Here it is."
    assert strip_directive("No directive") == "No directive"


def test_context_without_dataset():
    assert dataset_context(None) == NO_DATASET_CONTEXT


def test_context_lists_columns(xyz_dataset):
    context = dataset_context(xyz_dataset)
    assert "10 rows" in context
    assert "Numeric columns: a, b, c" in context
    assert "Categorical columns: group" in context


def test_local_reply_without_dataset():
    assert "Upload a CSV" in local_reply([{"role": "user", "content": "hi"}], None)


def test_local_reply_mentions_requested_model(xyz_dataset):
    reply = local_reply([{"role": "user", "content": "show it as a galaxy"}], xyz_dataset)
    assert "10 rows" in reply
    assert "3D Galaxy" in reply


def test_stream_offline_yields_local_reply(xyz_dataset, offline):
    chunks = list(stream_chat([{"role": "user", "content": "hello"}], xyz_dataset))
    assert len(chunks) == 1
    assert "10 rows" in chunks[0]


def test_stream_from_model(monkeypatch):
    llm = _hosted(monkeypatch, lambda messages: iter([
        SimpleNamespace(content="Hello "), SimpleNamespace(content=""),
        SimpleNamespace(content="there"),
    ]))
    chunks = list(stream_chat([{"role": "user", "content": "hi"}], None))
    assert chunks == ["Hello ", "there"]
    system = llm.stream.call_args.args[0][0]
    assert NO_DATASET_CONTEXT in system.content


def test_stream_error_before_output_uses_local_reply(monkeypatch):
    def fail(messages):
        raise RuntimeError("connection refused")

    _hosted(monkeypatch, fail)
    chunks = list(stream_chat([{"role": "user", "content": "hi"}], None))
    assert chunks == [local_reply([], None)]


def test_stream_error_mid_reply_stops(monkeypatch):
    def partial(messages):
        yield SimpleNamespace(content="Partial")
        raise RuntimeError("dropped")

    _hosted(monkeypatch, partial)
    assert list(stream_chat([{"role": "user", "content": "hi"}], None)) == ["Partial"]


def test_empty_stream_uses_local_reply(monkeypatch):
    _hosted(monkeypatch, lambda messages: iter([]))
    chunks = list(stream_chat([{"role": "user", "content": "hi"}], None))
    assert chunks == [local_reply([], None)]
