"""Chat assistant: dataset-aware streaming replies and visualization directives.

The conversation is passed in on every call and never stored. When no
model is configured, or the hosted call fails before producing any text,
a deterministic local reply is streamed instead.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from loguru import logger

from src.agent.llm import DEFAULT_MODEL, get_llm, is_configured
from src.agent.prompts.system import CHAT_SYSTEM, NO_DATASET_CONTEXT
from src.viz.catalogue import compatible_models, get_model
from src.viz.classifier import classify_columns, columns_of_type
from src.viz.types import ColumnType, Dataset

SAMPLE_ROWS = 3

_DIRECTIVE = re.compile(r"VISUALIZATION_TYPE:\s*\[?([A-Za-z0-9_]+)\]?", re.IGNORECASE)

# Checked in order; the first group with a matching keyword wins
_KEYWORDS: list[tuple[tuple[str, ...], str]] = [
    (("mandala", "circular", "fractal"), "mandala_3d"),
    (("galaxy", "cosmic"), "galaxy_3d"),
    (("helix", "dna"), "dna_helix"),
    (("timeline", "over time", "chronolog"), "timeline_3d"),
    (("density", "concentration"), "scatter_density"),
    (("bubble",), "scatter_bubble"),
    (("surface", "contour", "terrain"), "surface_contour"),
    (("scatter", "points", "cloud", "stars"), "scatter3d"),
]


def detect_visualization_request(reply: str, user_message: str = "") -> str | None:
    """Model id requested in a chat turn, if any.

    A ``VISUALIZATION_TYPE: <id>`` line in the assistant reply wins when
    the id is in the catalogue; otherwise keywords in the user message are
    matched.
    """
    match = _DIRECTIVE.search(reply or "")
    if match:
        model_id = match.group(1).lower()
        if get_model(model_id) is not None:
            return model_id
        logger.debug("Ignoring unknown visualization directive {!r}", model_id)

    text = (user_message or "").lower()
    for words, model_id in _KEYWORDS:
        if any(w in text for w in words):
            return model_id
    return None


def strip_directive(reply: str) -> str:
    """Remove the ``VISUALIZATION_TYPE`` line from a reply."""
    return _DIRECTIVE.sub("", reply or "").strip()


def dataset_context(dataset: Dataset | None) -> str:
    """Dataset summary appended to the chat system prompt."""
    if dataset is None or not len(dataset):
        return NO_DATASET_CONTEXT

    classifications = classify_columns(dataset)
    numeric = columns_of_type(classifications, ColumnType.NUMERIC)
    temporal = columns_of_type(classifications, ColumnType.TEMPORAL)
    categorical = columns_of_type(classifications, ColumnType.CATEGORICAL)
    models = [m.id for m in compatible_models(classifications)]
    sample = json.dumps(list(dataset.rows[:SAMPLE_ROWS]), indent=2, default=str)

    return (
        "Current dataset context:\n"
        f"- {len(dataset)} rows\n"
        f"- Columns: {', '.join(dataset.columns)}\n"
        f"- Numeric columns: {', '.join(numeric) or 'none'}\n"
        f"- Temporal columns: {', '.join(temporal) or 'none'}\n"
        f"- Categorical columns: {', '.join(categorical) or 'none'}\n"
        f"- Compatible visualization models: {', '.join(models) or 'none'}\n"
        f"- Sample rows: {sample}"
    )


def to_langchain_messages(messages: list[dict[str, Any]]) -> list[BaseMessage]:
    out: list[BaseMessage] = []
    for msg in messages:
        role = msg.get("role")
        content = str(msg.get("content") or "")
        if role == "user":
            out.append(HumanMessage(content=content))
        elif role == "assistant":
            out.append(AIMessage(content=content))
    return out


def _last_user_message(messages: list[dict[str, Any]]) -> str:
    for msg in reversed(messages):
        if msg.get("role") == "user":
            return str(msg.get("content") or "")
    return ""


def local_reply(messages: list[dict[str, Any]], dataset: Dataset | None) -> str:
    """Deterministic assistant reply used when the hosted model is unavailable."""
    if dataset is None or not len(dataset):
        return ("Hello! I'm your data analysis assistant. Upload a CSV file and pick "
                "a visualization model to turn your data into a 3D scene.")

    classifications = classify_columns(dataset)
    n_num = len(columns_of_type(classifications, ColumnType.NUMERIC))
    n_tmp = len(columns_of_type(classifications, ColumnType.TEMPORAL))
    n_cat = len(columns_of_type(classifications, ColumnType.CATEGORICAL))
    names = [m.name for m in compatible_models(classifications)][:5]

    parts = [
        f"Your dataset has {len(dataset)} rows and {len(dataset.columns)} columns "
        f"({n_num} numeric, {n_tmp} temporal, {n_cat} categorical)."
    ]
    if names:
        parts.append(f"Models that fit it well: {', '.join(names)}.")
    else:
        parts.append("Add numeric columns to unlock more 3D models.")

    requested = detect_visualization_request("", _last_user_message(messages))
    model = get_model(requested) if requested else None
    if model is not None:
        parts.append(f"Switching to {model.name}: {model.description.lower()}.")
    return " ".join(parts)


def stream_chat(messages: list[dict[str, Any]], dataset: Dataset | None,
                model: str | None = None) -> Iterator[str]:
    """Yield the assistant reply as text chunks."""
    if not is_configured():
        yield local_reply(messages, dataset)
        return

    system = SystemMessage(content=f"{CHAT_SYSTEM}\n{dataset_context(dataset)}")
    lc_messages = [system, *to_langchain_messages(messages)]

    produced = False
    try:
        llm = get_llm(model=model or DEFAULT_MODEL, temperature=0.3)
        for chunk in llm.stream(lc_messages):
            text = chunk.content if isinstance(chunk.content, str) else ""
            if text:
                produced = True
                yield text
    except Exception as e:
        logger.warning("Chat model failed ({}: {})", type(e).__name__, e)
    if not produced:
        logger.info("No text from the chat model; using local reply")
        yield local_reply(messages, dataset)
