"""AI visualization generation with a deterministic local fallback.

The hosted model is asked for a complete Plotly config. Whenever it is not
configured, times out, raises, or returns something that is not a usable
config, ``build_fallback`` produces the result instead. There is exactly
one model call per request and no retry.
"""

from __future__ import annotations

import json
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from src.agent.llm import VIZ_MODEL, extract_json_object, get_llm, invoke_with_timeout, is_configured
from src.agent.prompts.system import VIZ_GENERATION_PROMPT
from src.viz.fallback import build_fallback

SAMPLE_ROWS = 50
EXCERPT_CHARS = 200


def _request_text(data: list[dict[str, Any]], columns: list[str], model_id: str) -> str:
    return (
        f"Requested visualization: {model_id}\n"
        f"Columns: {', '.join(columns)}\n"
        f"Total rows: {len(data)}\n"
        f"Sample rows (first {min(len(data), SAMPLE_ROWS)}):\n"
        f"{json.dumps(data[:SAMPLE_ROWS], default=str)}"
    )


def _validate(payload: dict[str, Any], model_id: str) -> dict[str, Any]:
    """Normalize a model reply into ``{type, config, title, description}``.

    Raises:
        ValueError: the reply has no usable ``config.layout`` or no trace objects
            in ``config.data``.
    """
    config = payload.get("config")
    if not isinstance(config, dict):
        raise ValueError("missing config")
    traces = config.get("data")
    if not isinstance(traces, list) or not isinstance(config.get("layout"), dict):
        raise ValueError("config needs a data list and a layout object")
    if not traces or not all(isinstance(t, dict) for t in traces):
        raise ValueError("config.data must hold at least one trace object")
    return {
        "type": str(payload.get("type") or model_id),
        "config": {"data": config["data"], "layout": config["layout"]},
        "title": str(payload.get("title") or "3D Visualization"),
        "description": str(payload.get("description") or ""),
    }


def _fallback(model_id: str, data: list[dict[str, Any]], columns: list[str],
              note: str | None = None) -> dict[str, Any]:
    result = build_fallback(model_id, data, columns)
    result["source"] = "fallback"
    if note:
        result["description"] = f"{result['description']} ({note})"
    return result


def generate_visualization(data: list[dict[str, Any]] | None, columns: list[str] | None,
                           model_id: str) -> dict[str, Any]:
    """Return ``{type, config: {data, layout}, title, description, source}``."""
    rows = [r for r in (data or []) if isinstance(r, dict)]
    cols = list(columns) if columns else (list(rows[0].keys()) if rows else [])
    model_id = model_id or "scatter3d"

    if not is_configured():
        return _fallback(model_id, rows, cols)

    messages = [
        SystemMessage(content=VIZ_GENERATION_PROMPT),
        HumanMessage(content=_request_text(rows, cols, model_id)),
    ]
    try:
        llm = get_llm(model=VIZ_MODEL, temperature=0.0)
    except ValueError as e:
        logger.warning("Visualization model unavailable: {}", e)
        return _fallback(model_id, rows, cols)

    response, err = invoke_with_timeout(llm.invoke, (messages,))
    if err is not None:
        label = "timed out" if isinstance(err, TimeoutError) else f"error: {type(err).__name__}"
        logger.warning("AI visualization {} for {}; using fallback", label, model_id)
        return _fallback(model_id, rows, cols, note=f"AI generation {label}")

    raw = str(response.content)
    try:
        result = _validate(extract_json_object(raw), model_id)
    except ValueError as e:
        logger.warning("AI visualization reply unusable ({}); using fallback", e)
        return _fallback(model_id, rows, cols, note=f"AI response: {raw[:EXCERPT_CHARS]}")

    result["source"] = "ai"
    logger.info("AI visualization generated for {} ({} traces)",
                model_id, len(result["config"]["data"]))
    return result
