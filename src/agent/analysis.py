"""Dataset analysis: local typing and recommendation, plus optional AI insights.

The local part always runs. The hosted model only contributes
``insights``/``summary``/``keyColumns``; any field it fails to provide keeps
its local default.
"""

from __future__ import annotations

import json
from typing import Any

from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from src.agent.llm import ANALYSIS_MODEL, extract_json_object, get_llm, invoke_with_timeout, is_configured
from src.agent.prompts.system import ANALYSIS_PROMPT
from src.viz.catalogue import compatible_models, get_model
from src.viz.classifier import classify_columns, columns_of_type
from src.viz.types import ColumnClassification, ColumnType, Dataset

SAMPLE_ROWS = 5

# Preferred models per dominant data type, best first
_PREFERENCES: dict[str, tuple[str, ...]] = {
    "temporal": ("timeline_3d", "scatter_animated", "scatter3d"),
    "numerical": ("scatter3d", "scatter_density", "surface_contour", "galaxy_3d"),
    "categorical": ("scatter_clustered", "bars_simple", "bars3d"),
    "mixed": ("scatter3d", "scatter_clustered", "bars3d"),
}


def dominant_type(classifications: dict[str, ColumnClassification]) -> str:
    n_num = len(columns_of_type(classifications, ColumnType.NUMERIC))
    n_cat = len(columns_of_type(classifications, ColumnType.CATEGORICAL))
    n_tmp = len(columns_of_type(classifications, ColumnType.TEMPORAL))
    if n_num > n_cat:
        return "numerical"
    if n_cat > n_num:
        return "categorical"
    if n_tmp > 0:
        return "temporal"
    return "mixed"


def recommend_model(classifications: dict[str, ColumnClassification], data_type: str) -> str:
    """Best compatible catalogue id for the dominant data type."""
    compatible = {m.id for m in compatible_models(classifications)}
    for model_id in _PREFERENCES.get(data_type, ()):
        if model_id in compatible:
            return model_id
    ordered = [m.id for m in compatible_models(classifications)]
    return ordered[0] if ordered else "scatter3d"


def _local_analysis(dataset: Dataset,
                    classifications: dict[str, ColumnClassification]) -> dict[str, Any]:
    numeric = columns_of_type(classifications, ColumnType.NUMERIC)
    categorical = columns_of_type(classifications, ColumnType.CATEGORICAL)
    data_type = dominant_type(classifications)
    recommended = recommend_model(classifications, data_type)
    model = get_model(recommended)

    return {
        "dataType": data_type,
        "recommendedVisualization": recommended,
        "insights": [
            f"Dataset has {len(dataset)} rows and {len(dataset.columns)} columns",
            f"Main data type: {data_type}",
            f"Numeric columns detected: {', '.join(numeric) or 'none'}",
            f"Categorical columns detected: {', '.join(categorical) or 'none'}",
            f"Recommended visualization: {model.name if model else recommended}",
        ],
        "summary": (f"Automatic analysis of {len(dataset)} rows with "
                    f"{len(dataset.columns)} columns of type {data_type}"),
        "keyColumns": numeric[:2] + categorical[:1],
        "source": "local",
    }


def _analysis_request(dataset: Dataset, classifications: dict[str, ColumnClassification],
                      local: dict[str, Any]) -> str:
    lines = [f"Columns: {', '.join(dataset.columns)}"]
    for col, c in classifications.items():
        lines.append(f"- {col}: {c.kind.value}")
    lines.append(f"Detected data type: {local['dataType']}")
    lines.append(f"Recommended visualization: {local['recommendedVisualization']}")
    lines.append("Sample rows:")
    lines.append(json.dumps(list(dataset.rows[:SAMPLE_ROWS]), indent=2, default=str))
    return "\n".join(lines)


def _merge(local: dict[str, Any], ai: dict[str, Any], columns: tuple[str, ...]) -> dict[str, Any]:
    merged = dict(local)
    insights = ai.get("insights")
    if isinstance(insights, list) and insights:
        merged["insights"] = [str(i) for i in insights]
    summary = ai.get("summary")
    if isinstance(summary, str) and summary.strip():
        merged["summary"] = summary.strip()
    keys = ai.get("keyColumns")
    if isinstance(keys, list):
        known = [k for k in keys if k in columns]
        if known:
            merged["keyColumns"] = known
    merged["source"] = "ai"
    return merged


def analyze_dataset(dataset: Dataset) -> dict[str, Any]:
    """Return ``{dataType, recommendedVisualization, insights, summary, keyColumns, source}``."""
    classifications = classify_columns(dataset)
    local = _local_analysis(dataset, classifications)
    if not is_configured():
        return local

    messages = [
        SystemMessage(content=ANALYSIS_PROMPT),
        HumanMessage(content=_analysis_request(dataset, classifications, local)),
    ]
    try:
        llm = get_llm(model=ANALYSIS_MODEL, temperature=0.0)
    except ValueError as e:
        logger.warning("Analysis model unavailable: {}", e)
        return local

    response, err = invoke_with_timeout(llm.invoke, (messages,))
    if err is not None:
        label = "timed out" if isinstance(err, TimeoutError) else f"error: {type(err).__name__}"
        logger.warning("AI analysis {}; using local analysis", label)
        return local

    try:
        ai = extract_json_object(str(response.content))
    except ValueError:
        logger.warning("AI analysis reply was not JSON; using local analysis")
        return local
    return _merge(local, ai, dataset.columns)
