"""Eidos FastAPI backend.

Accepts CSV uploads, serves the visualization catalogue, computes Plotly
3D figures for the selected model and streams chat replies to the
Plotly.js frontend.

Run with:
    uvicorn src.api.main:app --reload --port 8000
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Iterator

from dotenv import load_dotenv
from fastapi import FastAPI, File, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from loguru import logger
from pydantic import BaseModel

load_dotenv()

from src.agent.analysis import analyze_dataset  # noqa: E402
from src.agent.chat import detect_visualization_request, stream_chat, strip_directive  # noqa: E402
from src.agent.llm import DEFAULT_MODEL, is_configured  # noqa: E402
from src.agent.viz_generator import generate_visualization  # noqa: E402
from src.data_pipeline.csv_loader import UploadError, load_csv, profile_dataset  # noqa: E402
from src.logging_setup import setup_logging  # noqa: E402
from src.viz.catalogue import CATALOGUE, catalogue_entries, compatible_models, list_categories  # noqa: E402
from src.viz.classifier import classify_columns  # noqa: E402
from src.viz.generators import render_demo, render_visualization  # noqa: E402
from src.viz.mapping import resolve_mapping  # noqa: E402
from src.viz.types import ColumnClassification, Dataset  # noqa: E402

MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", "20"))

setup_logging()

app = FastAPI(
    title="Eidos API",
    description="3D data visualization backend",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Session state: one dataset at a time, replaced wholesale on upload.
# Classifications are computed once per upload and kept alongside it.
# ---------------------------------------------------------------------------
_session: dict[str, Any] = {
    "dataset": None, "classifications": None, "filename": None, "model_id": "scatter3d",
}

_NO_DATASET = "No dataset loaded. Upload a CSV file first."


def reset_session() -> None:
    _session.update({
        "dataset": None, "classifications": None, "filename": None, "model_id": "scatter3d",
    })


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message})


def _summary(dataset: Dataset) -> dict[str, Any]:
    classifications = _session["classifications"]
    return {
        "filename": _session["filename"],
        "columns": list(dataset.columns),
        "rows": len(dataset),
        "profile": profile_dataset(dataset, classifications),
        "mapping": resolve_mapping(classifications).to_dict(),
        "compatible_models": [m.id for m in compatible_models(classifications)],
        "selected_model": _session["model_id"],
    }


def _load_upload(content: bytes) -> tuple[Dataset, dict[str, ColumnClassification]]:
    dataset = load_csv(content)
    return dataset, classify_columns(dataset)


def _request_dataset(data: list[dict[str, Any]] | None,
                     columns: list[str] | None) -> Dataset | None:
    """Dataset sent with the request, else the session dataset."""
    if data:
        rows = [r for r in data if isinstance(r, dict)]
        return Dataset.from_records(rows, columns)
    return _session["dataset"]


class VisualizeRequest(BaseModel):
    model_id: str = "scatter3d"
    demo: bool = False


class GenerateRequest(BaseModel):
    data: list[dict[str, Any]] | None = None
    columns: list[str] | None = None
    userRequest: str = "scatter3d"


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessage]
    data: list[dict[str, Any]] | None = None
    columns: list[str] | None = None


@app.post("/api/upload")
async def upload_csv(file: UploadFile = File(...)):
    """Parse an uploaded CSV and make it the session dataset.

    On error the previous dataset stays in place.
    """
    content = await file.read()
    if len(content) > MAX_UPLOAD_MB * 1024 * 1024:
        return _error(413, f"File too large (limit {MAX_UPLOAD_MB:g} MB).")
    loop = asyncio.get_event_loop()
    try:
        dataset, classifications = await loop.run_in_executor(None, _load_upload, content)
    except UploadError as e:
        logger.info("Rejected upload {}: {}", file.filename, e)
        return _error(400, str(e))

    _session.update({
        "dataset": dataset, "classifications": classifications,
        "filename": file.filename, "model_id": "scatter3d",
    })
    logger.info("Session dataset replaced by {} ({} rows)", file.filename, len(dataset))
    return _summary(dataset)


@app.get("/api/dataset")
async def current_dataset():
    """Summary of the session dataset, or the empty state."""
    dataset = _session["dataset"]
    if dataset is None:
        return {"loaded": False, "columns": [], "rows": 0}
    return {"loaded": True, **_summary(dataset)}


@app.get("/api/models")
async def list_models(search: str = "", category: str | None = None,
                      compatible_only: bool = False):
    """Visualization catalogue with per-dataset ``compatible`` flags."""
    models = catalogue_entries(_session["classifications"], term=search, category=category,
                               compatible_only=compatible_only)
    return {"models": models, "categories": list_categories(), "total": len(models)}


@app.post("/api/visualize")
async def visualize(request: VisualizeRequest):
    """Local geometry for the session dataset (or the demo dataset)."""
    dataset = _session["dataset"]
    if dataset is None:
        if not request.demo:
            return _error(409, _NO_DATASET)
        return render_demo(request.model_id)

    _session["model_id"] = request.model_id
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, render_visualization, request.model_id, dataset)


@app.post("/api/generate-visualization")
async def generate(request: GenerateRequest):
    """AI-generated Plotly config, or the local fallback for the same type."""
    dataset = _request_dataset(request.data, request.columns)
    if dataset is None:
        return _error(409, _NO_DATASET)

    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(
        None,
        lambda: generate_visualization(list(dataset.rows), list(dataset.columns),
                                       request.userRequest),
    )


@app.post("/api/analyze")
async def analyze():
    """AI-assisted analysis of the session dataset with local defaults."""
    dataset = _session["dataset"]
    if dataset is None:
        return _error(409, _NO_DATASET)
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, analyze_dataset, dataset)


@app.post("/api/chat")
async def chat(request: ChatRequest):
    """Stream the assistant reply via Server-Sent Events.

    Emits ``token`` events while the reply is generated and one ``done``
    event with the cleaned message and the detected visualization type.
    """
    messages = [m.model_dump() for m in request.messages]
    dataset = _request_dataset(request.data, request.columns)
    user_message = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")

    def event_stream() -> Iterator[str]:
        parts: list[str] = []
        for chunk in stream_chat(messages, dataset):
            parts.append(chunk)
            yield f"data: {json.dumps({'type': 'token', 'content': chunk})}\n\n"

        reply = "".join(parts)
        viz_type = detect_visualization_request(reply, user_message)
        if viz_type and dataset is not None:
            _session["model_id"] = viz_type
        done = {"type": "done", "message": strip_directive(reply), "visualization_type": viz_type}
        yield f"data: {json.dumps(done)}\n\n"

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@app.get("/api/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "model": DEFAULT_MODEL,
        "ai_configured": is_configured(),
        "dataset_loaded": _session["dataset"] is not None,
        "catalogue_size": len(CATALOGUE),
    }
