"""Tests for the FastAPI endpoints (hosted model disabled)."""

import json

import pytest
from fastapi.testclient import TestClient

from src.api.main import app, reset_session

CSV = b"a,b,c,group\n1,2,3,alpha\n4,5,6,beta\n7,8,9,alpha\n"


@pytest.fixture
def client(offline):
    reset_session()
    with TestClient(app) as c:
        yield c
    reset_session()


def _upload(client, content=CSV, name="data.csv"):
    return client.post("/api/upload", files={"file": (name, content, "text/csv")})


def _events(body):
    return [json.loads(block[len("data: "):]) for block in body.split("\n\n") if block.strip()]


def test_health(client):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["ai_configured"] is False
    assert body["dataset_loaded"] is False


def test_empty_state(client):
    assert client.get("/api/dataset").json() == {"loaded": False, "columns": [], "rows": 0}
    for path in ("/api/visualize", "/api/analyze", "/api/generate-visualization"):
        response = client.post(path, json={})
        assert response.status_code == 409
        assert "error" in response.json()


def test_demo_visualization_without_upload(client):
    response = client.post("/api/visualize", json={"model_id": "galaxy_3d", "demo": True})
    assert response.status_code == 200
    assert response.json()["description"].startswith("Demo data.")


def test_upload_and_dataset(client):
    response = _upload(client)
    assert response.status_code == 200
    body = response.json()
    assert body["rows"] == 3
    assert body["columns"] == ["a", "b", "c", "group"]
    assert body["mapping"]["categoryBy"] == "group"
    assert "scatter3d" in body["compatible_models"]

    dataset = client.get("/api/dataset").json()
    assert dataset["loaded"] is True
    assert dataset["filename"] == "data.csv"


def test_bad_upload_keeps_previous_dataset(client):
    _upload(client)
    response = _upload(client, content=b"", name="empty.csv")
    assert response.status_code == 400
    assert "empty" in response.json()["error"]
    assert client.get("/api/dataset").json()["filename"] == "data.csv"


def test_models_catalogue(client):
    before = client.get("/api/models").json()
    assert before["total"] == len(before["models"])
    flags = {m["id"]: m["compatible"] for m in before["models"]}
    assert flags["scatter3d"] is False

    _upload(client)
    after = {m["id"]: m["compatible"] for m in client.get("/api/models").json()["models"]}
    assert after["scatter3d"] is True

    found = client.get("/api/models", params={"search": "galaxy"}).json()
    assert [m["id"] for m in found["models"]] == ["galaxy_3d"]


def test_visualize_session_dataset(client):
    _upload(client)
    body = client.post("/api/visualize", json={"model_id": "scatter_bubble"}).json()
    assert body["type"] == "scatter_bubble"
    assert len(body["config"]["data"][0]["x"]) == 3
    assert client.get("/api/dataset").json()["selected_model"] == "scatter_bubble"


def test_generate_visualization_with_body_data(client):
    payload = {
        "data": [{"x": "1", "y": "2", "z": "3"}, {"x": "2", "y": "3", "z": "4"}],
        "columns": ["x", "y", "z"],
        "userRequest": "surface3d",
    }
    body = client.post("/api/generate-visualization", json=payload).json()
    assert body["source"] == "fallback"
    assert body["type"] == "surface3d"


def test_analyze(client):
    _upload(client)
    body = client.post("/api/analyze").json()
    assert body["source"] == "local"
    assert body["dataType"] == "numerical"


def test_chat_stream(client):
    _upload(client)
    response = client.post("/api/chat", json={
        "messages": [{"role": "user", "content": "Turn this into a galaxy"}],
    })
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _events(response.text)
    assert events[0]["type"] == "token"
    done = events[-1]
    assert done["type"] == "done"
    assert done["visualization_type"] == "galaxy_3d"
    assert "VISUALIZATION_TYPE" not in done["message"]
    assert client.get("/api/dataset").json()["selected_model"] == "galaxy_3d"


def test_chat_without_dataset(client):
    response = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    done = _events(response.text)[-1]
    assert done["visualization_type"] is None
    assert "Upload a CSV" in done["message"]


def test_upload_classification_is_reused(client, monkeypatch):
    _upload(client)

    def fail(dataset):
        raise AssertionError("classified again")

    monkeypatch.setattr("src.api.main.classify_columns", fail)
    monkeypatch.setattr("src.data_pipeline.csv_loader.classify_columns", fail)
    assert client.get("/api/dataset").json()["rows"] == 3
    models = client.get("/api/models").json()["models"]
    assert {m["id"]: m["compatible"] for m in models}["scatter3d"] is True
