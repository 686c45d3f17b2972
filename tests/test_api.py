import json

import httpx
import pytest
from fastapi.testclient import TestClient

from textlabel.api import app, get_labeler
from textlabel.config import ENV
from textlabel.errors import EmptyResponse, UpstreamFailure
from textlabel.labeler import Labeler
from textlabel.llm_client import LLMResult, OpenAIClient


class FakeClient:
    model = "fake"

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = 0

    def chat(self, system, user, temperature=0.0, top_p=1.0, seed=None, json_mode=True):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return LLMResult(content=self.content, usage={})


@pytest.fixture
def fake():
    return FakeClient()


@pytest.fixture
def client(fake):
    app.dependency_overrides[get_labeler] = lambda: Labeler(client=fake)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_tasks(client):
    data = client.get("/api/tasks").json()
    names = [t["name"] for t in data["tasks"]]
    assert names == ["sentiment analysis", "intent classification", "user signal classification"]
    assert data["tasks"][0]["cardinality"] == "single"
    assert data["modes"] == ["zero-shot", "few-shot"]


def test_label_success(client, fake):
    fake.content = json.dumps(
        {
            "task": "user signal classification",
            "label": ["frustration_signal", "workaround_seeking"],
            "confidence": 0.79,
            "ambiguity_detected": False,
            "review_recommended": False,
        }
    )
    resp = client.post(
        "/api/label",
        json={
            "task": "user signal classification",
            "mode": "zero-shot",
            "text": "This is getting really annoying. Is there any workaround?",
        },
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "task": "user signal classification",
        "label": ["frustration_signal", "workaround_seeking"],
        "confidence": 0.79,
        "ambiguity_detected": False,
        "review_recommended": False,
    }


def test_sentiment_label_is_a_string(client, fake):
    fake.content = json.dumps({"label": ["complaint"], "confidence": 0.9})
    resp = client.post("/api/label", json={"task": "sentiment analysis", "mode": "few-shot", "text": "ok"})
    body = resp.json()
    assert body["label"] == "neutral"
    assert body["ambiguity_detected"] is True
    assert body["review_recommended"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {"task": "sentiment analysis", "mode": "zero-shot"},
        {"task": "sentiment analysis", "mode": "zero-shot", "text": ""},
        {"mode": "zero-shot", "text": "hi"},
        {"task": "nonsense", "text": None},
        {},
    ],
)
def test_missing_fields_are_400(client, fake, payload):
    resp = client.post("/api/label", json=payload)
    assert resp.status_code == 400
    assert "Missing required fields" in resp.json()["error"]
    assert fake.calls == 0


def test_unknown_task_is_400(client):
    resp = client.post("/api/label", json={"task": "topic", "mode": "zero-shot", "text": "hi"})
    assert resp.status_code == 400
    assert "Unknown task" in resp.json()["error"]


def test_non_json_body_is_400(client):
    resp = client.post("/api/label", content="task=x", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_missing_key_is_500(monkeypatch):
    monkeypatch.setattr(ENV, "openai_key", "")
    with TestClient(app) as c:
        resp = c.post("/api/label", json={"task": "intent classification", "mode": "zero-shot", "text": "hi"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "OpenAI API key not configured"}


@pytest.mark.parametrize(
    "error,message",
    [
        (EmptyResponse("No response from OpenAI"), "No response from OpenAI"),
        (UpstreamFailure("OpenAI error 429 on /chat/completions"), "OpenAI error 429 on /chat/completions"),
    ],
)
def test_upstream_errors_are_500(client, fake, error, message):
    fake.error = error
    resp = client.post("/api/label", json={"task": "intent classification", "mode": "zero-shot", "text": "hi"})
    assert resp.status_code == 500
    assert resp.json() == {"error": message}


def test_malformed_completion_is_500(client, fake):
    fake.content = "positive"
    resp = client.post("/api/label", json={"task": "sentiment analysis", "mode": "zero-shot", "text": "hi"})
    assert resp.status_code == 500
    assert "non-JSON" in resp.json()["error"]


@pytest.mark.parametrize(
    "body",
    [
        [],
        {"choices": [{"message": "hi"}]},
        {"choices": [{"message": {"content": ["x"]}}]},
    ],
)
def test_unexpected_completion_shape_is_json_error(body):
    upstream = OpenAIClient(
        api_key="sk-test",
        base_url="https://llm.test/v1",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)),
    )
    app.dependency_overrides[get_labeler] = lambda: Labeler(client=upstream)
    try:
        resp = TestClient(app).post(
            "/api/label", json={"task": "intent classification", "mode": "zero-shot", "text": "hi"}
        )
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert "Unexpected completion body" in resp.json()["error"]


def test_unexpected_exception_is_json_error(fake):
    fake.error = RuntimeError("socket closed")
    app.dependency_overrides[get_labeler] = lambda: Labeler(client=fake)
    try:
        resp = TestClient(app, raise_server_exceptions=False).post(
            "/api/label", json={"task": "intent classification", "mode": "zero-shot", "text": "hi"}
        )
    finally:
        app.dependency_overrides.clear()
    assert resp.status_code == 500
    assert resp.json() == {"error": "socket closed"}
