import sys
from pathlib import Path

import pytest
import requests

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.insights import llm  # noqa: E402
from backend.insights.llm import ExternalGenerationError, LocalModelClient  # noqa: E402


class DummyResponse:
    def __init__(self, body=None, status_code=200) -> None:
        self._body = body
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(llm.requests, "get", lambda url, timeout: DummyResponse({"models": []}))
    model_client = LocalModelClient("http://llm.local:11434/", "tiny-model", timeout=5)
    model_client.probe()
    return model_client


def test_probe_without_model_leaves_client_unavailable(monkeypatch):
    def fail_get(*_args, **_kwargs):
        raise AssertionError("server must not be contacted without a model")

    monkeypatch.setattr(llm.requests, "get", fail_get)
    model_client = LocalModelClient("http://llm.local:11434", None)

    assert model_client.probe() is False
    assert model_client.available() is False


def test_probe_marks_unreachable_server_unavailable(monkeypatch):
    def refuse(*_args, **_kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(llm.requests, "get", refuse)
    model_client = LocalModelClient("http://llm.local:11434", "tiny-model")

    assert model_client.probe() is False
    assert model_client.available() is False


def test_probe_marks_reachable_server_available(client):
    assert client.available() is True


def test_generate_posts_prompt_without_streaming(client, monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))
        return DummyResponse({"response": "A short summary."})

    monkeypatch.setattr(llm.requests, "post", fake_post)

    assert client.generate("describe") == "A short summary."
    assert calls == [
        (
            "http://llm.local:11434/api/generate",
            {"model": "tiny-model", "prompt": "describe", "stream": False},
            5,
        )
    ]


def test_generate_wraps_timeouts(client, monkeypatch):
    def time_out(*_args, **_kwargs):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(llm.requests, "post", time_out)

    with pytest.raises(ExternalGenerationError):
        client.generate("describe")


def test_generate_wraps_http_errors(client, monkeypatch):
    monkeypatch.setattr(llm.requests, "post", lambda *_a, **_k: DummyResponse({}, status_code=500))

    with pytest.raises(ExternalGenerationError):
        client.generate("describe")


@pytest.mark.parametrize("body", [{}, {"response": None}, ValueError("not json"), ["response"]])
def test_generate_rejects_malformed_bodies(client, monkeypatch, body):
    monkeypatch.setattr(llm.requests, "post", lambda *_a, **_k: DummyResponse(body))

    with pytest.raises(ExternalGenerationError):
        client.generate("describe")


def test_generate_requires_available_client(monkeypatch):
    model_client = LocalModelClient("http://llm.local:11434", "tiny-model")

    with pytest.raises(ExternalGenerationError):
        model_client.generate("describe")
