"""Client for a local Ollama-compatible text-generation server."""
from __future__ import annotations

import logging
import os
from typing import Optional

import requests

logger = logging.getLogger(__name__)

LOCAL_MODEL = os.environ.get("INSIGHTS_LOCAL_MODEL") or None
LOCAL_LLM_URL = os.environ.get("INSIGHTS_LOCAL_LLM_URL", "http://localhost:11434")
LLM_TIMEOUT_SECONDS = float(os.environ.get("INSIGHTS_LLM_TIMEOUT_SECONDS", "30"))


class ExternalGenerationError(Exception):
    """Raised when the local model cannot produce a response."""


class LocalModelClient:
    """Talks to ``/api/generate`` on a local model server.

    The client starts out unavailable; :meth:`probe` marks it available once
    a model is configured and the server answers.
    """

    def __init__(self, base_url: str, model: Optional[str], timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self._available = False

    def available(self) -> bool:
        return self._available

    def probe(self) -> bool:
        if not self.model:
            logger.warning("Local model is not configured, using rule-based explanations")
            self._available = False
            return False

        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("Local model server at %s is unreachable: %s", self.base_url, exc)
            self._available = False
            return False

        logger.info("Using local model %s at %s", self.model, self.base_url)
        self._available = True
        return True

    def generate(self, prompt: str) -> str:
        if not self._available:
            raise ExternalGenerationError("Local model is not available")

        try:
            response = requests.post(
                f"{self.base_url}/api/generate",
                json={"model": self.model, "prompt": prompt, "stream": False},
                timeout=self.timeout,
            )
            response.raise_for_status()
            text = response.json()["response"]
        except requests.RequestException as exc:
            raise ExternalGenerationError(f"Local model request failed: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalGenerationError("Local model returned a malformed response") from exc

        if not isinstance(text, str):
            raise ExternalGenerationError("Local model returned a malformed response")
        return text


def client_from_env() -> LocalModelClient:
    return LocalModelClient(LOCAL_LLM_URL, LOCAL_MODEL, timeout=LLM_TIMEOUT_SECONDS)
