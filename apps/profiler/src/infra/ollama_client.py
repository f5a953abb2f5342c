"""
Ollama REST API client.

Used by the profile classifier to run a single non-streaming completion
against the local model.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from brokerlib.errors import ClassifierError


class OllamaClient:
    """
    Thin wrapper around the Ollama `/api/generate` endpoint.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        logger: logging.Logger,
        timeout_sec: float = 30.0,
        temperature: float = 0.2,
    ) -> None:
        """
        Args:
            base_url: Base URL of the Ollama server (e.g. http://ollama:11434).
            model: Model tag to run (e.g. "llama3.2:1b").
            logger: Logger instance for structured logging.
            timeout_sec: Timeout for the whole HTTP request, in seconds.
            temperature: Sampling temperature.
        """
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._log = logger
        self._timeout = timeout_sec
        self._temperature = temperature

    @property
    def model(self) -> str:
        return self._model

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def generate(self, prompt: str, options: Optional[Dict[str, Any]] = None) -> str:
        """
        Run one completion and return the raw `response` text.

        Raises:
            ClassifierError: unreachable server, timeout, non-2xx status or a
                body without a `response` string.
        """
        url = self._url("/api/generate")
        payload = {
            "model": self._model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self._temperature, **(options or {})},
        }

        try:
            resp = requests.post(url, json=payload, timeout=self._timeout)
        except requests.RequestException as exc:
            self._log.warning(
                "Ollama request failed",
                extra={"url": url, "model": self._model, "error": str(exc)},
            )
            raise ClassifierError("Ollama unreachable.") from exc

        if resp.status_code != 200:
            self._log.warning(
                "Unexpected status code from Ollama",
                extra={"url": url, "status_code": resp.status_code, "body": resp.text[:500]},
            )
            raise ClassifierError(f"Ollama returned HTTP {resp.status_code}.")

        try:
            body = resp.json()
        except ValueError as exc:
            raise ClassifierError("Ollama returned a non-JSON body.") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise ClassifierError("Ollama body has no 'response' text.")
        return text
