"""
Profile classification through the local Ollama model.

Builds the prompt from a FeatureVector, extracts the JSON answer (tolerating
prose around it) and validates it into a UserProfile. Every failure is a
ClassifierError; the caller decides on the fallback.
"""

import json
import re
import time
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from brokerlib.errors import ClassifierError
from brokerlib.models.features import FeatureVector
from brokerlib.models.profile import PROFILE_GROUPS, UserProfile
from brokerlib.observability import get_classifier_instruments, get_logger, get_tracer

from apps.profiler.src.infra.ollama_client import OllamaClient

SYSTEM_PROMPT = (
    "You are a classifier. Respond with ONLY valid JSON. "
    "No explanations, no markdown, no prose."
)

_classified, _fallbacks, _latency_ms = get_classifier_instruments()


class ProfileClassifier(Protocol):
    def classify(self, features: FeatureVector) -> UserProfile: ...


def classification_prompt(features: FeatureVector) -> str:
    groups = json.dumps(list(PROFILE_GROUPS))
    return f"""
System:
{SYSTEM_PROMPT}

User:
Classify the user into one of {groups} using ONLY these FEATURES.
If uncertain, choose "Balanced".

RESPONSE FORMAT (exact JSON):
{{"profile_type": "string from groups", "confidence": number between 0-1, "signals": ["string", "string"]}}

FEATURES:
{features.model_dump_json()}

EXAMPLE RESPONSE:
{{"profile_type": "Balanced", "confidence": 0.7, "signals": ["moderate activity", "balanced behavior"]}}

Now output the classification:
""".strip()


def safe_parse_json(text: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    text = text.strip()
    try:
        parsed = json.loads(text)
    except ValueError:
        m = re.search(r"\{[^{}]*\}", text, re.S)
        if not m:
            return None
        try:
            parsed = json.loads(m.group(0))
        except ValueError:
            return None
    return parsed if isinstance(parsed, dict) else None


def parse_profile(text: str) -> UserProfile:
    data = safe_parse_json(text)
    if data is None:
        raise ClassifierError("Classifier answer is not JSON.")
    try:
        return UserProfile.model_validate(data)
    except PydanticValidationError as exc:
        raise ClassifierError(f"Classifier answer has an invalid shape: {exc.errors()[0]['msg']}") from exc


class OllamaProfileClassifier:
    """Maps a feature vector to one of the five archetypes via Ollama."""

    def __init__(self, client: OllamaClient) -> None:
        self._client = client
        self._log = get_logger("profiler.classifier")
        self._tracer = get_tracer("profiler.classifier")

    def classify(self, features: FeatureVector) -> UserProfile:
        with self._tracer.start_as_current_span("classify_profile") as span:
            span.set_attribute("ollama.model", self._client.model)
            start = time.perf_counter()
            try:
                profile = parse_profile(self._client.generate(classification_prompt(features)))
            finally:
                _latency_ms.record((time.perf_counter() - start) * 1000)
            span.set_attribute("profile.type", profile.profile_type)

        _classified.add(1, {"profile_type": profile.profile_type})
        self._log.info(
            "Profile classified.",
            extra={"profile_type": profile.profile_type, "confidence": profile.confidence},
        )
        return profile


def record_fallback(reason: str) -> None:
    _fallbacks.add(1, {"reason": reason})
