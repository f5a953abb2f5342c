import logging

import pytest
import requests

from brokerlib.errors import ClassifierError
from brokerlib.models.features import FeatureVector, SessionData

from apps.profiler.src.infra import ollama_client
from apps.profiler.src.infra.ollama_client import OllamaClient
from apps.profiler.src.service.classifier import (
    OllamaProfileClassifier,
    classification_prompt,
    parse_profile,
    safe_parse_json,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


def _features() -> FeatureVector:
    return FeatureVector(
        number_of_clicks_buy=3,
        number_of_clicks_sell=1,
        average_hover_buy_duration=420,
        average_hover_sell_duration=0,
        percentile95_hover_buy_duration=900,
        percentile95_hover_sell_duration=0,
        average_session_duration_ms=60000,
        peak_activity_hour=14,
        total_sessions=2,
        primary_device="MacIntel",
        primary_browser="Mozilla/5.0",
        device_distribution={"MacIntel": 2},
        browser_distribution={"Mozilla/5.0": 2},
        session_data=SessionData(
            total_sessions=2,
            completed_sessions=1,
            session_summaries_count=2,
            session_ends_count=1,
            unique_session_ids=["s1", "s2"],
        ),
    )


def _classifier() -> OllamaProfileClassifier:
    client = OllamaClient(
        base_url="http://ollama:11434/",
        model="llama3.2:1b",
        logger=logging.getLogger("test"),
        timeout_sec=5,
    )
    return OllamaProfileClassifier(client)


def test_safe_parse_json_extracts_embedded_object():
    assert safe_parse_json('{"a": 1}') == {"a": 1}
    assert safe_parse_json('Sure! Here you go: {"a": 1} Hope that helps.') == {"a": 1}
    assert safe_parse_json("no json here") is None
    assert safe_parse_json("[1, 2]") is None
    assert safe_parse_json("") is None


def test_parse_profile_accepts_known_group():
    profile = parse_profile('{"profile_type": "Impulsive", "confidence": 0.9, "signals": ["fast clicks", 3]}')

    assert profile.profile_type == "Impulsive"
    assert profile.signals == ["fast clicks", "3"]


@pytest.mark.parametrize(
    "answer",
    [
        "I think the user is cautious.",
        '{"profile_type": "Reckless", "confidence": 0.9, "signals": []}',
        '{"profile_type": "Balanced", "confidence": 1.7, "signals": []}',
        '{"confidence": 0.4}',
    ],
)
def test_parse_profile_rejects_bad_answers(answer):
    with pytest.raises(ClassifierError):
        parse_profile(answer)


def test_prompt_lists_groups_and_features():
    prompt = classification_prompt(_features())

    for group in ("Cautious", "Balanced", "Opportunistic", "Impulsive", "Exploratory"):
        assert group in prompt
    assert '"number_of_clicks_buy":3' in prompt
    assert 'If uncertain, choose "Balanced".' in prompt


def test_classify_posts_non_streaming_request(monkeypatch):
    captured = {}

    def fake_post(url, json, timeout):
        captured.update(url=url, json=json, timeout=timeout)
        return FakeResponse(
            body={"response": '{"profile_type": "Cautious", "confidence": 0.8, "signals": ["long hovers"]}'}
        )

    monkeypatch.setattr(ollama_client.requests, "post", fake_post)

    profile = _classifier().classify(_features())

    assert profile.profile_type == "Cautious"
    assert captured["url"] == "http://ollama:11434/api/generate"
    assert captured["json"]["model"] == "llama3.2:1b"
    assert captured["json"]["stream"] is False
    assert captured["json"]["options"]["temperature"] == 0.2
    assert captured["timeout"] == 5


def test_classify_raises_on_timeout(monkeypatch):
    def fake_post(*args, **kwargs):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(ollama_client.requests, "post", fake_post)

    with pytest.raises(ClassifierError):
        _classifier().classify(_features())


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=500, text="model not loaded"),
        FakeResponse(body=None),
        FakeResponse(body={"done": True}),
        FakeResponse(body={"response": "I would say Balanced."}),
    ],
)
def test_classify_raises_on_bad_responses(monkeypatch, response):
    monkeypatch.setattr(ollama_client.requests, "post", lambda *a, **kw: response)

    with pytest.raises(ClassifierError):
        _classifier().classify(_features())


def test_profile_service_falls_back_when_ollama_is_down(store, monkeypatch):
    from apps.profiler.src.service.profile_service import ProfileService

    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(ollama_client.requests, "post", fake_post)
    profiles = ProfileService(store, _classifier(), logging.getLogger("test"))

    result = profiles.generate_profile("u1")

    assert result.profile.profile_type == "Balanced"
    assert result.profile.confidence == 0.5
    assert result.profile.signals == ["fallback"]
