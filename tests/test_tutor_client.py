from types import SimpleNamespace

import pytest

import config
import tutor_client
from tutor_client import (
    TUTOR_DISABLED_MESSAGE,
    TUTOR_EMPTY_MESSAGE,
    GeminiTutorClient,
    TutorCircuitOpen,
    TutorUnavailable,
    get_tutor_response,
)


class FakeClient:
    def __init__(self, text="Qsp > Ksp, so a precipitate forms."):
        self.text = text
        self.prompts = []

    def generate_text(self, prompt, model=None):
        self.prompts.append(prompt)
        return self.text


def _bare_client(calls):
    """GeminiTutorClient without a real SDK client; model calls go to `calls`."""
    client = object.__new__(GeminiTutorClient)
    client._call_generate_content = calls
    return client


def test_disabled_tutor_never_calls_provider():
    fake = FakeClient()
    assert get_tutor_response("What is Ksp?", "ctx", client=fake) == TUTOR_DISABLED_MESSAGE
    assert fake.prompts == []


def test_enabled_tutor_sends_context_and_question(monkeypatch):
    monkeypatch.setattr(config, "AI_TUTOR_ENABLED", True)
    fake = FakeClient()
    answer = get_tutor_response("  Why is it cloudy? ", "The student is looking at AgCl.", client=fake)
    assert answer == fake.text
    assert "Context: The student is looking at AgCl." in fake.prompts[0]
    assert "Student: Why is it cloudy?" in fake.prompts[0]


def test_empty_reply_gets_placeholder(monkeypatch):
    monkeypatch.setattr(config, "AI_TUTOR_ENABLED", True)
    assert get_tutor_response("hi", "ctx", client=FakeClient(text="")) == TUTOR_EMPTY_MESSAGE


def test_blank_question_rejected(monkeypatch):
    monkeypatch.setattr(config, "AI_TUTOR_ENABLED", True)
    with pytest.raises(ValueError):
        get_tutor_response("   ", "ctx", client=FakeClient())


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(config, "GEMINI_API_KEY", "")
    with pytest.raises(TutorUnavailable):
        GeminiTutorClient()


def test_candidate_models_dedupe_and_normalize(monkeypatch):
    monkeypatch.setattr(config, "GEMINI_TUTOR_MODEL", "models/tutor-a")
    monkeypatch.setattr(config, "GEMINI_FALLBACK_MODELS", ["tutor-b", "tutor-a", ""])
    assert tutor_client._candidate_models("tutor-b") == ["tutor-b", "tutor-a"]


def test_falls_back_to_next_model(monkeypatch):
    monkeypatch.setattr(config, "GEMINI_TUTOR_MODEL", "tutor-a")
    monkeypatch.setattr(config, "GEMINI_FALLBACK_MODELS", ["tutor-b"])
    seen = []

    def calls(model, prompt):
        seen.append(model)
        if model == "tutor-a":
            raise RuntimeError("404 model not found")
        return SimpleNamespace(text="  Adding Cl- shifts the equilibrium left.  ")

    out = _bare_client(calls).generate_text("prompt")
    assert out == "Adding Cl- shifts the equilibrium left."
    assert seen == ["tutor-a", "tutor-b"]


def test_circuit_opens_after_repeated_failures(monkeypatch):
    monkeypatch.setattr(config, "GEMINI_TUTOR_MODEL", "tutor-a")
    monkeypatch.setattr(config, "GEMINI_FALLBACK_MODELS", [])
    monkeypatch.setattr(config, "CB_FAILURE_THRESHOLD", 1)
    monkeypatch.setattr(config, "CB_COOLDOWN_S", 60)

    def calls(model, prompt):
        raise RuntimeError("quota exceeded")

    client = _bare_client(calls)
    with pytest.raises(TutorUnavailable):
        client.generate_text("prompt")
    with pytest.raises(TutorCircuitOpen):
        client.generate_text("prompt")

    tutor_client.reset_circuit()
    with pytest.raises(TutorUnavailable) as exc:
        client.generate_text("prompt")
    assert not isinstance(exc.value, TutorCircuitOpen)
