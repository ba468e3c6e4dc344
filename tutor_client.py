"""tutor_client.py - Gemini bridge for the solubility tutor chat.

get_tutor_response(question, context) -> text

- Returns a fixed notice when AI_TUTOR_ENABLED is off (no provider call)
- Tries GEMINI_TUTOR_MODEL, then GEMINI_FALLBACK_MODELS
- Each call is bounded by GEMINI_TIMEOUT_S
- Repeated failures open a circuit breaker for CB_COOLDOWN_S
"""

from __future__ import annotations

import time
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from typing import List, Optional

from google import genai
from google.genai import types

import config
from engine.tutor_context_v1 import TUTOR_SYSTEM_INSTRUCTION, build_tutor_prompt

logger = logging.getLogger("equilisolve.tutor_client")

TUTOR_DISABLED_MESSAGE = "AI tutor is disabled for this deployment."
TUTOR_ERROR_MESSAGE = "Error connecting to the AI tutor. Please check your API key."
TUTOR_EMPTY_MESSAGE = "Sorry, I encountered an error."

# Simple circuit breaker state (module-level; per-process).
_cb_failures = 0
_cb_open_until_ts = 0.0

_executor = ThreadPoolExecutor(max_workers=4)


class TutorUnavailable(RuntimeError):
    """Raised when the tutor provider is misconfigured or does not answer."""


class TutorCircuitOpen(TutorUnavailable):
    pass


def reset_circuit() -> None:
    global _cb_failures, _cb_open_until_ts
    _cb_failures = 0
    _cb_open_until_ts = 0.0


def _guard_circuit() -> None:
    now = time.time()
    if _cb_open_until_ts and now < _cb_open_until_ts:
        raise TutorCircuitOpen("Tutor circuit is temporarily open (cooldown).")


def _record_success() -> None:
    reset_circuit()


def _record_failure() -> None:
    global _cb_failures, _cb_open_until_ts
    _cb_failures += 1
    if _cb_failures >= config.CB_FAILURE_THRESHOLD:
        _cb_open_until_ts = time.time() + config.CB_COOLDOWN_S
        logger.warning("Tutor circuit opened for %ss after %d failures", config.CB_COOLDOWN_S, _cb_failures)


def _normalize_model_name(name: str) -> str:
    # SDK examples sometimes use "models/<name>"; config uses "<name>".
    n = (name or "").strip()
    if n.startswith("models/"):
        n = n[len("models/") :]
    return n


def _candidate_models(model: Optional[str] = None) -> List[str]:
    raw = [model, config.GEMINI_TUTOR_MODEL, *config.GEMINI_FALLBACK_MODELS]
    out: List[str] = []
    for c in raw:
        if not c:
            continue
        n = _normalize_model_name(str(c))
        if n and n not in out:
            out.append(n)
    return out


class GeminiTutorClient:
    def __init__(self, api_key: Optional[str] = None) -> None:
        key = config.GEMINI_API_KEY if api_key is None else api_key
        if not key:
            raise TutorUnavailable("GEMINI_API_KEY is missing.")
        self.client = genai.Client(api_key=key)

    def _call_generate_content(self, model: str, prompt: str):
        return self.client.models.generate_content(
            model=model,
            contents=prompt,
            config=types.GenerateContentConfig(
                system_instruction=TUTOR_SYSTEM_INSTRUCTION,
                temperature=config.TUTOR_TEMPERATURE,
            ),
        )

    def generate_text(self, prompt: str, model: Optional[str] = None) -> str:
        """Plain-text tutor reply; tries each candidate model until one answers."""
        _guard_circuit()

        candidates = _candidate_models(model)
        if not candidates:
            raise TutorUnavailable("No Gemini model configured (GEMINI_TUTOR_MODEL missing).")

        last_exc: Optional[Exception] = None
        for m in candidates:
            try:
                fut = _executor.submit(self._call_generate_content, m, prompt)
                resp = fut.result(timeout=config.GEMINI_TIMEOUT_S)
                text = (getattr(resp, "text", "") or "").strip()
                _record_success()
                return text
            except FuturesTimeoutError:
                last_exc = TimeoutError(f"Gemini request timed out (model={m})")
            except Exception as e:
                # model 404, quota, transport errors: try the next model
                last_exc = e
            logger.warning("Tutor model failed (%s): %s", m, str(last_exc)[:200])

        _record_failure()
        raise TutorUnavailable(f"All tutor models failed. Last error: {last_exc}") from last_exc


def get_tutor_response(question: str, context: str, client: Optional[GeminiTutorClient] = None) -> str:
    if not config.AI_TUTOR_ENABLED:
        return TUTOR_DISABLED_MESSAGE

    q = (question or "").strip()
    if not q:
        raise ValueError("question must not be empty.")

    client = client or GeminiTutorClient()
    text = client.generate_text(build_tutor_prompt(q, context))
    return text or TUTOR_EMPTY_MESSAGE
