"""EquiliSolve Engine API — config

Every name other modules import from `config` is defined here with a safe
default, so a missing env var never stops the server from booting.

The AI tutor is OFF unless AI_TUTOR_ENABLED is set; the simulator works
without any provider key.
"""

from __future__ import annotations

import os
import logging
from typing import List, Optional

# -----------------------------
# helpers
# -----------------------------
def _env(key: str, default: str = "") -> str:
    v = os.getenv(key)
    return default if v is None else str(v).strip()

def _env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None or str(v).strip() == "":
        return default
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def _env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or str(v).strip() == "":
        return default
    try:
        return int(str(v).strip())
    except ValueError:
        return default

def _env_float(key: str, default: float) -> float:
    v = os.getenv(key)
    if v is None or str(v).strip() == "":
        return default
    try:
        return float(str(v).strip())
    except ValueError:
        return default

def _env_list(key: str, default: Optional[List[str]] = None, sep: str = ",") -> List[str]:
    if default is None:
        default = []
    v = os.getenv(key)
    if v is None or str(v).strip() == "":
        return list(default)
    return [s.strip() for s in str(v).split(sep) if s.strip()]


# -----------------------------
# logging (must exist for imports)
# -----------------------------
LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger("equilisolve")


# -----------------------------
# core app env
# -----------------------------
ENV = _env("ENV", _env("APP_ENV", "production"))
DEBUG = _env_bool("DEBUG", False)

HOST = _env("HOST", "0.0.0.0")
PORT = _env_int("PORT", 10000)
UVICORN_WORKERS = _env_int("UVICORN_WORKERS", 4)

# Optional shared key for the tutor route
EQS_API_KEY = _env("EQS_API_KEY", "")


# -----------------------------
# AI tutor
# -----------------------------
AI_TUTOR_ENABLED = _env_bool("AI_TUTOR_ENABLED", False)

GEMINI_API_KEY = _env("GEMINI_API_KEY", _env("GOOGLE_API_KEY", _env("API_KEY", "")))
GEMINI_TUTOR_MODEL = _env("GEMINI_TUTOR_MODEL", _env("GEMINI_MODEL", "gemini-3-flash-preview"))

# Tried in order after the tutor model (comma-separated).
GEMINI_FALLBACK_MODELS = _env_list("GEMINI_FALLBACK_MODELS", default=["gemini-2.5-flash", "gemini-2.5-flash-lite"])
GEMINI_TIMEOUT_S = _env_int("GEMINI_TIMEOUT_S", _env_int("GEMINI_TIMEOUT_SECONDS", 40))

TUTOR_TEMPERATURE = _env_float("TUTOR_TEMPERATURE", 0.7)
MAX_QUESTION_CHARS = _env_int("MAX_QUESTION_CHARS", 2000)


# -----------------------------
# rate limiting
# -----------------------------
RATE_LIMIT_WINDOW_SECONDS = _env_int("RATE_LIMIT_WINDOW_SECONDS", 60)
RATE_LIMIT_PER_MINUTE = _env_int("RATE_LIMIT_PER_MINUTE", 20)
RATE_LIMIT_BURST = _env_int("RATE_LIMIT_BURST", 5)


# -----------------------------
# redis (rate-limit counters only)
# -----------------------------
REDIS_URL = _env("REDIS_URL", _env("REDIS_TLS_URL", ""))


# -----------------------------
# circuit breaker
# -----------------------------
CB_FAILURE_THRESHOLD = _env_int("CB_FAILURE_THRESHOLD", 3)
CB_COOLDOWN_S = _env_int("CB_COOLDOWN_S", 20)


# -----------------------------
# CORS
# -----------------------------
# Public classroom tool: "*" unless ALLOWED_ORIGINS narrows it.
ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS", default=["*"])
