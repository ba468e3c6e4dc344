"""
tests/test_rate_limiter.py - per-scope request budgets (in-process and shared counter).
"""

import pytest

import config
import rate_limiter


@pytest.fixture
def five_per_window(monkeypatch):
    monkeypatch.setattr(config, "RATE_LIMIT_PER_MINUTE", 4)
    monkeypatch.setattr(config, "RATE_LIMIT_BURST", 1)
    monkeypatch.setattr(config, "RATE_LIMIT_WINDOW_SECONDS", 60)
    monkeypatch.setattr(config, "UVICORN_WORKERS", 1)


def test_budget_applies_per_scope_and_client(five_per_window):
    assert [rate_limiter.is_allowed("1.2.3.4", scope="tutor") for _ in range(6)] == [True] * 5 + [False]

    # Another route and another client each keep their own count.
    assert rate_limiter.is_allowed("1.2.3.4", scope="simulate") is True
    assert rate_limiter.is_allowed("5.6.7.8", scope="tutor") is True


def test_window_rollover_restores_budget(five_per_window, monkeypatch):
    now = [1_000_000.0]
    monkeypatch.setattr(rate_limiter.time, "time", lambda: now[0])

    for _ in range(5):
        assert rate_limiter.is_allowed("1.2.3.4")
    assert rate_limiter.is_allowed("1.2.3.4") is False

    now[0] += 61
    assert rate_limiter.is_allowed("1.2.3.4") is True


def test_shared_counter_key_carries_scope(five_per_window, monkeypatch):
    seen = []

    def fake_incr(key, ttl_seconds):
        seen.append((key, ttl_seconds))
        return len(seen)

    monkeypatch.setattr(rate_limiter, "redis_incr_with_ttl", fake_incr)

    results = [rate_limiter.is_allowed("9.9.9.9", scope="tutor") for _ in range(6)]
    assert results == [True] * 5 + [False]
    assert all(key.startswith("rl:tutor:9.9.9.9:") and ttl == 60 for key, ttl in seen)
