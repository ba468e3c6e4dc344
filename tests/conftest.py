import pytest

import config
import rate_limiter
import redis_store
import tutor_client


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch):
    # No Redis, no real tutor, fresh limiter/circuit for every test.
    monkeypatch.setattr(redis_store, "REDIS_URL", "")
    monkeypatch.setattr(redis_store, "_redis_client", None)
    monkeypatch.setattr(config, "AI_TUTOR_ENABLED", False)
    monkeypatch.setattr(config, "EQS_API_KEY", "")
    rate_limiter.reset()
    tutor_client.reset_circuit()
    yield
    rate_limiter.reset()
    tutor_client.reset_circuit()
