"""rate_limiter.py - per-route, per-client request budgets.

`is_allowed(ip, scope)` counts requests for one route scope ("tutor", ...)
in fixed windows of RATE_LIMIT_WINDOW_SECONDS:
1. Redis INCR + EXPIRE when REDIS_URL is set, so every worker shares one count
2. Otherwise an in-process bucket per (scope, ip), with the budget split
   across UVICORN_WORKERS
Scopes never share a budget.
"""

from __future__ import annotations

import time
import logging
from typing import Dict, Tuple

import config
from redis_store import incr_with_ttl as redis_incr_with_ttl

logger = logging.getLogger("equilisolve.rate_limiter")

DEFAULT_SCOPE = "tutor"

# {(scope, ip): (window_start_epoch, count)}
_BUCKETS: Dict[Tuple[str, str], Tuple[float, int]] = {}
_calls_since_sweep = 0


def _window_budget() -> Tuple[int, int]:
    limit = config.RATE_LIMIT_PER_MINUTE + config.RATE_LIMIT_BURST
    window_s = max(1, int(config.RATE_LIMIT_WINDOW_SECONDS))
    return limit, window_s


def is_allowed(ip: str, scope: str = DEFAULT_SCOPE) -> bool:
    limit, window_s = _window_budget()
    now = time.time()

    window_id = int(now // window_s)
    shared = redis_incr_with_ttl(f"rl:{scope}:{ip}:{window_id}", window_s)
    if shared is not None:
        if shared > limit:
            logger.info("Rate limited %s on %s (shared count %d)", ip, scope, shared)
            return False
        return True

    return _take_local(scope, ip, now, limit, window_s)


def _take_local(scope: str, ip: str, now: float, limit: int, window_s: int) -> bool:
    global _calls_since_sweep
    _calls_since_sweep += 1
    if _calls_since_sweep >= 100:
        _calls_since_sweep = 0
        _sweep_expired(now, window_s)

    local_limit = max(5, limit // max(1, config.UVICORN_WORKERS))
    key = (scope, ip)
    start, used = _BUCKETS.get(key, (now, 0))
    if now - start >= window_s:
        start, used = now, 0

    if used >= local_limit:
        _BUCKETS[key] = (start, used)
        logger.info("Rate limited %s on %s (%d in window)", ip, scope, used)
        return False

    _BUCKETS[key] = (start, used + 1)
    return True


def reset() -> None:
    """Forget every in-process bucket."""
    global _calls_since_sweep
    _BUCKETS.clear()
    _calls_since_sweep = 0


def _sweep_expired(now: float, window_s: int) -> None:
    for key in [k for k, (start, _) in _BUCKETS.items() if now - start > window_s * 2]:
        _BUCKETS.pop(key, None)
