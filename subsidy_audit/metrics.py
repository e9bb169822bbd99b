"""In-process counters for explanation outcomes and ledger durability."""
from __future__ import annotations

import functools
import threading
import time
from typing import Dict


class Metrics:
    def __init__(self):
        self._lock = threading.Lock()
        self.counters = {
            "requests_total": 0,
            "narratives_generated": 0,
            "narratives_fallback": 0,
            "audit_persisted": 0,
            "audit_degraded": 0,
            "batch_requests": 0,
        }
        self.fallback_reasons: Dict[str, int] = {}
        self.latency_count = 0
        self.latency_total_ms = 0.0

    def _incr(self, key: str):
        with self._lock:
            self.counters[key] = self.counters.get(key, 0) + 1

    def record_request(self):
        self._incr("requests_total")

    def record_generated(self):
        self._incr("narratives_generated")

    def record_fallback(self, reason: str):
        self._incr("narratives_fallback")
        with self._lock:
            self.fallback_reasons[reason] = self.fallback_reasons.get(reason, 0) + 1

    def record_audit_write(self, durability: str):
        self._incr("audit_persisted" if durability == "PERSISTED" else "audit_degraded")

    def record_batch(self):
        self._incr("batch_requests")

    def record_latency(self, ms: float):
        with self._lock:
            self.latency_count += 1
            self.latency_total_ms += ms

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            counters = dict(self.counters)
            reasons = dict(self.fallback_reasons)
            count, total = self.latency_count, self.latency_total_ms
        avg_latency = total / count if count else 0.0
        return {
            "counters": counters,
            "fallback_reasons": reasons,
            "generation_count": count,
            "average_generation_latency_ms": round(avg_latency, 2),
        }


metrics = Metrics()


def timed(fn):
    """Record wall-clock latency of an async callable."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await fn(*args, **kwargs)
        finally:
            metrics.record_latency((time.perf_counter() - start) * 1000)

    return wrapper
