import asyncio

from subsidy_audit.metrics import Metrics, timed


def test_latency_average_uses_running_totals():
    m = Metrics()
    for ms in (10.0, 20.0, 30.0):
        m.record_latency(ms)

    snap = m.snapshot()
    assert snap["generation_count"] == 3
    assert snap["average_generation_latency_ms"] == 20.0


def test_latency_state_does_not_grow_with_traffic():
    m = Metrics()
    for _ in range(50_000):
        m.record_latency(1.5)

    assert m.latency_count == 50_000
    assert m.latency_total_ms == 75_000.0
    assert not any(isinstance(v, list) for v in vars(m).values())
    assert m.snapshot()["average_generation_latency_ms"] == 1.5


def test_empty_snapshot():
    snap = Metrics().snapshot()
    assert snap["generation_count"] == 0
    assert snap["average_generation_latency_ms"] == 0.0


def test_fallback_reasons_are_counted():
    m = Metrics()
    m.record_fallback("TIMEOUT")
    m.record_fallback("TIMEOUT")
    m.record_fallback("UNCONFIGURED")

    snap = m.snapshot()
    assert snap["counters"]["narratives_fallback"] == 3
    assert snap["fallback_reasons"] == {"TIMEOUT": 2, "UNCONFIGURED": 1}


def test_timed_records_global_latency():
    from subsidy_audit.metrics import metrics

    @timed
    async def work():
        return "done"

    before = metrics.snapshot()["generation_count"]
    assert asyncio.run(work()) == "done"
    assert metrics.snapshot()["generation_count"] == before + 1
