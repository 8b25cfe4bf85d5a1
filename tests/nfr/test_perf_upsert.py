"""
NFR: upsert throughput and latency

How to run (opt-in):
    RUN_NFR=1 pytest tests/nfr/test_perf_upsert.py -vv
Optional thresholds:
    NFR_TARGET_UPSERT_QPS=1000     # assert upsert QPS >= 1000 (example)
    NFR_TARGET_UPSERT_P95_MS=5     # assert p95 latency per upsert <= 5 ms

Notes:
    - Runs against the in-memory and SQLite file backends.
    - Does not assert unless env vars are set.
"""

import os
import statistics
import time

import pytest

pytestmark = pytest.mark.nfr


def _should_run():
    return os.getenv("RUN_NFR") == "1"


@pytest.mark.skipif(not _should_run(), reason="NFR tests are opt-in; set RUN_NFR=1 to enable")
@pytest.mark.parametrize("backend", ["memory", "sqlite-file"])
def test_upsert_throughput_and_latency(backend, make_store, capsys):
    storage = make_store(backend)

    n = 2000
    latencies_ms = []
    t0 = time.perf_counter()
    for i in range(n):
        s = time.perf_counter()
        storage.upsert(f"p{i:07d}", f"https://example.com/resource/{i}")
        latencies_ms.append((time.perf_counter() - s) * 1000.0)
    total_s = time.perf_counter() - t0

    qps = n / total_s
    p95 = statistics.quantiles(latencies_ms, n=100)[94]

    qps_target = os.getenv("NFR_TARGET_UPSERT_QPS")
    p95_target_ms = os.getenv("NFR_TARGET_UPSERT_P95_MS")
    if qps_target:
        assert qps >= float(qps_target), f"Upsert QPS {qps:.1f} < target {qps_target}"
    if p95_target_ms:
        assert p95 <= float(p95_target_ms), f"Upsert p95 {p95:.2f}ms > target {p95_target_ms}ms"

    with capsys.disabled():
        print(f"\n[{backend}] upsert N={n} -> total {total_s:.3f}s, QPS={qps:.1f}, p95={p95:.2f}ms", flush=True)


@pytest.mark.skipif(not _should_run(), reason="NFR tests are opt-in; set RUN_NFR=1 to enable")
def test_bloom_short_circuits_misses(storage):
    from slink_store.errors import NotFound
    from slink_store.manager.slink_manager import SlinkManager

    manager = SlinkManager(storage=storage)
    for i in range(1000):
        manager.shorten(f"https://example.com/{i}")
    manager.rebuild_bloom(capacity=2000, error_rate=0.01)

    hits_storage = 0
    real_resolve = storage.resolve

    def counting(code):
        nonlocal hits_storage
        hits_storage += 1
        return real_resolve(code)

    storage.resolve = counting
    for i in range(5000):
        with pytest.raises(NotFound):
            manager.resolve(f"missing{i}")
    assert hits_storage < 250
