from backend import analysis
from backend.metrics import Metrics, metrics


def test_snapshot_averages_latency():
    m = Metrics()
    m.record_latency(10)
    m.record_latency(20)
    m.record_analysis(fallback=True)
    snap = m.snapshot()
    assert snap["average_latency_ms"] == 15.0
    assert snap["counters"]["analyses_generated"] == 1
    assert snap["counters"]["analysis_fallbacks"] == 1


def test_latency_kept_as_running_totals():
    m = Metrics()
    for ms in range(1000):
        m.record_latency(ms)
    assert m.latency_count == 1000
    assert m.latency_total_ms == sum(range(1000))
    assert m.snapshot()["average_latency_ms"] == 499.5
    assert not any(isinstance(v, list) for v in vars(m).values())


def test_metrics_endpoint_counts_activity_and_analyses(client, created_case, monkeypatch):
    monkeypatch.setattr(analysis, "USE_MOCK_LLM", True)
    before = metrics.snapshot()["counters"]

    client.post(f"/api/cases/{created_case['id']}/analyze", json={"analysisType": "timeline"})

    after = client.get("/api/metrics").json()["counters"]
    assert after["analyses_generated"] == before["analyses_generated"] + 1
    assert after["analysis_fallbacks"] == before["analysis_fallbacks"]
    assert after["activities_logged"] == before["activities_logged"] + 1
    assert after["requests_total"] > before["requests_total"]
