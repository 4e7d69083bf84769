"""In-process counters for the case API."""
from __future__ import annotations

import time
from typing import Dict


class Metrics:
    def __init__(self):
        self.counters = {
            "requests_total": 0,
            "activities_logged": 0,
            "analyses_generated": 0,
            "analysis_fallbacks": 0,
        }
        self.latency_total_ms = 0.0
        self.latency_count = 0

    def record_request(self):
        self.counters["requests_total"] += 1

    def record_activity(self):
        self.counters["activities_logged"] += 1

    def record_analysis(self, fallback: bool):
        self.counters["analyses_generated"] += 1
        if fallback:
            self.counters["analysis_fallbacks"] += 1

    def record_latency(self, ms: float):
        self.latency_total_ms += ms
        self.latency_count += 1

    def snapshot(self) -> Dict[str, object]:
        avg_latency = 0.0
        if self.latency_count:
            avg_latency = self.latency_total_ms / self.latency_count
        return {
            "counters": dict(self.counters),
            "average_latency_ms": round(avg_latency, 2),
        }


metrics = Metrics()


def timed(fn):
    def wrapper(*args, **kwargs):
        start = time.time()
        try:
            return fn(*args, **kwargs)
        finally:
            metrics.record_latency((time.time() - start) * 1000)

    return wrapper
