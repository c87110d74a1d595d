"""In-process worker metrics, served at ``/metrics/summary``.

Counters:
- ``step_execution_total{action,status}``
- ``run_total{status}``
- ``pool_rejections_total``
- ``cancellations_total``

Histograms:
- ``run_duration_seconds{status}``
"""

from __future__ import annotations

import math
from collections import defaultdict, deque
from typing import Any

# A long-lived worker keeps only the most recent observations per series
HISTOGRAM_WINDOW = 1000

Labels = dict[str, str] | None


def metric_key(name: str, labels: Labels = None) -> str:
    """``name{k=v,...}`` with labels sorted, or the bare name."""
    if not labels:
        return name
    return name + "{" + ",".join(f"{k}={labels[k]}" for k in sorted(labels)) + "}"


def _summarize(values: list[float]) -> dict[str, Any]:
    if not values:
        return {"count": 0, "sum": 0, "min": 0, "max": 0, "avg": 0, "p95": 0}
    ordered = sorted(values)
    total = sum(ordered)
    rank = max(math.ceil(0.95 * len(ordered)), 1)
    return {
        "count": len(ordered),
        "sum": total,
        "min": ordered[0],
        "max": ordered[-1],
        "avg": total / len(ordered),
        "p95": ordered[rank - 1],
    }


class MetricsCollector:
    def __init__(self, window: int = HISTOGRAM_WINDOW) -> None:
        self.window = window
        self.counters: dict[str, int] = defaultdict(int)
        self.histograms: dict[str, deque[float]] = {}

    def increment_counter(self, name: str, value: int = 1, labels: Labels = None) -> None:
        self.counters[metric_key(name, labels)] += value

    def observe_histogram(self, name: str, value: float, labels: Labels = None) -> None:
        key = metric_key(name, labels)
        series = self.histograms.get(key)
        if series is None:
            series = self.histograms[key] = deque(maxlen=self.window)
        series.append(value)

    def get_counter(self, name: str, labels: Labels = None) -> int:
        return self.counters.get(metric_key(name, labels), 0)

    def get_histogram_stats(self, name: str, labels: Labels = None) -> dict[str, Any]:
        return _summarize(list(self.histograms.get(metric_key(name, labels), ())))

    def get_all_metrics(self) -> dict[str, Any]:
        return {
            "counters": dict(self.counters),
            "histograms": {key: _summarize(list(vals)) for key, vals in self.histograms.items()},
        }

    def reset(self) -> None:
        self.counters.clear()
        self.histograms.clear()


metrics = MetricsCollector()


def record_run_completed(duration_seconds: float, status: str) -> None:
    """Count a finished execution and observe its wall time."""
    labels = {"status": status}
    metrics.increment_counter("run_total", labels=labels)
    metrics.observe_histogram("run_duration_seconds", duration_seconds, labels=labels)


def record_step_execution(action_type: str, status: str) -> None:
    metrics.increment_counter(
        "step_execution_total", labels={"action": action_type, "status": status}
    )


def record_pool_rejection() -> None:
    metrics.increment_counter("pool_rejections_total")


def record_cancellation() -> None:
    metrics.increment_counter("cancellations_total")


def get_metrics_summary() -> dict[str, Any]:
    return metrics.get_all_metrics()
