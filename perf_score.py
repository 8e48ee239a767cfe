"""
perf_score.py - Threshold-penalty performance score (0-100).

Each metric is judged on its own against a "needs improvement" and a "poor"
threshold. Only the larger applicable penalty is taken per metric.
"""

from __future__ import annotations

# (metric, mid threshold, mid penalty, poor threshold, poor penalty)
SCORE_THRESHOLDS = (
    ("fcp", 1800, 15, 3000, 30),
    ("lcp", 2500, 15, 4000, 30),
    ("cls", 0.10, 10, 0.25, 20),
    ("total_load_time", 3000, 10, 5000, 20),
)


def metric_penalty(value: float, mid: float, mid_penalty: int, poor: float, poor_penalty: int) -> int:
    if value > poor:
        return poor_penalty
    if value > mid:
        return mid_penalty
    return 0


def calculate_performance_score(fcp: float, lcp: float, cls: float, total_load_time: float) -> int:
    values = {"fcp": fcp, "lcp": lcp, "cls": cls, "total_load_time": total_load_time}
    score = 100
    for name, mid, mid_penalty, poor, poor_penalty in SCORE_THRESHOLDS:
        score -= metric_penalty(values[name], mid, mid_penalty, poor, poor_penalty)
    return int(max(0, min(100, round(score))))
