"""
perf_metrics.py - The measurement record and how it is assembled.

Placeholder values (page size, request count, layout shift) are only used
when nothing was observed, and every substituted field is listed in
``PerformanceMetrics.estimated`` so callers can tell them apart from
measurements.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from network_observer import ObservedNetworkState
from perf_score import calculate_performance_score
from web_vitals import ExtractedTiming

logger = logging.getLogger(__name__)

PLACEHOLDER_PAGE_SIZE = (500_000, 2_500_000)
PLACEHOLDER_REQUEST_COUNT = (15, 45)
PLACEHOLDER_CLS_MAX = 0.15

FIELD_KEYS = (
    ("load_time_ms", "loadTime"),
    ("page_size_bytes", "pageSize"),
    ("request_count", "requestCount"),
    ("performance_score", "performanceScore"),
    ("largest_contentful_paint_ms", "largestContentfulPaint"),
    ("cumulative_layout_shift", "cumulativeLayoutShift"),
)


@dataclass(frozen=True)
class PerformanceMetrics:
    load_time_ms: int
    page_size_bytes: int
    request_count: int
    performance_score: int
    largest_contentful_paint_ms: int
    cumulative_layout_shift: float
    estimated: tuple = field(default=(), compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loadTime": int(self.load_time_ms),
            "pageSize": int(self.page_size_bytes),
            "requestCount": int(self.request_count),
            "performanceScore": int(self.performance_score),
            "largestContentfulPaint": int(self.largest_contentful_paint_ms),
            "cumulativeLayoutShift": round(float(self.cumulative_layout_shift), 3),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PerformanceMetrics":
        missing = [key for _, key in FIELD_KEYS if key not in data]
        if missing:
            raise ValueError(f"Missing metrics fields: {', '.join(missing)}")
        return cls(
            load_time_ms=int(data["loadTime"]),
            page_size_bytes=int(data["pageSize"]),
            request_count=int(data["requestCount"]),
            performance_score=int(data["performanceScore"]),
            largest_contentful_paint_ms=int(data["largestContentfulPaint"]),
            cumulative_layout_shift=round(float(data["cumulativeLayoutShift"]), 3),
        )


def assemble_metrics(
    network: ObservedNetworkState,
    timing: ExtractedTiming,
    elapsed_ms: float,
    rng: Optional[random.Random] = None,
) -> PerformanceMetrics:
    rng = rng or random.Random()
    estimated = []

    if timing.cumulative_layout_shift is not None:
        cls = min(1.0, max(0.0, timing.cumulative_layout_shift))
    else:
        cls = rng.random() * PLACEHOLDER_CLS_MAX
        estimated.append("cumulative_layout_shift")
    # Score the value that is reported.
    cls = round(cls, 3)

    score = calculate_performance_score(
        timing.first_contentful_paint_ms,
        timing.largest_contentful_paint_ms,
        cls,
        timing.total_load_time_ms,
    )

    fcp = timing.first_contentful_paint_ms
    if fcp > 0:
        load_time = fcp
        if "first_contentful_paint_ms" in timing.estimated:
            estimated.append("load_time_ms")
    else:
        load_time = elapsed_ms

    if network.total_bytes > 0:
        page_size = network.total_bytes
    else:
        page_size = rng.randrange(*PLACEHOLDER_PAGE_SIZE)
        estimated.append("page_size_bytes")

    if network.request_count > 0:
        request_count = network.request_count
    else:
        request_count = rng.randrange(*PLACEHOLDER_REQUEST_COUNT)
        estimated.append("request_count")

    if "largest_contentful_paint_ms" in timing.estimated:
        estimated.append("largest_contentful_paint_ms")
    if timing.degraded or (
        "first_contentful_paint_ms" in timing.estimated and "total_load_time_ms" in timing.estimated
    ):
        estimated.append("performance_score")

    if estimated:
        logger.info(f"Estimated (not measured) fields: {', '.join(estimated)}")

    return PerformanceMetrics(
        load_time_ms=int(round(load_time)),
        page_size_bytes=int(page_size),
        request_count=int(request_count),
        performance_score=score,
        largest_contentful_paint_ms=int(round(timing.largest_contentful_paint_ms)),
        cumulative_layout_shift=cls,
        estimated=tuple(estimated),
    )
