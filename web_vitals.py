"""
web_vitals.py - Paint and navigation timing extraction (FCP, LCP, load, CLS).

Usage:
    # Inside an open browser session, after navigation and the grace wait
    timing = await extract_timing(session)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

import config
from browser_session import BrowserSession, is_session_lost

logger = logging.getLogger(__name__)

FALLBACK_FCP_MS = 1500.0
FALLBACK_LCP_MS = 2500.0
FALLBACK_LOAD_MS = 3000.0
FALLBACK_DCL_MS = 1000.0
LCP_FROM_FCP_FACTOR = 1.3

# Reads the page's own timeline. LCP and CLS only exist as buffered observer
# entries, so the snippet listens for a short window before resolving.
TIMING_SNIPPET = r"""
(observeMs) => {
    return new Promise((resolve) => {
        const out = {
            fcp: null,
            lcp: null,
            cls: null,
            startTime: 0,
            loadEventEnd: 0,
            domContentLoadedEventEnd: 0,
            hasNavigation: false
        };
        try {
            const nav = performance.getEntriesByType('navigation')[0];
            if (nav) {
                out.hasNavigation = true;
                out.startTime = nav.startTime;
                out.loadEventEnd = nav.loadEventEnd;
                out.domContentLoadedEventEnd = nav.domContentLoadedEventEnd;
            }
            const fcpEntry = performance.getEntriesByType('paint')
                .find((entry) => entry.name === 'first-contentful-paint');
            if (fcpEntry) {
                out.fcp = fcpEntry.startTime;
            }
        } catch (e) {
            resolve({error: String(e)});
            return;
        }

        const supported = (PerformanceObserver.supportedEntryTypes || []);

        // LCP
        let lcp = null;
        try {
            new PerformanceObserver((entryList) => {
                const entries = entryList.getEntries();
                if (entries.length) {
                    lcp = entries[entries.length - 1].startTime;
                }
            }).observe({type: 'largest-contentful-paint', buffered: true});
        } catch (e) {}

        // CLS
        let cls = supported.includes('layout-shift') ? 0 : null;
        try {
            new PerformanceObserver((entryList) => {
                for (const entry of entryList.getEntries()) {
                    if (!entry.hadRecentInput) {
                        cls = (cls || 0) + entry.value;
                    }
                }
            }).observe({type: 'layout-shift', buffered: true});
        } catch (e) {}

        setTimeout(() => {
            out.lcp = lcp;
            out.cls = cls;
            resolve(out);
        }, observeMs);
    });
}
"""


@dataclass(frozen=True)
class ExtractedTiming:
    first_contentful_paint_ms: float
    largest_contentful_paint_ms: float
    total_load_time_ms: float
    dom_content_loaded_ms: float
    cumulative_layout_shift: Optional[float] = None
    # Names of fields that hold fallback constants instead of measurements.
    estimated: tuple = ()
    # True when the in-page read failed and every field is a fallback.
    degraded: bool = False


def fallback_timing() -> ExtractedTiming:
    return ExtractedTiming(
        first_contentful_paint_ms=FALLBACK_FCP_MS,
        largest_contentful_paint_ms=FALLBACK_LCP_MS,
        total_load_time_ms=FALLBACK_LOAD_MS,
        dom_content_loaded_ms=FALLBACK_DCL_MS,
        cumulative_layout_shift=None,
        estimated=(
            "first_contentful_paint_ms",
            "largest_contentful_paint_ms",
            "total_load_time_ms",
            "dom_content_loaded_ms",
            "cumulative_layout_shift",
        ),
        degraded=True,
    )


def _positive(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if value != value or value <= 0:
        return None
    return value


def timing_from_entries(raw: Any) -> ExtractedTiming:
    """Apply the fallback rules to whatever the timing snippet returned."""
    if not isinstance(raw, dict) or raw.get("error"):
        return fallback_timing()

    estimated = []

    fcp = _positive(raw.get("fcp"))
    lcp = _positive(raw.get("lcp"))
    if lcp is None:
        lcp = fcp * LCP_FROM_FCP_FACTOR if fcp is not None else FALLBACK_LCP_MS
        estimated.append("largest_contentful_paint_ms")
    if fcp is None:
        fcp = FALLBACK_FCP_MS
        estimated.append("first_contentful_paint_ms")

    start = _positive(raw.get("startTime")) or 0.0
    load_end = _positive(raw.get("loadEventEnd"))
    dcl_end = _positive(raw.get("domContentLoadedEventEnd"))
    load_span = _positive(load_end - start) if load_end is not None else None
    dcl_span = _positive(dcl_end - start) if dcl_end is not None else None

    if load_span is not None:
        total = load_span
    elif dcl_span is not None:
        total = dcl_span
    else:
        total = FALLBACK_LOAD_MS
        estimated.append("total_load_time_ms")

    if dcl_span is None:
        dcl_span = FALLBACK_DCL_MS
        estimated.append("dom_content_loaded_ms")

    cls = raw.get("cls")
    if isinstance(cls, bool) or not isinstance(cls, (int, float)) or cls != cls or cls < 0:
        cls = None
        estimated.append("cumulative_layout_shift")

    return ExtractedTiming(
        first_contentful_paint_ms=fcp,
        largest_contentful_paint_ms=lcp,
        total_load_time_ms=total,
        dom_content_loaded_ms=dcl_span,
        cumulative_layout_shift=float(cls) if cls is not None else None,
        estimated=tuple(estimated),
        degraded=False,
    )


async def extract_timing(
    session: BrowserSession,
    observe_ms: int = config.OBSERVE_WINDOW_MS,
    evaluate_timeout_ms: int = config.EVALUATE_TIMEOUT_MS,
) -> ExtractedTiming:
    """
    Read timing entries from the page. Never fails the measurement: any
    in-page problem degrades to the fallback set. Only a lost session
    propagates, because there is no page left to measure.
    """
    logger.info("Collecting performance metrics...")
    try:
        raw = await asyncio.wait_for(
            session.page.evaluate(TIMING_SNIPPET, observe_ms),
            timeout=(observe_ms + evaluate_timeout_ms) / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning("Performance evaluation timed out, using fallback timings")
        return fallback_timing()
    except Exception as e:
        if is_session_lost(e):
            raise
        logger.warning(f"Performance evaluation error: {e}")
        return fallback_timing()

    timing = timing_from_entries(raw)
    if timing.degraded:
        logger.warning(f"Performance entries unavailable: {raw!r}")
    return timing
