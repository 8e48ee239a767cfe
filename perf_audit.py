"""
perf_audit.py - One URL in, one PerformanceMetrics (or one classified error) out.

Usage:
    metrics = await measure_url("https://example.com")
    metrics = analyze_url("https://example.com", backend="pagespeed")
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Callable, Optional

from playwright.async_api import Error as PlaywrightError

import config
from browser_session import browser_session, classify_session_error
from measure_errors import MeasurementError
from navigation import navigate, raise_for_outcome, wait_grace_period
from network_observer import NetworkObserver
from pagespeed import fetch_pagespeed_metrics
from perf_metrics import PerformanceMetrics, assemble_metrics
from web_vitals import extract_timing

logger = logging.getLogger(__name__)

BACKENDS = ("browser", "pagespeed")


async def measure_url(
    url: str,
    launch_timeout_ms: int = config.LAUNCH_TIMEOUT_MS,
    navigation_timeout_ms: int = config.NAVIGATION_TIMEOUT_MS,
    grace_period_ms: int = config.GRACE_PERIOD_MS,
    observe_ms: int = config.OBSERVE_WINDOW_MS,
    watchdog_slack_ms: int = config.NAVIGATION_WATCHDOG_SLACK_MS,
    playwright_factory: Optional[Callable[[], Any]] = None,
    rng: Optional[random.Random] = None,
) -> PerformanceMetrics:
    """
    Measure ``url`` in a dedicated headless browser.

    The URL is assumed to be validated already. The browser session is
    closed before this returns or raises, whatever happened in between.
    """
    logger.info(f"Starting performance analysis for: {url}")
    started = time.monotonic()

    async with browser_session(
        launch_timeout_ms=launch_timeout_ms,
        playwright_factory=playwright_factory,
    ) as session:
        observer = NetworkObserver()
        observer.attach(session.page)
        try:
            outcome = await navigate(session, url, navigation_timeout_ms, watchdog_slack_ms)
            raise_for_outcome(outcome)
            await wait_grace_period(session, grace_period_ms)
            observer.mark_settled()
            network = await observer.read()
            timing = await extract_timing(session, observe_ms)
        except MeasurementError:
            raise
        except PlaywrightError as e:
            raise classify_session_error(e) from e
        except Exception as e:
            raise MeasurementError(str(e)) from e
        elapsed_ms = (time.monotonic() - started) * 1000

    metrics = assemble_metrics(network, timing, elapsed_ms, rng=rng)
    logger.info(f"Performance analysis completed: {metrics.to_dict()}")
    return metrics


def measure_url_sync(url: str, **kwargs: Any) -> PerformanceMetrics:
    return asyncio.run(measure_url(url, **kwargs))


def analyze_url(url: str, backend: str = config.DEFAULT_BACKEND, **kwargs: Any) -> PerformanceMetrics:
    """Run exactly one backend for ``url``. Errors are MeasurementError subclasses."""
    if backend not in BACKENDS:
        raise ValueError(f"Unknown backend: {backend}")
    try:
        if backend == "pagespeed":
            return fetch_pagespeed_metrics(url, **kwargs)
        return measure_url_sync(url, **kwargs)
    except MeasurementError as e:
        logger.error(f"Performance analysis failed for {url} ({e.reason}): {e}")
        raise
