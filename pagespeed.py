# pagespeed.py
"""Remote measurement backend: Google PageSpeed Insights v5."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

import config
from measure_errors import RemoteApiError
from perf_metrics import PerformanceMetrics

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

DEFAULT_FCP_MS = 1500
DEFAULT_LCP_MS = 2500
DEFAULT_CLS = 0.05
DEFAULT_BYTE_WEIGHT = 1_500_000
DEFAULT_REQUEST_COUNT = 25
DEFAULT_SCORE = 0.75

HTTP_ERRORS = {
    429: ("rate_limited", "Rate limit exceeded. Please wait a few minutes before trying again."),
    500: ("remote_busy", "Google's servers are temporarily busy. Please try again in a few minutes."),
    400: ("url_rejected", "The website URL cannot be analyzed. It may be blocked or have restrictions."),
}


def fetch_pagespeed_metrics(
    url: str,
    api_key: Optional[str] = None,
    timeout: float = config.PAGESPEED_TIMEOUT,
    strategy: str = "desktop",
) -> PerformanceMetrics:
    api_key = api_key or config.PAGESPEED_API_KEY
    if not api_key:
        raise RemoteApiError(
            "PAGESPEED_API_KEY is not set",
            reason="missing_api_key",
            user_message="PageSpeed API key is required. Please add PAGESPEED_API_KEY to your environment variables.",
        )

    logger.info(f"Using PageSpeed API for: {url}")
    try:
        resp = requests.get(
            PAGESPEED_ENDPOINT,
            params={
                "url": url,
                "key": api_key,
                "category": "performance",
                "strategy": strategy,
            },
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
    except requests.Timeout as exc:
        raise RemoteApiError(str(exc), reason="remote_timeout",
                             user_message="Analysis timed out. The website may be slow or unavailable.") from exc
    except requests.RequestException as exc:
        raise RemoteApiError(str(exc), reason="remote_unreachable") from exc

    logger.info(f"PageSpeed API response status: {resp.status_code}")
    if resp.status_code >= 400:
        logger.error(f"PageSpeed API error response: {resp.text[:500]}")
        reason, message = HTTP_ERRORS.get(
            resp.status_code,
            (
                f"http_{resp.status_code}",
                f"Analysis temporarily unavailable (Error {resp.status_code}). Please try again later.",
            ),
        )
        raise RemoteApiError(f"http_{resp.status_code}", reason=reason, user_message=message)

    try:
        data = resp.json()
    except ValueError as exc:
        raise RemoteApiError("invalid_json_response", reason="parse_failed",
                             user_message="Failed to parse performance data.") from exc

    if isinstance(data, dict) and data.get("error"):
        err = data["error"]
        message = err.get("message") if isinstance(err, dict) else str(err)
        raise RemoteApiError(message, reason="remote_api_error", user_message=f"PageSpeed API: {message}")

    return parse_pagespeed_payload(data)


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _numeric(audits: dict, audit_id: str) -> Optional[float]:
    audit = audits.get(audit_id)
    if not isinstance(audit, dict):
        return None
    value = audit.get("numericValue")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def parse_pagespeed_payload(data: Any) -> PerformanceMetrics:
    """Lighthouse result -> PerformanceMetrics, with defaults for absent audits."""
    try:
        lighthouse = data["lighthouseResult"]
        audits = lighthouse["audits"]
        if not isinstance(audits, dict):
            raise TypeError("audits is not an object")
    except (KeyError, TypeError) as exc:
        logger.error(f"Error parsing PageSpeed data: {exc}")
        raise RemoteApiError(str(exc), reason="parse_failed",
                             user_message="Failed to parse performance data.") from exc

    estimated = []

    def pick(value, default, name):
        if value is None:
            estimated.append(name)
            return default
        return value

    fcp = pick(_numeric(audits, "first-contentful-paint"), DEFAULT_FCP_MS, "load_time_ms")
    lcp = pick(_numeric(audits, "largest-contentful-paint"), DEFAULT_LCP_MS, "largest_contentful_paint_ms")
    cls = pick(_numeric(audits, "cumulative-layout-shift"), DEFAULT_CLS, "cumulative_layout_shift")
    byte_weight = pick(_numeric(audits, "total-byte-weight"), DEFAULT_BYTE_WEIGHT, "page_size_bytes")

    items = _dig(audits, "network-requests", "details", "items")
    request_count = pick(len(items) if isinstance(items, list) else None, DEFAULT_REQUEST_COUNT, "request_count")

    category_score = _dig(lighthouse, "categories", "performance", "score")
    if isinstance(category_score, bool) or not isinstance(category_score, (int, float)):
        category_score = None
    category_score = pick(category_score, DEFAULT_SCORE, "performance_score")

    logger.info("PageSpeed API analysis successful")
    return PerformanceMetrics(
        load_time_ms=int(round(fcp)),
        page_size_bytes=int(round(byte_weight)),
        request_count=int(request_count),
        performance_score=int(max(0, min(100, round(category_score * 100)))),
        largest_contentful_paint_ms=int(round(lcp)),
        cumulative_layout_shift=round(min(1.0, max(0.0, cls)), 3),
        estimated=tuple(estimated),
    )
