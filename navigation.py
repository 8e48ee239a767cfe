"""Bounded navigation with transport failure classification."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

import config
from browser_session import BrowserSession, classify_session_error, is_session_lost
from measure_errors import (
    ConnectionRefused,
    NameNotResolved,
    NavigationFailed,
    NavigationTimedOut,
    NoInternet,
    TlsError,
)

logger = logging.getLogger(__name__)

OK = "ok"
TIMED_OUT = "timed_out"
NAME_NOT_RESOLVED = "name_not_resolved"
CONNECTION_REFUSED = "connection_refused"
NO_INTERNET = "no_internet"
TLS_ERROR = "tls_error"
OTHER = "other"

# Chromium net error codes, checked in order.
NET_ERROR_KINDS = (
    ("net::ERR_NAME_NOT_RESOLVED", NAME_NOT_RESOLVED),
    ("net::ERR_CONNECTION_REFUSED", CONNECTION_REFUSED),
    ("net::ERR_INTERNET_DISCONNECTED", NO_INTERNET),
    ("net::ERR_SSL_", TLS_ERROR),
    ("net::ERR_CERT_", TLS_ERROR),
    ("net::ERR_TIMED_OUT", TIMED_OUT),
)

OUTCOME_ERRORS = {
    TIMED_OUT: NavigationTimedOut,
    NAME_NOT_RESOLVED: NameNotResolved,
    CONNECTION_REFUSED: ConnectionRefused,
    NO_INTERNET: NoInternet,
    TLS_ERROR: TlsError,
    OTHER: NavigationFailed,
}


@dataclass(frozen=True)
class NavigationOutcome:
    kind: str
    detail: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.kind == OK


def classify_navigation_error(message: str) -> str:
    text = message or ""
    for marker, kind in NET_ERROR_KINDS:
        if marker in text:
            return kind
    if "timeout" in text.lower() and "exceeded" in text.lower():
        return TIMED_OUT
    return OTHER


def raise_for_outcome(outcome: NavigationOutcome) -> None:
    if outcome.ok:
        return
    raise OUTCOME_ERRORS.get(outcome.kind, NavigationFailed)(outcome.detail)


async def navigate(
    session: BrowserSession,
    url: str,
    timeout_ms: int = config.NAVIGATION_TIMEOUT_MS,
    watchdog_slack_ms: int = config.NAVIGATION_WATCHDOG_SLACK_MS,
) -> NavigationOutcome:
    """
    Drive the session's page to ``url`` and wait for DOMContentLoaded.

    Returns an outcome instead of raising for timeouts and transport
    failures. A watchdog slightly longer than ``timeout_ms`` guards against a
    driver that never honours its own timeout. Losing the page or browser
    mid-navigation raises SessionDetached / ProtocolError.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    logger.info(f"Navigating to: {url}")

    def _elapsed() -> float:
        return (loop.time() - started) * 1000

    try:
        await asyncio.wait_for(
            session.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms),
            timeout=(timeout_ms + watchdog_slack_ms) / 1000,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Navigation watchdog fired after {timeout_ms}ms for {url}")
        return NavigationOutcome(TIMED_OUT, f"navigation exceeded {timeout_ms}ms", _elapsed())
    except PlaywrightTimeout as e:
        logger.warning(f"Navigation timeout for {url}: {e}")
        return NavigationOutcome(TIMED_OUT, str(e), _elapsed())
    except PlaywrightError as e:
        if is_session_lost(e) or "protocol error" in str(e).lower():
            raise classify_session_error(e) from e
        kind = classify_navigation_error(str(e))
        logger.error(f"Navigation error ({kind}) for {url}: {e}")
        return NavigationOutcome(kind, str(e), _elapsed())

    elapsed_ms = _elapsed()
    logger.info(f"Navigation completed in {elapsed_ms:.0f}ms")
    return NavigationOutcome(OK, None, elapsed_ms)


async def wait_grace_period(session: BrowserSession, grace_ms: int = config.GRACE_PERIOD_MS) -> None:
    """Let trailing resources finish. Best effort: failures are logged and ignored."""
    if grace_ms <= 0:
        return
    try:
        await asyncio.wait_for(
            session.page.wait_for_timeout(grace_ms),
            timeout=grace_ms / 1000 + 1,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Grace wait overran {grace_ms}ms, continuing")
    except Exception as e:
        logger.warning(f"Wait timeout error: {e}")
