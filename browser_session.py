"""Headless Chromium session lifecycle for a single measurement."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

import config
from measure_errors import LaunchError, MeasurementError, ProtocolError, SessionDetached

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
]

# Fragments Playwright uses when the page, context or browser went away underneath us.
SESSION_LOST_MARKERS = (
    "target closed",
    "has been closed",
    "detached",
    "browser has disconnected",
    "page crashed",
)

STATE_OPENING = "opening"
STATE_OPEN = "open"
STATE_CLOSED = "closed"


class BrowserSession:
    """One driver + browser process + context + page, owned by one measurement."""

    def __init__(self) -> None:
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.state = STATE_OPENING

    @property
    def is_open(self) -> bool:
        return self.state == STATE_OPEN


def is_session_lost(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in SESSION_LOST_MARKERS)


def classify_session_error(exc: BaseException) -> MeasurementError:
    """Map a Playwright error that escaped a measurement phase to the taxonomy."""
    message = str(exc)
    if is_session_lost(exc):
        return SessionDetached(message)
    if "protocol error" in message.lower():
        return ProtocolError(message)
    return MeasurementError(message)


def _attach_page_diagnostics(page: Page) -> None:
    def on_page_error(error: Any) -> None:
        logger.warning(f"Page error: {error}")

    def on_crash(_page: Any) -> None:
        logger.error("Page crashed during measurement")

    page.on("pageerror", on_page_error)
    page.on("crash", on_crash)


async def _start(
    session: BrowserSession,
    launch_timeout_ms: int,
    user_agent: str,
    viewport: dict,
    playwright_factory: Callable[[], Any],
) -> None:
    # Each handle is stored as soon as it exists so close_session can release partial launches.
    starting = asyncio.ensure_future(playwright_factory().start())
    try:
        session.playwright = await asyncio.shield(starting)
    except asyncio.CancelledError:
        # The driver may still come up after the launch deadline; keep its handle for teardown.
        try:
            session.playwright = await starting
        except Exception as e:
            logger.warning(f"Driver start failed after cancellation: {e}")
        raise
    session.browser = await session.playwright.chromium.launch(
        headless=True,
        args=LAUNCH_ARGS,
        timeout=launch_timeout_ms,
    )
    session.context = await session.browser.new_context(
        viewport=viewport,
        user_agent=user_agent,
    )
    session.page = await session.context.new_page()
    _attach_page_diagnostics(session.page)


async def open_session(
    launch_timeout_ms: int = config.LAUNCH_TIMEOUT_MS,
    user_agent: str = config.USER_AGENT,
    viewport: Optional[dict] = None,
    playwright_factory: Optional[Callable[[], Any]] = None,
) -> BrowserSession:
    """
    Launch an isolated headless browser and open one page in it.

    Raises LaunchError if the browser cannot be started within
    ``launch_timeout_ms``. Anything acquired before the failure is released
    before the error propagates, including on cancellation.
    """
    session = BrowserSession()
    logger.info("Launching browser...")
    try:
        await asyncio.wait_for(
            _start(
                session,
                launch_timeout_ms,
                user_agent,
                viewport or dict(config.VIEWPORT),
                playwright_factory or async_playwright,
            ),
            timeout=launch_timeout_ms / 1000,
        )
    except asyncio.CancelledError:
        await close_session(session)
        raise
    except asyncio.TimeoutError:
        await close_session(session)
        raise LaunchError(f"browser launch exceeded {launch_timeout_ms}ms")
    except Exception as exc:
        await close_session(session)
        raise LaunchError(str(exc)) from exc

    session.state = STATE_OPEN
    logger.info("Browser launched, page ready")
    return session


async def close_session(session: Optional[BrowserSession]) -> None:
    """
    Release everything the session holds. Safe to call more than once and on
    sessions whose page or browser already died; never raises.
    """
    if session is None or session.state == STATE_CLOSED:
        return
    session.state = STATE_CLOSED
    logger.info("Cleaning up browser resources...")

    page, context, browser, driver = session.page, session.context, session.browser, session.playwright
    session.page = session.context = session.browser = session.playwright = None

    if page is not None:
        try:
            if not page.is_closed():
                await page.close()
        except Exception as e:
            logger.warning(f"Page cleanup error: {e}")

    if context is not None:
        try:
            await context.close()
        except Exception as e:
            logger.warning(f"Context cleanup error: {e}")

    if browser is not None:
        try:
            if browser.is_connected():
                await browser.close()
        except Exception as e:
            logger.warning(f"Browser cleanup error: {e}")

    if driver is not None:
        try:
            await driver.stop()
        except Exception as e:
            logger.warning(f"Playwright driver cleanup error: {e}")


@asynccontextmanager
async def browser_session(**kwargs: Any) -> AsyncIterator[BrowserSession]:
    """Open a session for the body of the ``async with`` block and always close it."""
    session = await open_session(**kwargs)
    try:
        yield session
    finally:
        await close_session(session)

