"""
network_observer.py - Request count and transferred bytes for one page.

Usage:
    observer = NetworkObserver()
    observer.attach(page)          # before navigation
    ...navigate, wait...
    observer.mark_settled()
    state = await observer.read()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObservedNetworkState:
    request_count: int = 0
    total_bytes: int = 0


def parse_content_length(headers: Any) -> Optional[int]:
    """Positive integer content-length from a header mapping, else None."""
    try:
        raw = (headers or {}).get("content-length")
    except Exception:
        return None
    if raw is None:
        return None
    try:
        size = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    return size if size > 0 else None


class NetworkObserver:
    """
    Passive request/response listener.

    Callbacks run on the browser's event delivery interleaved with navigation,
    so counters are only handed out after ``mark_settled()``. Counters are only
    ever incremented.
    """

    def __init__(self) -> None:
        self._request_count = 0
        self._total_bytes = 0
        self._settled = asyncio.Event()
        self.errors = 0

    def attach(self, page: Any) -> None:
        page.on("request", self.on_request)
        page.on("response", self.on_response)

    def on_request(self, request: Any) -> None:
        # Listener only; the request is never held, so counting cannot stall loading.
        self._request_count += 1

    def on_response(self, response: Any) -> None:
        try:
            size = parse_content_length(response.headers)
        except Exception as e:
            self.errors += 1
            logger.warning(f"Response observer error: {e}")
            return
        if size:
            self._total_bytes += size

    def mark_settled(self) -> None:
        self._settled.set()

    @property
    def settled(self) -> bool:
        return self._settled.is_set()

    def snapshot(self) -> ObservedNetworkState:
        if not self._settled.is_set():
            raise RuntimeError("network state read before navigation settled")
        return ObservedNetworkState(self._request_count, self._total_bytes)

    async def read(self) -> ObservedNetworkState:
        await self._settled.wait()
        return self.snapshot()
