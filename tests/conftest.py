import asyncio
import os
import sys
from collections import defaultdict

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakeResponse:
    def __init__(self, headers=None):
        self.headers = headers or {}


class FakePage:
    def __init__(self, goto=None, evaluate_result=None, evaluate_error=None, wait_error=None):
        self.handlers = defaultdict(list)
        self._goto = goto
        self.evaluate_result = evaluate_result
        self.evaluate_error = evaluate_error
        self.wait_error = wait_error
        self.goto_calls = []
        self.waits = []
        self.closed = False
        self.close_calls = 0

    def on(self, event, handler):
        self.handlers[event].append(handler)

    def emit(self, event, payload=None):
        for handler in list(self.handlers[event]):
            handler(payload)

    async def goto(self, url, **kwargs):
        self.goto_calls.append((url, kwargs))
        if self._goto is not None:
            return await self._goto(self, url, **kwargs)
        return None

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)
        if self.wait_error is not None:
            raise self.wait_error

    async def evaluate(self, script, arg=None):
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.evaluate_result

    def is_closed(self):
        return self.closed

    async def close(self):
        self.close_calls += 1
        self.closed = True


class FakeContext:
    def __init__(self, page):
        self.page = page
        self.close_calls = 0

    async def new_page(self):
        return self.page

    async def close(self):
        self.close_calls += 1


class FakeBrowser:
    def __init__(self, context):
        self.context = context
        self.context_kwargs = None
        self.connected = True
        self.close_calls = 0

    async def new_context(self, **kwargs):
        self.context_kwargs = kwargs
        return self.context

    def is_connected(self):
        return self.connected

    async def close(self):
        self.close_calls += 1
        self.connected = False


class FakeChromium:
    def __init__(self, browser, launch_error=None, launch_delay=0):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_delay = launch_delay
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_delay:
            await asyncio.sleep(self.launch_delay)
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, chromium):
        self.chromium = chromium
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1


class FakeStack:
    """A page inside a context inside a browser inside a driver, all recording calls."""

    def __init__(self, page=None, launch_error=None, launch_delay=0, start_delay=0):
        self.page = page or FakePage()
        self.context = FakeContext(self.page)
        self.browser = FakeBrowser(self.context)
        self.chromium = FakeChromium(self.browser, launch_error, launch_delay)
        self.playwright = FakePlaywright(self.chromium)
        self.start_calls = 0
        self.start_delay = start_delay

    def factory(self):
        stack = self

        class _Manager:
            async def start(self):
                stack.start_calls += 1
                if stack.start_delay:
                    await asyncio.sleep(stack.start_delay)
                return stack.playwright

        return _Manager()


@pytest.fixture
def make_stack():
    return FakeStack


@pytest.fixture
def timing_entries():
    return {
        "fcp": 1200.0,
        "lcp": 2100.0,
        "cls": 0.02,
        "startTime": 0,
        "loadEventEnd": 2600.0,
        "domContentLoadedEventEnd": 1400.0,
        "hasNavigation": True,
    }


@pytest.fixture
def fake_response():
    return FakeResponse
