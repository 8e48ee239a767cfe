import asyncio

import pytest

from network_observer import NetworkObserver, ObservedNetworkState, parse_content_length


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"content-length": "2048"}, 2048),
        ({"content-length": " 15 "}, 15),
        ({"content-length": "0"}, None),
        ({"content-length": "-4"}, None),
        ({"content-length": "abc"}, None),
        ({}, None),
        (None, None),
    ],
)
def test_parse_content_length(headers, expected):
    assert parse_content_length(headers) == expected


def test_counts_requests_and_sums_known_sizes(make_stack, fake_response):
    async def run():
        stack = make_stack()
        observer = NetworkObserver()
        observer.attach(stack.page)
        for _ in range(3):
            stack.page.emit("request", object())
        stack.page.emit("response", fake_response({"content-length": "1000"}))
        stack.page.emit("response", fake_response({"content-length": "bogus"}))
        stack.page.emit("response", fake_response({}))
        stack.page.emit("response", fake_response({"content-length": "500"}))
        observer.mark_settled()
        return await observer.read()

    assert asyncio.run(run()) == ObservedNetworkState(request_count=3, total_bytes=1500)


def test_snapshot_before_settle_is_refused():
    observer = NetworkObserver()
    with pytest.raises(RuntimeError):
        observer.snapshot()


def test_broken_response_object_is_ignored(make_stack):
    class Exploding:
        @property
        def headers(self):
            raise RuntimeError("response disposed")

    async def run():
        stack = make_stack()
        observer = NetworkObserver()
        observer.attach(stack.page)
        stack.page.emit("request", object())
        stack.page.emit("response", Exploding())
        observer.mark_settled()
        return observer, await observer.read()

    observer, state = asyncio.run(run())
    assert state == ObservedNetworkState(request_count=1, total_bytes=0)
    assert observer.errors == 1


def test_read_waits_for_settle_and_sees_every_prior_event(make_stack, fake_response):
    """Callbacks fire while a slow navigation is in flight; the read must include all of them."""

    async def slow_goto(page, url, **kwargs):
        for i in range(5):
            await asyncio.sleep(0.01)
            page.emit("request", object())
            page.emit("response", fake_response({"content-length": "100"}))

    async def run():
        stack = make_stack()
        stack.page._goto = slow_goto
        observer = NetworkObserver()
        observer.attach(stack.page)

        seen = []

        async def reader():
            state = await observer.read()
            seen.append(state)

        reader_task = asyncio.create_task(reader())
        navigation = asyncio.create_task(stack.page.goto("https://example.com"))

        history = []
        while not navigation.done():
            await asyncio.sleep(0.005)
            # Counters only grow while events arrive.
            history.append((observer._request_count, observer._total_bytes))
            assert not seen

        await navigation
        observer.mark_settled()
        await reader_task
        return seen[0], history

    state, history = asyncio.run(run())
    assert state == ObservedNetworkState(request_count=5, total_bytes=500)
    assert history == sorted(history)
