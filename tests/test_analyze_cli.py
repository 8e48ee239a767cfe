import json

import analyze
import perf_audit
from measure_errors import NameNotResolved
from perf_metrics import PerformanceMetrics


def test_prints_metrics_json(monkeypatch, capsys):
    seen = {}

    def fake_analyze(url, backend, **kwargs):
        seen.update(url=url, backend=backend, kwargs=kwargs)
        return PerformanceMetrics(1100, 200000, 30, 92, 1800, 0.01, estimated=("cumulative_layout_shift",))

    monkeypatch.setattr(analyze, "analyze_url", fake_analyze)
    code = analyze.main(["example.com", "--backend", "browser", "--navigation-timeout", "5000", "--grace", "0"])

    assert code == analyze.EXIT_OK
    assert seen["url"] == "https://example.com"
    assert seen["kwargs"]["navigation_timeout_ms"] == 5000
    assert seen["kwargs"]["grace_period_ms"] == 0
    out = json.loads(capsys.readouterr().out)
    assert out == {
        "loadTime": 1100,
        "pageSize": 200000,
        "requestCount": 30,
        "performanceScore": 92,
        "largestContentfulPaint": 1800,
        "cumulativeLayoutShift": 0.01,
    }


def test_show_estimated(monkeypatch, capsys):
    monkeypatch.setattr(
        analyze,
        "analyze_url",
        lambda url, backend, **kw: PerformanceMetrics(1, 2, 3, 4, 5, 0.0, estimated=("page_size_bytes",)),
    )
    assert analyze.main(["https://example.com", "--show-estimated"]) == analyze.EXIT_OK
    assert json.loads(capsys.readouterr().out)["estimated"] == ["page_size_bytes"]


def test_measurement_error_is_reported(monkeypatch, capsys):
    def fail(url, backend, **kwargs):
        raise NameNotResolved("net::ERR_NAME_NOT_RESOLVED at https://nope.invalid/")

    monkeypatch.setattr(analyze, "analyze_url", fail)
    assert analyze.main(["https://nope.invalid"]) == analyze.EXIT_MEASUREMENT_FAILED
    out = json.loads(capsys.readouterr().out)
    assert out["reason"] == "name_not_resolved"
    assert out["error"].startswith("Website not found")


def test_invalid_url_never_measures(monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise AssertionError("must not measure")

    monkeypatch.setattr(analyze, "analyze_url", boom)
    assert analyze.main(["http://localhost:3000"]) == analyze.EXIT_INVALID_INPUT
    assert json.loads(capsys.readouterr().out)["reason"] == "invalid_url"


def test_pagespeed_backend_gets_no_browser_options(monkeypatch, capsys):
    seen = {}

    def fake_analyze(url, backend, **kwargs):
        seen.update(backend=backend, kwargs=kwargs)
        return PerformanceMetrics(1, 2, 3, 4, 5, 0.0)

    monkeypatch.setattr(analyze, "analyze_url", fake_analyze)
    assert analyze.main(["https://example.com", "--backend", "pagespeed"]) == analyze.EXIT_OK
    assert seen == {"backend": "pagespeed", "kwargs": {}}


def test_unexpected_browser_fault_is_reported(monkeypatch, capsys, make_stack):
    async def goto(page, url, **kwargs):
        raise RuntimeError("fault injected")

    stack = make_stack()
    stack.page._goto = goto

    def measure(url, backend, **kwargs):
        return perf_audit.measure_url_sync(
            url, playwright_factory=stack.factory, grace_period_ms=0, observe_ms=0
        )

    monkeypatch.setattr(analyze, "analyze_url", measure)
    assert analyze.main(["https://example.com"]) == analyze.EXIT_MEASUREMENT_FAILED
    out = json.loads(capsys.readouterr().out)
    assert out["reason"] == "measurement_failed"
    assert stack.playwright.stop_calls == 1
