# analyze.py
import argparse
import json
import logging
import sys

import config
from measure_errors import MeasurementError
from net_guardrails import prepare_target
from perf_audit import BACKENDS, analyze_url

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MEASUREMENT_FAILED = 1
EXIT_INVALID_INPUT = 2


def setup_logging(level: str = config.LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Measure the load performance of one web page.")
    p.add_argument("url", help="Page to measure (https:// is assumed when no scheme is given)")
    p.add_argument("--backend", choices=BACKENDS, default=config.DEFAULT_BACKEND,
                   help="browser: local headless Chromium; pagespeed: Google PageSpeed Insights")
    p.add_argument("--launch-timeout", type=int, default=config.LAUNCH_TIMEOUT_MS, help="Browser launch budget (ms)")
    p.add_argument("--navigation-timeout", type=int, default=config.NAVIGATION_TIMEOUT_MS, help="Navigation budget (ms)")
    p.add_argument("--grace", type=int, default=config.GRACE_PERIOD_MS, help="Post-navigation wait (ms)")
    p.add_argument("--show-estimated", action="store_true",
                   help="Add an 'estimated' list naming fields that are placeholders, not measurements")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        url = prepare_target(args.url)
    except ValueError as e:
        print(json.dumps({"error": str(e), "reason": "invalid_url"}))
        return EXIT_INVALID_INPUT

    if args.backend == "pagespeed":
        kwargs = {}
    else:
        kwargs = {
            "launch_timeout_ms": args.launch_timeout,
            "navigation_timeout_ms": args.navigation_timeout,
            "grace_period_ms": args.grace,
        }

    try:
        metrics = analyze_url(url, backend=args.backend, **kwargs)
    except MeasurementError as e:
        print(json.dumps(e.to_dict()))
        return EXIT_MEASUREMENT_FAILED

    payload = metrics.to_dict()
    if args.show_estimated:
        payload["estimated"] = list(metrics.estimated)
    print(json.dumps(payload))
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
