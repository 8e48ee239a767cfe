import os

# Backend selection ("browser" or "pagespeed")
DEFAULT_BACKEND = os.getenv("PERF_BACKEND", "browser").strip().lower()

# Browser budgets (milliseconds)
LAUNCH_TIMEOUT_MS = int(os.getenv("PERF_LAUNCH_TIMEOUT_MS", "30000"))
NAVIGATION_TIMEOUT_MS = int(os.getenv("PERF_NAVIGATION_TIMEOUT_MS", "30000"))
NAVIGATION_WATCHDOG_SLACK_MS = int(os.getenv("PERF_NAVIGATION_WATCHDOG_SLACK_MS", "2000"))
GRACE_PERIOD_MS = int(os.getenv("PERF_GRACE_PERIOD_MS", "3000"))
OBSERVE_WINDOW_MS = int(os.getenv("PERF_OBSERVE_WINDOW_MS", "250"))
EVALUATE_TIMEOUT_MS = int(os.getenv("PERF_EVALUATE_TIMEOUT_MS", "5000"))

# Browser identity
USER_AGENT = os.getenv(
    "PERF_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
VIEWPORT = {"width": 1366, "height": 768}

# Remote PageSpeed backend
PAGESPEED_API_KEY = os.getenv("PAGESPEED_API_KEY", "")
PAGESPEED_TIMEOUT = float(os.getenv("PAGESPEED_TIMEOUT", "60"))

# Logging
LOG_LEVEL = os.getenv("PERF_LOG_LEVEL", "INFO").upper()
