from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlparse

LOOPBACK_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}
PRIVATE_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def normalize_url(raw: str) -> str:
    """
    Trim user input and default to https:// when no scheme was given.
    Raises ValueError for empty input.
    """
    url = (raw or "").strip()
    if not url:
        raise ValueError("URL is required")
    if not _SCHEME_RE.match(url):
        url = f"https://{url}"
    return url


def validate_url(url: str) -> None:
    """
    Validates that the URL uses a safe scheme and does not target loopback
    or private addresses. Hostnames are not resolved here; DNS failures are
    reported by the navigation itself. Raises ValueError if unsafe.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"Unsafe scheme: {parsed.scheme}")

    host = parsed.hostname
    if not host:
        raise ValueError("Missing hostname")

    if host.lower().rstrip(".") in LOOPBACK_HOSTNAMES:
        raise ValueError(f"Cannot analyze localhost URLs: {host}")

    try:
        ip_obj = ipaddress.ip_address(host)
    except ValueError:
        return
    for private_range in PRIVATE_IP_RANGES:
        if ip_obj in private_range:
            raise ValueError(f"Target is a private IP: {host}")


def prepare_target(raw: str) -> str:
    url = normalize_url(raw)
    validate_url(url)
    return url
