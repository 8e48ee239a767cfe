"""
measure_errors.py - Classified failures of a single measurement.

Every error carries a stable ``reason`` (for logs and JSON output) and a
``user_message`` suitable for showing to whoever asked for the measurement.
"""

from __future__ import annotations

from typing import Optional


class MeasurementError(Exception):
    reason = "measurement_failed"
    user_message = "Unable to analyze website. Please verify the URL and try again."

    def __init__(self, detail: Optional[str] = None, reason: Optional[str] = None):
        if reason:
            self.reason = reason
        self.detail = detail
        super().__init__(detail or self.reason)

    def to_dict(self) -> dict:
        return {"error": self.user_message, "reason": self.reason}


class LaunchError(MeasurementError):
    reason = "launch_failed"
    user_message = "Performance analysis service is temporarily unavailable."


class NavigationError(MeasurementError):
    reason = "navigation_failed"
    user_message = "Failed to load website. Please check the URL and try again."


class NavigationTimedOut(NavigationError):
    reason = "navigation_timeout"
    user_message = "Website took too long to respond (timeout exceeded)."


class NameNotResolved(NavigationError):
    reason = "name_not_resolved"
    user_message = "Website not found. Please check the URL and try again."


class ConnectionRefused(NavigationError):
    reason = "connection_refused"
    user_message = "Connection refused. The website might be down."


class NoInternet(NavigationError):
    reason = "no_internet"
    user_message = "No internet connection available."


class TlsError(NavigationError):
    reason = "tls_error"
    user_message = "SSL/TLS error. The website's security certificate may be invalid."


class NavigationFailed(NavigationError):
    pass


class SessionDetached(MeasurementError):
    reason = "session_detached"
    user_message = "Analysis was interrupted. Please try again."


class ProtocolError(MeasurementError):
    reason = "protocol_error"
    user_message = "Browser communication error. Please try again."


class RemoteApiError(MeasurementError):
    reason = "remote_api_error"
    user_message = "Analysis temporarily unavailable. Please try again later."

    def __init__(
        self,
        detail: Optional[str] = None,
        reason: Optional[str] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(detail, reason)
        if user_message:
            self.user_message = user_message
