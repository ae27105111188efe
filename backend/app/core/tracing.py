"""
Tracing Context - Request-scoped context for log correlation.

Every request gets a correlation id (reused from an inbound ``X-Request-ID``
header when present). Onboarding routes also tag the route and the GitHub
handle they act on, so all log lines of one submission can be filtered
together.

Usage:
    TracingContext.set(
        correlation_id="abc-123",
        route="POST /onboarding/intake-form",
        github_handle="octocat",
    )

    ctx = TracingContext.get()  # picked up by JSONFormatter

    TracingContext.clear()
"""

import uuid
from contextvars import ContextVar
from typing import Dict

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_route: ContextVar[str] = ContextVar("route", default="")
_github_handle: ContextVar[str] = ContextVar("github_handle", default="")


class TracingContext:
    """Context-local tracing fields for the current request."""

    @staticmethod
    def set(
        correlation_id: str = "",
        route: str = "",
        github_handle: str = "",
    ) -> None:
        """Set tracing context for current execution."""
        if correlation_id:
            _correlation_id.set(correlation_id)
        if route:
            _route.set(route)
        if github_handle:
            _github_handle.set(github_handle)

    @staticmethod
    def get() -> Dict[str, str]:
        """Get current tracing context as dict."""
        return {
            "correlation_id": _correlation_id.get(),
            "route": _route.get(),
            "github_handle": _github_handle.get(),
        }

    @staticmethod
    def get_or_create_correlation_id() -> str:
        """Get current correlation ID or create a new one."""
        corr_id = _correlation_id.get()
        if not corr_id:
            corr_id = str(uuid.uuid4())
            _correlation_id.set(corr_id)
        return corr_id

    @staticmethod
    def clear() -> None:
        """Clear all tracing context."""
        _correlation_id.set("")
        _route.set("")
        _github_handle.set("")
