"""Custom exceptions for GitHub API access."""

from __future__ import annotations


class GithubError(Exception):
    """Base exception for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GithubAuthError(GithubError):
    """Raised when the OAuth token is missing, expired or revoked."""


class GithubRateLimitError(GithubError):
    """Raised when the upstream service enforces a rate limit."""

    def __init__(
        self,
        message: str,
        retry_after: int | float | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class GithubRetryableError(GithubError):
    """Raised for transient issues where retrying later may succeed."""
