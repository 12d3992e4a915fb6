"""Exception types for branch sweeping."""

from __future__ import annotations

from dataclasses import dataclass


class SweepError(RuntimeError):
    """Base exception for branchsweep errors."""


class ConfigError(SweepError):
    """Raised when required configuration is missing or invalid."""


class TransportError(SweepError):
    """Raised when a request to the Bitbucket API cannot be sent or received."""


@dataclass
class ApiError(SweepError):
    """Raised for unexpected HTTP status codes from the Bitbucket API."""

    status_code: int
    url: str
    response_text: str | None = None

    def __str__(self) -> str:
        return f"Bitbucket API error {self.status_code} for {self.url}: {self.response_text[:200] if self.response_text else 'No response body'}"


class ParseError(SweepError, ValueError):
    """Raised when an API record or timestamp has an unexpected shape."""
