"""Error types for provider calls and event streams.

Purpose:
- Provide typed exceptions raised by the provider gateway and the event
  stream codec.
- Expose HTTP-oriented context (status code, error body) for diagnosis.

Usage:
- Catch ``ProviderConfigurationError`` for a call rejected before any I/O.
- Catch ``ProviderTransportError`` for network failures, non-OK statuses and
  streams that end without a terminal event (``StreamClosedError``).

Registry failures are not represented here: the capability registry logs and
ignores them instead of raising.
"""

from __future__ import annotations

from typing import Any, Optional


class ProviderError(Exception):
    """Base error for provider failures.

    Args:
        message: Human-readable error description.
        status_code: Optional HTTP status code associated with the failure.
        details: Optional payload from the server (e.g., error body).
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ProviderConfigurationError(ProviderError):
    """Raised when a call is missing what the selected provider kind requires."""


class ProviderTransportError(ProviderError):
    """Raised for non-OK responses, missing bodies and connection failures."""


class StreamClosedError(ProviderTransportError):
    """Raised when an event stream ends without its terminal ``done`` event."""

    def __init__(self, message: str = "Event stream closed before a 'done' event") -> None:
        super().__init__(message)
