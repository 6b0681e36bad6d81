"""
Domain error taxonomy.

  NotFound               — unknown city, or no weather for a date even after a
                           forecast fetch.  Fatal to the request; never retried.
  UpstreamUnavailable    — transport error, timeout, 5xx or unparseable body from
                           a provider.  Recovered by the freshness cache when any
                           cached data exists.
  UpstreamRejected       — 4xx from a provider.  Always surfaced; a cached
                           fallback cannot fix a bad request.
  PersistenceWriteFailed — a single row could not be written.  Logged and
                           skipped by batch writers.

Messages carry the query or entity key for diagnosis.  Provider response
bodies are never copied into them (they are logged at DEBUG by the client).
"""

from __future__ import annotations

from typing import Any


class NotFound(LookupError):
    """Raised when a requested entity does not exist.

    Attributes:
        entity: Entity kind, e.g. ``"city"`` or ``"weather"``.
        key:    The identifier that was looked up.
    """

    def __init__(self, entity: str, key: Any, detail: str = "") -> None:
        self.entity = entity
        self.key    = key
        message = f"{entity.capitalize()} not found: {key}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UpstreamError(RuntimeError):
    """Base class for failures talking to an external provider.

    Attributes:
        provider: Provider name, e.g. ``"open-meteo-geocoding"``.
        query:    Request parameters that identify the failed call.
    """

    def __init__(self, provider: str, query: dict[str, Any], message: str) -> None:
        self.provider = provider
        self.query    = dict(query)
        super().__init__(f"{provider}: {message} (query={self.query})")


class UpstreamUnavailable(UpstreamError):
    """Raised on transport failures, timeouts, 5xx responses or malformed bodies.

    Attributes:
        reason: Short description of the failure cause.
    """

    def __init__(self, provider: str, query: dict[str, Any], reason: str) -> None:
        self.reason = reason
        super().__init__(provider, query, f"service unavailable: {reason}")


class UpstreamRejected(UpstreamError):
    """Raised when a provider rejects the request with a 4xx status.

    Attributes:
        status_code: HTTP status returned by the provider.
    """

    def __init__(self, provider: str, query: dict[str, Any], status_code: int) -> None:
        self.status_code = status_code
        super().__init__(provider, query, f"invalid request (HTTP {status_code})")


class PersistenceWriteFailed(RuntimeError):
    """Raised when one entity cannot be written to the local store.

    Attributes:
        entity: Entity kind being written.
        key:    Natural key of the row that failed.
        reason: Underlying error text.
    """

    def __init__(self, entity: str, key: Any, reason: str) -> None:
        self.entity = entity
        self.key    = key
        self.reason = reason
        super().__init__(f"Failed to persist {entity} {key}: {reason}")
