"""
Error taxonomy shared by the engine, the store and the HTTP layer.

- `InvalidInput`: caller error (bad coordinates, bbox, geometry). Never retried. Maps to 400.
- `StoreUnavailable`: the aggregation query failed or timed out. Maps to a generic 500.
- `ProviderFailure`: an external routing provider failed. Recovered by the directions
  fallback chain and never surfaced to callers.

Masked or unknown tiles are not errors; they are represented in the results themselves.
"""

from __future__ import annotations


class SafeRouteError(Exception):
    """Base class for all domain errors raised by saferoute."""


class InvalidInput(SafeRouteError, ValueError):
    """Malformed or missing caller input."""


class StoreUnavailable(SafeRouteError):
    """The report store could not answer an aggregation query."""


class ProviderFailure(SafeRouteError):
    """A routing provider attempt failed (transport error, error body, bad status)."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
