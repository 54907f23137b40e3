"""
Directions fallback driver.

Providers are tried strictly in order; the first one that returns routes serves the request.
A `ProviderFailure` advances to the next provider, anything else propagates. Each network
attempt gets `min(timeout_seconds, deadline remaining)`; once the request budget is spent the
remaining network providers are skipped and only offline providers run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from saferoute.core.errors import ProviderFailure
from saferoute.core.geo import GeoPoint
from saferoute.core.time import Deadline
from saferoute.domain.models import DirectionsAttempt

from .base import RouteGeometry, RouteProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectionsOutcome:
    source: str
    routes: list[RouteGeometry]
    attempts: list[DirectionsAttempt] = field(default_factory=list)


class DirectionsAdapter:
    def __init__(
        self,
        providers: Sequence[RouteProvider],
        *,
        timeout_seconds: float = 5,
        total_budget_seconds: float = 12,
    ):
        if not providers:
            raise ValueError("at least one provider is required")
        self.providers = list(providers)
        self.timeout_seconds = float(timeout_seconds)
        self.total_budget_seconds = float(total_budget_seconds)

    def resolve(self, origin: GeoPoint, destination: GeoPoint) -> DirectionsOutcome:
        """Return the first provider's routes plus a record of every attempt made."""
        deadline = Deadline(self.total_budget_seconds)
        attempts: list[DirectionsAttempt] = []

        for provider in self.providers:
            if provider.requires_network:
                timeout = deadline.cap(self.timeout_seconds)
                if timeout <= 0:
                    logger.warning("Skipping %s: request budget exhausted", provider.name)
                    attempts.append(
                        DirectionsAttempt(provider=provider.name, ok=False, reason="budget exhausted")
                    )
                    continue
            else:
                timeout = self.timeout_seconds

            try:
                routes = provider.attempt(origin, destination, timeout_seconds=timeout)
            except ProviderFailure as exc:
                logger.warning("Directions provider %s failed: %s", exc.provider, exc.reason)
                attempts.append(DirectionsAttempt(provider=provider.name, ok=False, reason=exc.reason))
                continue

            if not routes:
                logger.warning("Directions provider %s returned no routes", provider.name)
                attempts.append(DirectionsAttempt(provider=provider.name, ok=False, reason="no routes returned"))
                continue

            attempts.append(DirectionsAttempt(provider=provider.name, ok=True))
            logger.info("Directions served by %s (%s routes)", provider.name, len(routes))
            return DirectionsOutcome(source=provider.name, routes=list(routes), attempts=attempts)

        raise ProviderFailure("directions", "all providers failed")
