from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from saferoute.core.geo import GeoPoint


@dataclass(frozen=True)
class RouteGeometry:
    """An unscored route: a name plus its ordered points."""

    name: str
    points: tuple[GeoPoint, ...] = field(default_factory=tuple)

    def as_lnglat(self) -> list[tuple[float, float]]:
        return [p.as_lnglat() for p in self.points]


class RouteProvider(Protocol):
    """One tier of the directions fallback chain.

    `attempt` returns at least one route or raises `ProviderFailure`; it never returns an
    empty list. Providers with `requires_network = False` ignore the timeout and are run even
    when the request deadline is spent.
    """

    name: str
    requires_network: bool

    def attempt(
        self, origin: GeoPoint, destination: GeoPoint, *, timeout_seconds: float
    ) -> list[RouteGeometry]:
        raise NotImplementedError
