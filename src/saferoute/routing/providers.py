"""
Routing providers (the tiers of the directions fallback chain).

- `RoutesApiProvider`: the compute-routes endpoint (POST JSON, field-masked response).
- `LegacyDirectionsProvider`: the older directions endpoint (GET, `status == "OK"` sentinel).
- `SampledRouteProvider`: the offline sampler; never fails for valid endpoints.

Every external failure mode (transport errors, timeouts, error bodies, non-OK statuses,
undecodable polylines, malformed bodies, no routes, no API key) is reported as `ProviderFailure`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from saferoute.config.settings import DirectionsSettings, RoutingSettings
from saferoute.core.errors import ProviderFailure
from saferoute.core.geo import GeoPoint
from saferoute.core.http import get_json, post_json

from .base import RouteGeometry
from .polyline import decode_polyline
from .sampler import candidate_routes

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_NAME = "directions"


def _encoded_routes(
    name: str, data: dict[str, Any], container_key: str, value_key: str, label_key: str
) -> list[tuple[str, str | None]]:
    """Pull `(encoded, label)` pairs out of a provider body; unexpected shapes fail the provider."""
    raw_routes = data.get("routes") or []
    if not isinstance(raw_routes, list):
        raise ProviderFailure(name, "malformed response")
    encoded: list[tuple[str, str | None]] = []
    for route in raw_routes:
        if not isinstance(route, dict):
            raise ProviderFailure(name, "malformed response")
        container = route.get(container_key) or {}
        if not isinstance(container, dict):
            raise ProviderFailure(name, "malformed response")
        poly = container.get(value_key)
        if not poly:
            continue
        label = route.get(label_key)
        if not isinstance(poly, str) or not (label is None or isinstance(label, str)):
            raise ProviderFailure(name, "malformed response")
        encoded.append((poly, label))
    return encoded


def _decode_routes(name: str, encoded_routes: list[tuple[str, str | None]]) -> list[RouteGeometry]:
    routes: list[RouteGeometry] = []
    for encoded, label in encoded_routes:
        try:
            points = decode_polyline(encoded)
        except ValueError as exc:
            raise ProviderFailure(name, f"undecodable polyline: {exc}") from exc
        if len(points) < 2:
            continue
        routes.append(RouteGeometry(name=label or DEFAULT_ROUTE_NAME, points=tuple(points)))
    if not routes:
        raise ProviderFailure(name, "no routes returned")
    return routes


def _latlng(point: GeoPoint) -> dict[str, Any]:
    return {"location": {"latLng": {"latitude": point.lat, "longitude": point.lon}}}


class RoutesApiProvider:
    name = "routes_api"
    requires_network = True

    def __init__(self, settings: DirectionsSettings):
        self._settings = settings

    def _payload(self, origin: GeoPoint, destination: GeoPoint) -> dict[str, Any]:
        return {
            "origin": _latlng(origin),
            "destination": _latlng(destination),
            "travelMode": self._settings.travel_mode,
            "routingPreference": self._settings.routing_preference,
            "computeAlternativeRoutes": True,
        }

    def attempt(
        self, origin: GeoPoint, destination: GeoPoint, *, timeout_seconds: float
    ) -> list[RouteGeometry]:
        if not self._settings.api_key:
            raise ProviderFailure(self.name, "no API key configured")
        headers = {
            "X-Goog-Api-Key": self._settings.api_key,
            "X-Goog-FieldMask": self._settings.field_mask,
        }
        try:
            data = post_json(
                self._settings.routes_url,
                payload=self._payload(origin, destination),
                headers=headers,
                timeout_seconds=timeout_seconds,
            )
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFailure(self.name, f"request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderFailure(self.name, "unexpected response body")
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise ProviderFailure(self.name, f"error body: {message}")

        encoded = _encoded_routes(self.name, data, "polyline", "encodedPolyline", "description")
        return _decode_routes(self.name, encoded)


class LegacyDirectionsProvider:
    name = "directions_api"
    requires_network = True

    def __init__(self, settings: DirectionsSettings):
        self._settings = settings

    def attempt(
        self, origin: GeoPoint, destination: GeoPoint, *, timeout_seconds: float
    ) -> list[RouteGeometry]:
        if not self._settings.api_key:
            raise ProviderFailure(self.name, "no API key configured")
        params = {
            "origin": f"{origin.lat},{origin.lon}",
            "destination": f"{destination.lat},{destination.lon}",
            "alternatives": "true",
            "key": self._settings.api_key,
        }
        try:
            data = get_json(self._settings.legacy_url, params=params, timeout_seconds=timeout_seconds)
        except (httpx.HTTPError, ValueError) as exc:
            raise ProviderFailure(self.name, f"request failed: {exc}") from exc

        if not isinstance(data, dict):
            raise ProviderFailure(self.name, "unexpected response body")
        status = data.get("status")
        if status != "OK":
            detail = data.get("error_message")
            raise ProviderFailure(self.name, f"status {status}" + (f": {detail}" if detail else ""))

        encoded = _encoded_routes(self.name, data, "overview_polyline", "points", "summary")
        return _decode_routes(self.name, encoded)


class SampledRouteProvider:
    """Last-resort tier: the three synthetic sampler candidates."""

    name = "fallback"
    requires_network = False

    def __init__(self, routing: RoutingSettings, *, tile_size_m: float, steps: int | None = None):
        self._routing = routing
        self._tile_size_m = float(tile_size_m)
        self._steps = routing.fallback_steps if steps is None else int(steps)

    def attempt(
        self, origin: GeoPoint, destination: GeoPoint, *, timeout_seconds: float = 0.0
    ) -> list[RouteGeometry]:
        return candidate_routes(
            origin,
            destination,
            steps=self._steps,
            tile_size_m=self._tile_size_m,
            offset_tiles=self._routing.offset_tiles,
            minimum=self._routing.min_steps,
            maximum=self._routing.max_steps,
        )
