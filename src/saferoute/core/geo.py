from __future__ import annotations

from dataclasses import dataclass

from saferoute.core.errors import InvalidInput

"""
Geospatial primitives.

We keep a tiny geometry layer here (planar degrees, equirectangular approximation) so the
tiling, sampling and scoring modules stay free of heavier GIS dependencies.
"""

# Meters per degree of latitude; also used for longitude offsets (urban-scale approximation).
METERS_PER_DEGREE = 111_320.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in WGS84 decimal degrees."""

    lat: float
    lon: float

    @classmethod
    def from_lnglat(cls, pair: tuple[float, float] | list[float]) -> "GeoPoint":
        """Build a point from a `[lng, lat]` pair (GeoJSON order)."""
        lng, lat = pair
        return cls(lat=float(lat), lon=float(lng))

    def as_lnglat(self) -> tuple[float, float]:
        return (self.lon, self.lat)


def meters_to_degrees(meters: float) -> float:
    """Convert a distance in meters to degrees using the 111320 m/deg approximation."""
    return float(meters) / METERS_PER_DEGREE


def validate_point(point: GeoPoint) -> GeoPoint:
    """Raise `InvalidInput` when a point falls outside WGS84 ranges."""
    if not (-90.0 <= point.lat <= 90.0):
        raise InvalidInput(f"latitude {point.lat} is outside -90..90")
    if not (-180.0 <= point.lon <= 180.0):
        raise InvalidInput(f"longitude {point.lon} is outside -180..180")
    return point
