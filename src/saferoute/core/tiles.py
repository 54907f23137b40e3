"""
Privacy tiles: a regular lat/lon grid used to quantize report locations.

A tile id is the cell's lower-left corner formatted as `"{lat:.6f}_{lon:.6f}"`, where the
cell edge in degrees is `tile_size_m / 111320`. Ids are plain strings so they can be used
as dict keys and SQL filter values.

`tile_centroid()` returns that lower-left origin, not the geometric center. Heatmap markers
and tile overviews rely on this convention, so do not "fix" it.
"""

from __future__ import annotations

import math
from typing import Iterable

from saferoute.core.errors import InvalidInput
from saferoute.core.geo import GeoPoint, meters_to_degrees

TILE_ID_PRECISION = 6


def tile_degrees(tile_size_m: float) -> float:
    """Tile edge length in degrees; rejects non-positive sizes."""
    size = float(tile_size_m)
    if not size > 0:
        raise InvalidInput(f"tile_size_m must be > 0 (got {tile_size_m})")
    return meters_to_degrees(size)


def to_tile(lat: float, lon: float, tile_size_m: float) -> str:
    """Map a coordinate onto its tile id (pure and deterministic)."""
    deg = tile_degrees(tile_size_m)
    lat_tile = math.floor(float(lat) / deg) * deg
    lon_tile = math.floor(float(lon) / deg) * deg
    return f"{lat_tile:.{TILE_ID_PRECISION}f}_{lon_tile:.{TILE_ID_PRECISION}f}"


def point_tile(point: GeoPoint, tile_size_m: float) -> str:
    return to_tile(point.lat, point.lon, tile_size_m)


def tile_centroid(tile_id: str) -> GeoPoint:
    """Return the tile's origin (lower-left) corner."""
    lat_str, sep, lon_str = str(tile_id).partition("_")
    if not sep:
        raise InvalidInput(f"malformed tile id '{tile_id}'")
    try:
        return GeoPoint(lat=float(lat_str), lon=float(lon_str))
    except ValueError as exc:
        raise InvalidInput(f"malformed tile id '{tile_id}'") from exc


def unique_tiles(points: Iterable[GeoPoint], tile_size_m: float) -> list[str]:
    """Distinct tile ids touched by `points`, in first-seen order."""
    seen: dict[str, None] = {}
    for p in points:
        seen.setdefault(point_tile(p, tile_size_m), None)
    return list(seen)
