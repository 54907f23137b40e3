"""
Synthetic candidate routes.

When no provider geometry is available we approximate a trip with a straight line between
the endpoints (planar lon/lat interpolation, fine at city scale) plus two copies shifted
north and south by a few tile widths. The three candidates are then scored like any other
route.
"""

from __future__ import annotations

from saferoute.core.geo import GeoPoint
from saferoute.core.tiles import tile_degrees

from .base import RouteGeometry

MIN_STEPS = 5
MAX_STEPS = 200
OFFSET_TILES = 3

CANDIDATE_NAMES = ("center", "north_offset", "south_offset")


def clamp_steps(steps: int | None, *, default: int = 20, minimum: int = MIN_STEPS, maximum: int = MAX_STEPS) -> int:
    """Clamp a requested step count into [minimum, maximum]; None means `default`."""
    value = default if steps is None else int(steps)
    return max(int(minimum), min(int(maximum), value))


def sample_line(
    start: GeoPoint,
    end: GeoPoint,
    steps: int,
    *,
    minimum: int = MIN_STEPS,
    maximum: int = MAX_STEPS,
) -> list[GeoPoint]:
    """Return `steps + 1` evenly spaced points from `start` to `end` (both included)."""
    n = clamp_steps(steps, minimum=minimum, maximum=maximum)
    d_lat = end.lat - start.lat
    d_lon = end.lon - start.lon
    points = [GeoPoint(lat=start.lat + d_lat * i / n, lon=start.lon + d_lon * i / n) for i in range(n)]
    points.append(end)
    return points


def shift_latitude(points: list[GeoPoint], offset_deg: float) -> list[GeoPoint]:
    return [GeoPoint(lat=p.lat + offset_deg, lon=p.lon) for p in points]


def candidate_routes(
    start: GeoPoint,
    end: GeoPoint,
    *,
    steps: int,
    tile_size_m: float,
    offset_tiles: float = OFFSET_TILES,
    minimum: int = MIN_STEPS,
    maximum: int = MAX_STEPS,
) -> list[RouteGeometry]:
    """Build the `center`, `north_offset` and `south_offset` candidates."""
    center = sample_line(start, end, steps, minimum=minimum, maximum=maximum)
    offset = float(offset_tiles) * tile_degrees(tile_size_m)
    return [
        RouteGeometry(name="center", points=tuple(center)),
        RouteGeometry(name="north_offset", points=tuple(shift_latitude(center, offset))),
        RouteGeometry(name="south_offset", points=tuple(shift_latitude(center, -offset))),
    ]
