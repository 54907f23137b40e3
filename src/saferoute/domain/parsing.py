"""
Input parsing for query strings and request bodies.

Every helper raises `InvalidInput` with a message that names the offending field; nothing
here is partially applied.
"""

from __future__ import annotations

import math
from typing import Any

from saferoute.core.errors import InvalidInput
from saferoute.core.geo import GeoPoint, validate_point
from saferoute.domain.models import BoundingBox


def _to_float(value: Any, *, field: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{field} must be numeric (got {value!r})") from exc
    if not math.isfinite(out):
        raise InvalidInput(f"{field} must be a finite number")
    return out


def parse_lnglat(raw: str | None, *, field: str) -> GeoPoint:
    """Parse a `"lng,lat"` query value."""
    if raw is None or not str(raw).strip():
        raise InvalidInput(f'{field} is required as "lng,lat"')
    parts = [p.strip() for p in str(raw).split(",")]
    if len(parts) != 2:
        raise InvalidInput(f'{field} must be "lng,lat" (got {raw!r})')
    lng = _to_float(parts[0], field=f"{field}.lng")
    lat = _to_float(parts[1], field=f"{field}.lat")
    return validate_point(GeoPoint(lat=lat, lon=lng))


def parse_bbox(raw: str | None) -> BoundingBox:
    """Parse `"minLng,minLat,maxLng,maxLat"`; exactly four numbers."""
    if raw is None or not str(raw).strip():
        raise InvalidInput("bbox required as minLng,minLat,maxLng,maxLat")
    parts = [p.strip() for p in str(raw).split(",")]
    if len(parts) != 4:
        raise InvalidInput("bbox must be 4 numbers")
    min_lng, min_lat, max_lng, max_lat = (_to_float(p, field="bbox") for p in parts)
    for lng in (min_lng, max_lng):
        validate_point(GeoPoint(lat=0.0, lon=lng))
    for lat in (min_lat, max_lat):
        validate_point(GeoPoint(lat=lat, lon=0.0))
    if min_lng > max_lng or min_lat > max_lat:
        raise InvalidInput("bbox minimums must not exceed maximums")
    return BoundingBox(min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat)


def parse_geometry(raw: Any) -> list[GeoPoint]:
    """Parse `[[lng, lat], ...]` with at least two points."""
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise InvalidInput("geometry must be array of [lng,lat] points")
    points: list[GeoPoint] = []
    for i, pair in enumerate(raw):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidInput(f"geometry[{i}] must be a [lng,lat] pair")
        lng = _to_float(pair[0], field=f"geometry[{i}].lng")
        lat = _to_float(pair[1], field=f"geometry[{i}].lat")
        points.append(validate_point(GeoPoint(lat=lat, lon=lng)))
    return points


def parse_int(raw: Any, *, field: str, minimum: int | None = None) -> int | None:
    """Parse an optional integer parameter (None passes through)."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    value = _to_float(raw, field=field)
    if value != int(value):
        raise InvalidInput(f"{field} must be an integer")
    out = int(value)
    if minimum is not None and out < minimum:
        raise InvalidInput(f"{field} must be >= {minimum}")
    return out


def parse_positive_float(raw: Any, *, field: str) -> float | None:
    """Parse an optional strictly positive number (None passes through)."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    value = _to_float(raw, field=field)
    if value <= 0:
        raise InvalidInput(f"{field} must be > 0")
    return value
