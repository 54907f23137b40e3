"""
Encoded polyline codec (the common 5-bit, 1e5-scale format used by map routing APIs).

Each coordinate is stored as a signed delta from the previous point, zig-zag encoded and
split into 5-bit groups (0x20 marks continuation, 63 is added to every chunk). Latitude
comes first in each pair.
"""

from __future__ import annotations

from typing import Iterable

from saferoute.core.geo import GeoPoint

PRECISION = 5


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    shift = 0
    result = 0
    while True:
        if index >= len(encoded):
            raise ValueError("truncated polyline")
        b = ord(encoded[index]) - 63
        if b < 0:
            raise ValueError(f"invalid polyline character at {index}")
        index += 1
        result |= (b & 0x1F) << shift
        shift += 5
        if b < 0x20:
            break
    delta = ~(result >> 1) if result & 1 else result >> 1
    return delta, index


def decode_polyline(encoded: str, precision: int = PRECISION) -> list[GeoPoint]:
    """Decode an encoded polyline into points.

    Raises:
        ValueError: If the string is truncated or contains characters outside the alphabet.
    """
    factor = 10**precision
    points: list[GeoPoint] = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        dlat, index = _decode_value(encoded, index)
        dlng, index = _decode_value(encoded, index)
        lat += dlat
        lng += dlng
        points.append(GeoPoint(lat=lat / factor, lon=lng / factor))
    return points


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= 0x20:
        chunks.append(chr((0x20 | (value & 0x1F)) + 63))
        value >>= 5
    chunks.append(chr(value + 63))
    return "".join(chunks)


def encode_polyline(points: Iterable[GeoPoint], precision: int = PRECISION) -> str:
    """Encode points; used by fixtures and the demo tooling."""
    factor = 10**precision
    out = []
    prev_lat = 0
    prev_lng = 0
    for p in points:
        lat = int(round(p.lat * factor))
        lng = int(round(p.lon * factor))
        out.append(_encode_value(lat - prev_lat))
        out.append(_encode_value(lng - prev_lng))
        prev_lat, prev_lng = lat, lng
    return "".join(out)
