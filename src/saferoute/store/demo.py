"""
Synthetic demo reports.

Builds a reproducible set of submitted reports around a centre point: dense incident clusters
(danger hotspots), sparse positive-experience clusters (safer zones) and scattered background
concerns over the last month. Used by `saferoute seed-demo` and by tests that need a populated
store.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta

from saferoute.core.geo import GeoPoint
from saferoute.core.time import utc_now

from .base import NewReport

# Jaipur city centre; hotspot offsets below are relative to the centre in degrees.
DEFAULT_CENTER = GeoPoint(lat=26.9124, lon=75.7873)
DANGER_OFFSETS = ((0.0072, 0.0005), (0.0111, 0.0342), (-0.0012, -0.0437))
SAFE_OFFSETS = ((-0.0074, 0.0004), (-0.0730, 0.0006))


def build_demo_reports(
    center: GeoPoint = DEFAULT_CENTER,
    *,
    seed: int = 7,
    now: datetime | None = None,
    danger_per_zone: int = 20,
    safe_per_zone: int = 4,
    background: int = 30,
) -> list[NewReport]:
    rng = random.Random(seed)
    now = now or utc_now()
    reports: list[NewReport] = []

    def jitter(base_lat: float, base_lng: float, spread: float) -> tuple[float, float]:
        return (
            base_lat + (rng.random() - 0.5) * spread,
            base_lng + (rng.random() - 0.5) * spread,
        )

    for d_lat, d_lng in DANGER_OFFSETS:
        for _ in range(danger_per_zone):
            lat, lng = jitter(center.lat + d_lat, center.lon + d_lng, 0.002)
            reports.append(
                NewReport(
                    type="incident",
                    title="Demo - dangerous area",
                    lat=lat,
                    lng=lng,
                    severity="high" if rng.random() > 0.6 else "medium",
                    lighting_flag="dark" if rng.random() > 0.7 else "normal",
                    created_at=now - timedelta(seconds=rng.randint(0, 24 * 3600)),
                    anon_seed=f"demo-{rng.getrandbits(32):08x}",
                )
            )

    for d_lat, d_lng in SAFE_OFFSETS:
        for _ in range(safe_per_zone):
            lat, lng = jitter(center.lat + d_lat, center.lon + d_lng, 0.001)
            reports.append(
                NewReport(
                    type="positive_experience",
                    title="Demo - safer area",
                    lat=lat,
                    lng=lng,
                    severity="low",
                    lighting_flag="normal",
                    created_at=now - timedelta(seconds=rng.randint(0, 24 * 3600)),
                    anon_seed=f"demo-{rng.getrandbits(32):08x}",
                )
            )

    for _ in range(background):
        lat, lng = jitter(center.lat, center.lon, 0.08)
        reports.append(
            NewReport(
                type="harassment" if rng.random() > 0.7 else "safety_concern",
                title="Demo - background",
                lat=lat,
                lng=lng,
                severity="high" if rng.random() > 0.8 else "medium",
                created_at=now - timedelta(seconds=rng.randint(0, 30 * 24 * 3600)),
                anon_seed=f"demo-{rng.getrandbits(32):08x}",
            )
        )

    return reports
