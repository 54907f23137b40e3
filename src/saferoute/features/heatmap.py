"""
Heatmap weighting for a bounding-box query.

Weights are normalized against the box's own maxima, computed over every aggregated tile
before the anonymity filter runs. Tiles below `k` are dropped from the output entirely (no
masked stubs in this view).
"""

from __future__ import annotations

from typing import Iterable

from saferoute.core.tiles import tile_centroid
from saferoute.domain.models import Centroid, HeatmapItem
from saferoute.privacy.kanon import DEFAULT_K, is_masked
from saferoute.store.base import TileCategoryCounts

WEIGHT_DECIMALS = 4


def _weight(value: int, maximum: int) -> float:
    if maximum <= 0:
        return 0.0
    return round(max(0.0, min(1.0, value / maximum)), WEIGHT_DECIMALS)


def build_heatmap_items(tiles: Iterable[TileCategoryCounts], *, k: int = DEFAULT_K) -> list[HeatmapItem]:
    tiles = list(tiles)
    max_incident = max((t.incident_count for t in tiles), default=0) or 1
    max_positive = max((t.positive_count for t in tiles), default=0) or 1

    items: list[HeatmapItem] = []
    for t in tiles:
        if is_masked(t.total_count, k):
            continue
        origin = tile_centroid(t.tile_id)
        items.append(
            HeatmapItem(
                tile_id=t.tile_id,
                centroid=Centroid(lat=origin.lat, lng=origin.lon),
                total_count=t.total_count,
                incident_count=t.incident_count,
                positive_count=t.positive_count,
                danger_weight=_weight(t.incident_count, max_incident),
                safe_weight=_weight(t.positive_count, max_positive),
            )
        )
    return items
