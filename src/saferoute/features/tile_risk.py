from __future__ import annotations

from typing import Iterable, Union

from saferoute.config.settings import TileRiskSettings
from saferoute.core.tiles import tile_centroid
from saferoute.core.time import ensure_utc
from saferoute.domain.models import Centroid, MaskedTile, TileScore
from saferoute.privacy.kanon import DEFAULT_K, enforce_k_anonymity
from saferoute.routing.scorer import MAX_NORMALIZED, max_observed
from saferoute.store.base import TileSummary

SCORE_DECIMALS = 4


def is_night_hour(hour: int, settings: TileRiskSettings) -> bool:
    return hour < settings.night_end_hour or hour >= settings.night_start_hour


def score_tile_summary(
    summary: TileSummary, *, max_count: int, settings: TileRiskSettings, cap: float = MAX_NORMALIZED
) -> TileScore:
    """Risk score for one tile: normalized history plus late-hour and low-lighting penalties."""
    normalized = min(cap, summary.count / max(1, max_count) * cap)
    night = summary.latest is not None and is_night_hour(ensure_utc(summary.latest).hour, settings)
    dark = summary.dark_reports > 0

    score = normalized
    reasons: list[str] = []
    if summary.count > 0:
        reasons.append("historical_reports")
    if night:
        score += settings.night_penalty
        reasons.append("late_hour")
    if dark:
        score += settings.dark_penalty
        reasons.append("low_lighting")

    return TileScore(
        tile_id=summary.tile_id,
        count=summary.count,
        score=round(min(1.0, score), SCORE_DECIMALS),
        reasons=reasons,
    )


def score_tile_summaries(
    summaries: Iterable[TileSummary],
    *,
    settings: TileRiskSettings,
    k: int = DEFAULT_K,
    cap: float = MAX_NORMALIZED,
) -> list[Union[TileScore, MaskedTile]]:
    """Score every tile, mask those below `k`, then attach centroids to the survivors."""
    summaries = list(summaries)
    max_count = max_observed({s.tile_id: s.count for s in summaries})
    scored = [score_tile_summary(s, max_count=max_count, settings=settings, cap=cap) for s in summaries]

    out: list[Union[TileScore, MaskedTile]] = []
    for tile in enforce_k_anonymity(scored, k):
        if isinstance(tile, MaskedTile):
            out.append(tile)
            continue
        origin = tile_centroid(tile.tile_id)
        out.append(tile.model_copy(update={"centroid": Centroid(lat=origin.lat, lng=origin.lon)}))
    return out
