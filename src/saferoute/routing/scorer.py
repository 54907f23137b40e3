"""
Route safety scoring.

A route is reduced to the set of tiles it touches. Each tile with a usable count contributes
`min(cap, count / max_count * cap)`; the route score is the mean over contributing tiles,
rounded to 4 decimals. Lower is safer.

Tiles are skipped (neither penalized nor rewarded) when:
- the count is 0 or unknown (no data is neutral)
- the count is below `k` (the tile is masked, so its count must not influence any output)

`max_count` is the largest count across every tile considered by the request, never below 1.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from saferoute.core.geo import GeoPoint
from saferoute.core.tiles import unique_tiles
from saferoute.domain.models import RouteCandidate, RouteScore, RouteSet
from saferoute.privacy.kanon import DEFAULT_K, is_masked

from .base import RouteGeometry

MAX_NORMALIZED = 0.7
SCORE_DECIMALS = 4


def max_observed(counts: Mapping[str, int]) -> int:
    return max(1, max((int(c) for c in counts.values()), default=0))


def score_tiles(
    tile_ids: Iterable[str],
    counts: Mapping[str, int],
    *,
    k: int = DEFAULT_K,
    max_count: int | None = None,
    cap: float = MAX_NORMALIZED,
) -> RouteScore:
    """Score a set of tiles; duplicates and ordering do not matter."""
    max_count = max(1, int(max_count)) if max_count is not None else max_observed(counts)
    total = 0.0
    known = 0
    # Sorted so the float sum does not depend on point order.
    for tile_id in sorted(set(tile_ids)):
        c = int(counts.get(tile_id, 0) or 0)
        if c == 0 or is_masked(c, k):
            continue
        total += min(cap, c / max_count * cap)
        known += 1
    score = round(total / known, SCORE_DECIMALS) if known else 0.0
    return RouteScore(score=score, tiles_evaluated=known)


def score_points(
    points: Iterable[GeoPoint],
    counts: Mapping[str, int],
    *,
    tile_size_m: float,
    k: int = DEFAULT_K,
    max_count: int | None = None,
    cap: float = MAX_NORMALIZED,
) -> RouteScore:
    return score_tiles(unique_tiles(points, tile_size_m), counts, k=k, max_count=max_count, cap=cap)


def rank_candidates(candidates: Iterable[RouteCandidate]) -> RouteSet:
    """Sort ascending by score (stable, so ties keep input order); best is the first."""
    ordered = sorted(candidates, key=lambda c: c.score)
    return RouteSet(routes=ordered, best=ordered[0] if ordered else None)


def union_tiles(routes: Iterable[RouteGeometry], tile_size_m: float) -> list[str]:
    """Distinct tiles touched by any of `routes`, for one batched count query."""
    seen: dict[str, None] = {}
    for route in routes:
        for tile_id in unique_tiles(route.points, tile_size_m):
            seen.setdefault(tile_id, None)
    return list(seen)


def score_routes(
    routes: list[RouteGeometry],
    counts: Mapping[str, int],
    *,
    tile_size_m: float,
    k: int = DEFAULT_K,
    cap: float = MAX_NORMALIZED,
) -> RouteSet:
    """Score every route against one shared count lookup and rank the results.

    `counts` should cover the union of the routes' tiles; `max_count` is taken from it so all
    candidates share one normalization.
    """
    max_count = max_observed(counts)
    candidates = []
    for route in routes:
        tiles = unique_tiles(route.points, tile_size_m)
        result = score_tiles(tiles, counts, k=k, max_count=max_count, cap=cap)
        candidates.append(
            RouteCandidate(
                name=route.name,
                geometry=route.as_lnglat(),
                score=result.score,
                tiles_evaluated=result.tiles_evaluated,
            )
        )
    return rank_candidates(candidates)
