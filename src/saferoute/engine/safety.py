"""
Safety engine (orchestration).

`SafetyEngine` wires settings, the report store, the heatmap cache and the directions
providers into the public queries:
1) `safest_route`: score the three sampled candidates between two endpoints
2) `score_geometry`: score a caller-supplied point sequence
3) `heatmap`: per-tile danger/safe weights inside a bounding box (cached)
4) `directions`: provider routes (with fallback) scored like sampled ones
5) `tile_scores`: per-tile risk overview

Every path that reads counts issues exactly one store query per request. Nothing here
reads the environment; configuration arrives through `Settings`.
"""

from __future__ import annotations

import logging
from typing import Sequence

from saferoute.config.settings import Settings, get_settings
from saferoute.core.cache import TTLCache
from saferoute.core.errors import InvalidInput
from saferoute.core.geo import GeoPoint, validate_point
from saferoute.core.tiles import tile_degrees, unique_tiles
from saferoute.core.time import window_start
from saferoute.domain.models import (
    BoundingBox,
    DirectionsResult,
    GeometryScore,
    HeatmapMeta,
    HeatmapResult,
    RouteSet,
    TileCount,
    TileOverview,
)
from saferoute.features.heatmap import build_heatmap_items
from saferoute.features.tile_risk import score_tile_summaries
from saferoute.privacy.kanon import enforce_k_anonymity
from saferoute.routing.base import RouteGeometry, RouteProvider
from saferoute.routing.directions import DirectionsAdapter
from saferoute.routing.providers import LegacyDirectionsProvider, RoutesApiProvider, SampledRouteProvider
from saferoute.routing.sampler import candidate_routes, clamp_steps
from saferoute.routing.scorer import max_observed, score_routes, score_tiles, union_tiles
from saferoute.store.base import ReportStore
from saferoute.store.database import build_engine, init_db
from saferoute.store.reports_repository import ReportsRepository

logger = logging.getLogger(__name__)


def build_heatmap_cache(settings: Settings) -> TTLCache:
    return TTLCache(
        settings.heatmap.cache_ttl_seconds,
        settings.heatmap.cache_max_entries,
        name="heatmap",
    )


def default_providers(settings: Settings) -> list[RouteProvider]:
    """External tiers, in fallback order; the sampler tier is appended per request."""
    return [RoutesApiProvider(settings.directions), LegacyDirectionsProvider(settings.directions)]


class SafetyEngine:
    def __init__(
        self,
        settings: Settings,
        store: ReportStore,
        *,
        heatmap_cache: TTLCache | None = None,
        providers: Sequence[RouteProvider] | None = None,
    ):
        self.settings = settings
        self.store = store
        self.tile_size_m = float(settings.privacy.tile_size_m)
        self.k = int(settings.privacy.k_anon)
        self.heatmap_cache = heatmap_cache if heatmap_cache is not None else build_heatmap_cache(settings)
        self.providers = list(providers) if providers is not None else default_providers(settings)

    def _window_days(self, days: int | None, default: int) -> int:
        value = default if days is None else int(days)
        if value < 1:
            raise InvalidInput("days must be >= 1")
        return value

    def _score(self, routes: list[RouteGeometry], *, days: int | None) -> RouteSet:
        window = self._window_days(days, self.settings.aggregation.window_days)
        tiles = union_tiles(routes, self.tile_size_m)
        counts = self.store.counts_by_tile(tiles, since=window_start(window))
        return score_routes(
            routes,
            counts,
            tile_size_m=self.tile_size_m,
            k=self.k,
            cap=self.settings.routing.max_normalized,
        )

    def safest_route(
        self, start: GeoPoint, end: GeoPoint, *, steps: int | None = None, days: int | None = None
    ) -> RouteSet:
        """Score the `center`, `north_offset` and `south_offset` candidates, safest first."""
        routing = self.settings.routing
        n = clamp_steps(steps, default=routing.default_steps, minimum=routing.min_steps, maximum=routing.max_steps)
        routes = candidate_routes(
            validate_point(start),
            validate_point(end),
            steps=n,
            tile_size_m=self.tile_size_m,
            offset_tiles=routing.offset_tiles,
            minimum=routing.min_steps,
            maximum=routing.max_steps,
        )
        return self._score(routes, days=days)

    def score_geometry(self, points: Sequence[GeoPoint], *, days: int | None = None) -> GeometryScore:
        if len(points) < 2:
            raise InvalidInput("geometry must be array of [lng,lat] points")
        window = self._window_days(days, self.settings.aggregation.window_days)
        tiles = unique_tiles([validate_point(p) for p in points], self.tile_size_m)
        counts = self.store.counts_by_tile(tiles, since=window_start(window))
        result = score_tiles(
            tiles,
            counts,
            k=self.k,
            max_count=max_observed(counts),
            cap=self.settings.routing.max_normalized,
        )
        per_tile = [TileCount(tile_id=t, count=int(counts.get(t, 0))) for t in tiles]
        return GeometryScore(
            score=result.score,
            tiles_evaluated=result.tiles_evaluated,
            tiles=enforce_k_anonymity(per_tile, self.k),
        )

    def heatmap(
        self, bbox: BoundingBox, *, days: int | None = None, tile_size_m: float | None = None
    ) -> HeatmapResult:
        """Danger/safe weights per tile inside `bbox`; repeated queries hit the TTL cache."""
        window = self._window_days(days, self.settings.aggregation.heatmap_window_days)
        size = self.tile_size_m if tile_size_m is None else float(tile_size_m)
        tile_degrees(size)  # rejects non-positive sizes
        key = f"{bbox.cache_token()}|{window}|{size!r}"

        def builder() -> HeatmapResult:
            logger.info("Aggregating heatmap bbox=%s days=%s tile_size_m=%s", bbox.as_list(), window, size)
            tiles = self.store.category_counts_in_bbox(bbox, since=window_start(window), tile_size_m=size)
            items = build_heatmap_items(tiles, k=self.k)
            meta = HeatmapMeta(
                bbox=bbox.as_list(),
                tile_size_meters=size,
                tiles_returned=len(items),
                k_anon=self.k,
            )
            return HeatmapResult(items=items, meta=meta)

        return self.heatmap_cache.get_or_set(key, builder)

    def directions(
        self, start: GeoPoint, end: GeoPoint, *, days: int | None = None, steps: int | None = None
    ) -> DirectionsResult:
        """Provider routes scored against report history; falls back to sampled candidates."""
        cfg = self.settings.directions
        window = self._window_days(days, self.settings.aggregation.window_days)
        origin, destination = validate_point(start), validate_point(end)
        sampler = SampledRouteProvider(self.settings.routing, tile_size_m=self.tile_size_m, steps=steps)
        adapter = DirectionsAdapter(
            [*self.providers, sampler],
            timeout_seconds=cfg.timeout_seconds,
            total_budget_seconds=cfg.total_budget_seconds,
        )
        outcome = adapter.resolve(origin, destination)
        ranked = self._score(outcome.routes, days=window)
        return DirectionsResult(
            routes=ranked.routes,
            best=ranked.best,
            source=outcome.source,
            attempts=outcome.attempts,
        )

    def tile_scores(self, *, days: int | None = None) -> TileOverview:
        window = self._window_days(days, self.settings.aggregation.window_days)
        summaries = self.store.tile_summaries(since=window_start(window))
        tiles = score_tile_summaries(
            summaries,
            settings=self.settings.tile_risk,
            k=self.k,
            cap=self.settings.routing.max_normalized,
        )
        return TileOverview(tiles=tiles)


def build_safety_engine(settings: Settings | None = None) -> SafetyEngine:
    """Create a `SafetyEngine` backed by the configured SQL report store."""
    settings = settings or get_settings()
    sql_engine = build_engine(settings)
    init_db(sql_engine)
    store = ReportsRepository(sql_engine, tile_size_m=settings.privacy.tile_size_m)
    return SafetyEngine(settings, store)
