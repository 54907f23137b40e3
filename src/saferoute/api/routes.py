"""
API routes.

Endpoints:
- GET  `/api/health`: liveness check.
- GET  `/api/reports/safest-route`: score sampled candidates between two endpoints.
- POST `/api/reports/score-geometry`: score an explicit `[[lng, lat], ...]` geometry.
- GET  `/api/reports/heatmap`: k-anonymous danger/safe weights inside a bounding box.
- GET  `/api/reports/directions`: provider routes with fallback, scored.
- GET  `/api/reports/tiles`: per-tile risk overview (masked below k).
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Callable, Optional, TypeVar

from fastapi import APIRouter, HTTPException, Query

from saferoute.config.settings import get_settings
from saferoute.core.errors import InvalidInput
from saferoute.domain.models import (
    DirectionsResult,
    GeometryScore,
    HeatmapResult,
    RouteSet,
    ScoreGeometryRequest,
    TileOverview,
)
from saferoute.domain.parsing import (
    parse_bbox,
    parse_geometry,
    parse_int,
    parse_lnglat,
    parse_positive_float,
)
from saferoute.engine.safety import SafetyEngine, build_safety_engine

logger = logging.getLogger(__name__)

router = APIRouter()

T = TypeVar("T")


@lru_cache
def _engine() -> SafetyEngine:
    return build_safety_engine(get_settings())


def _run(label: str, func: Callable[[], T]) -> T:
    """Call into the engine and translate domain errors into HTTP errors."""
    try:
        return func()
    except InvalidInput as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e
    except Exception as e:
        logger.exception("%s request failed", label)
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": "Server error"},
        ) from e


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.get("/api/reports/safest-route", response_model=RouteSet)
def get_safest_route(
    start: Optional[str] = None,
    end: Optional[str] = None,
    steps: Optional[str] = None,
    days: Optional[str] = None,
) -> RouteSet:
    """Score `center`, `north_offset` and `south_offset` candidates (lower score is safer)."""

    def run() -> RouteSet:
        return _engine().safest_route(
            parse_lnglat(start, field="start"),
            parse_lnglat(end, field="end"),
            steps=parse_int(steps, field="steps"),
            days=parse_int(days, field="days", minimum=1),
        )

    return _run("safest-route", run)


@router.post("/api/reports/score-geometry", response_model=GeometryScore)
def post_score_geometry(body: ScoreGeometryRequest) -> GeometryScore:
    """Score a caller-supplied geometry; per-tile counts below k come back masked."""

    def run() -> GeometryScore:
        return _engine().score_geometry(parse_geometry(body.geometry), days=body.days)

    return _run("score-geometry", run)


@router.get("/api/reports/heatmap", response_model=HeatmapResult)
def get_heatmap(
    bbox: Optional[str] = None,
    days: Optional[str] = None,
    tile_size_meters: Optional[str] = Query(default=None, alias="tileSizeMeters"),
) -> HeatmapResult:
    """Return heatmap items for tiles with at least k reports inside `bbox`."""

    def run() -> HeatmapResult:
        return _engine().heatmap(
            parse_bbox(bbox),
            days=parse_int(days, field="days", minimum=1),
            tile_size_m=parse_positive_float(tile_size_meters, field="tileSizeMeters"),
        )

    return _run("heatmap", run)


@router.get("/api/reports/directions", response_model=DirectionsResult)
def get_directions(
    start: Optional[str] = None,
    end: Optional[str] = None,
    days: Optional[str] = None,
    steps: Optional[str] = None,
) -> DirectionsResult:
    """Provider routes scored against report history; never fails on provider outages."""

    def run() -> DirectionsResult:
        return _engine().directions(
            parse_lnglat(start, field="start"),
            parse_lnglat(end, field="end"),
            days=parse_int(days, field="days", minimum=1),
            steps=parse_int(steps, field="steps"),
        )

    return _run("directions", run)


@router.get("/api/reports/tiles", response_model=TileOverview)
def get_tiles(days: Optional[str] = None) -> TileOverview:
    def run() -> TileOverview:
        return _engine().tile_scores(days=parse_int(days, field="days", minimum=1))

    return _run("tiles", run)
