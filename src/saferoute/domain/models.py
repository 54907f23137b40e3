"""
Domain models (Pydantic).

These types are the stable "contract" between the engine and its callers
(HTTP layer, CLI, tests):
- route scoring output (`RouteCandidate`, `RouteSet`, `DirectionsResult`, `GeometryScore`)
- tile views (`TileCount`, `TileScore`, `MaskedTile`)
- heatmap output (`HeatmapItem`, `HeatmapResult`)

Python attributes are snake_case; JSON keys are camelCase (`tilesEvaluated`, `dangerWeight`)
so the wire format stays what map clients already consume. Route geometries are lists of
`[lng, lat]` pairs (GeoJSON order).
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for immutable, camelCase-serialized response models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Centroid(WireModel):
    """Tile marker position (the tile's lower-left origin)."""

    lat: float
    lng: float


class BoundingBox(WireModel):
    """An axis-aligned lng/lat box (inclusive bounds)."""

    min_lng: float = Field(..., ge=-180, le=180)
    min_lat: float = Field(..., ge=-90, le=90)
    max_lng: float = Field(..., ge=-180, le=180)
    max_lat: float = Field(..., ge=-90, le=90)

    def as_list(self) -> list[float]:
        return [self.min_lng, self.min_lat, self.max_lng, self.max_lat]

    def cache_token(self) -> str:
        return ",".join(repr(float(v)) for v in self.as_list())


class RouteScore(WireModel):
    score: float
    tiles_evaluated: int


class RouteCandidate(WireModel):
    """One scored route. Lower score means safer."""

    name: str
    geometry: list[tuple[float, float]]
    score: float
    tiles_evaluated: int


class RouteSet(WireModel):
    """Candidates sorted ascending by score; `best` is the first (or None)."""

    routes: list[RouteCandidate]
    best: RouteCandidate | None = None


class DirectionsAttempt(WireModel):
    provider: str
    ok: bool
    reason: str | None = None


class DirectionsResult(RouteSet):
    source: str
    attempts: list[DirectionsAttempt] = Field(default_factory=list)


class MaskedTile(WireModel):
    """Stub emitted in place of a tile that falls below the anonymity threshold."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid"
    )

    tile_id: str
    masked: Literal[True] = True


class TileCount(WireModel):
    tile_id: str
    count: int


class GeometryScore(WireModel):
    score: float
    tiles_evaluated: int
    tiles: list[Union[TileCount, MaskedTile]]


class HeatmapItem(WireModel):
    tile_id: str
    centroid: Centroid
    total_count: int
    incident_count: int
    positive_count: int
    danger_weight: float = Field(..., ge=0, le=1)
    safe_weight: float = Field(..., ge=0, le=1)


class HeatmapMeta(WireModel):
    bbox: list[float]
    tile_size_meters: float
    tiles_returned: int
    k_anon: int


class HeatmapResult(WireModel):
    items: list[HeatmapItem]
    meta: HeatmapMeta


class TileScore(WireModel):
    """Per-tile risk overview entry (only ever emitted for tiles at or above k)."""

    tile_id: str
    count: int
    score: float = Field(..., ge=0, le=1)
    reasons: list[str] = Field(default_factory=list)
    centroid: Centroid | None = None


class TileOverview(WireModel):
    tiles: list[Union[TileScore, MaskedTile]]


class ScoreGeometryRequest(BaseModel):
    """Body of the score-a-geometry query; shape checks happen in the engine parser."""

    geometry: Any = None
    days: int | None = Field(default=None, ge=1)
