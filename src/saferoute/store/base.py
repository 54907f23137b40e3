from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Protocol

from saferoute.domain.models import BoundingBox


@dataclass(frozen=True)
class TileCategoryCounts:
    """Per-tile totals split into incident-like and positive reports."""

    tile_id: str
    total_count: int
    incident_count: int
    positive_count: int

    @property
    def count(self) -> int:
        return self.total_count


@dataclass(frozen=True)
class TileSummary:
    tile_id: str
    count: int
    latest: Optional[datetime]
    dark_reports: int = 0


@dataclass
class NewReport:
    type: str
    title: str
    lat: float
    lng: float
    description: Optional[str] = None
    severity: str = "medium"
    status: str = "submitted"
    lighting_flag: str = "unknown"
    is_public: bool = True
    created_at: Optional[datetime] = None
    anon_seed: Optional[str] = None


class ReportStore(Protocol):
    """Read-side aggregation surface the engine needs from the report repository.

    Every method only counts reports with status "submitted" created at or after `since`.
    Implementations raise `StoreUnavailable` when the query cannot be answered.
    """

    def counts_by_tile(self, tile_ids: Iterable[str], *, since: datetime) -> dict[str, int]:
        raise NotImplementedError

    def category_counts_in_bbox(
        self, bbox: BoundingBox, *, since: datetime, tile_size_m: float
    ) -> list[TileCategoryCounts]:
        raise NotImplementedError

    def tile_summaries(self, *, since: datetime) -> list[TileSummary]:
        raise NotImplementedError
