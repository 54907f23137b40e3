from __future__ import annotations

import logging
import secrets
from collections import defaultdict
from datetime import datetime
from hashlib import sha256
from typing import Dict, Iterable, List, Sequence

from sqlalchemy import case, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from saferoute.core.errors import InvalidInput, StoreUnavailable
from saferoute.core.tiles import to_tile
from saferoute.core.time import ensure_utc, utc_now
from saferoute.domain.models import BoundingBox

from .base import NewReport, TileCategoryCounts, TileSummary
from .tables import (
    INCIDENT_TYPES,
    LIGHTING_FLAGS,
    POSITIVE_TYPES,
    REPORT_STATUSES,
    REPORT_TYPES,
    reports_table,
)

logger = logging.getLogger(__name__)

SUBMITTED = "submitted"
# Keeps IN (...) lists under SQLite's bound-parameter limit.
TILE_CHUNK_SIZE = 500


class ReportsRepository:
    """SQLAlchemy-backed report store: aggregation queries plus a small ingestion helper."""

    def __init__(self, engine: Engine, *, tile_size_m: float = 50):
        if engine is None:
            raise ValueError("engine is required")
        self.engine = engine
        self.tile_size_m = float(tile_size_m)

    def _base_filters(self, since: datetime) -> list:
        return [
            reports_table.c.status == SUBMITTED,
            reports_table.c.created_at >= ensure_utc(since),
        ]

    def counts_by_tile(self, tile_ids: Iterable[str], *, since: datetime) -> Dict[str, int]:
        wanted = sorted(set(tile_ids))
        if not wanted:
            return {}
        counts: Dict[str, int] = {}
        try:
            with self.engine.connect() as conn:
                for start in range(0, len(wanted), TILE_CHUNK_SIZE):
                    chunk = wanted[start : start + TILE_CHUNK_SIZE]
                    rows = conn.execute(
                        select(reports_table.c.tile_id, func.count().label("count"))
                        .where(*self._base_filters(since), reports_table.c.tile_id.in_(chunk))
                        .group_by(reports_table.c.tile_id)
                    ).all()
                    for tile_id, count in rows:
                        counts[tile_id] = int(count)
        except SQLAlchemyError as exc:
            logger.exception("Tile count aggregation failed for %s tiles", len(wanted))
            raise StoreUnavailable("tile count aggregation failed") from exc
        return counts

    def category_counts_in_bbox(
        self, bbox: BoundingBox, *, since: datetime, tile_size_m: float
    ) -> List[TileCategoryCounts]:
        filters = [
            *self._base_filters(since),
            reports_table.c.lng >= bbox.min_lng,
            reports_table.c.lng <= bbox.max_lng,
            reports_table.c.lat >= bbox.min_lat,
            reports_table.c.lat <= bbox.max_lat,
        ]
        try:
            with self.engine.connect() as conn:
                if float(tile_size_m) == self.tile_size_m:
                    return self._grouped_category_counts(conn, filters)
                return self._requantized_category_counts(conn, filters, float(tile_size_m))
        except SQLAlchemyError as exc:
            logger.exception("Bounding-box aggregation failed for bbox=%s", bbox.as_list())
            raise StoreUnavailable("bounding-box aggregation failed") from exc

    def _grouped_category_counts(self, conn, filters: list) -> List[TileCategoryCounts]:
        incident = func.sum(case((reports_table.c.type.in_(sorted(INCIDENT_TYPES)), 1), else_=0))
        positive = func.sum(case((reports_table.c.type.in_(sorted(POSITIVE_TYPES)), 1), else_=0))
        rows = conn.execute(
            select(
                reports_table.c.tile_id,
                func.count().label("total"),
                incident.label("incident"),
                positive.label("positive"),
            )
            .where(*filters)
            .group_by(reports_table.c.tile_id)
            .order_by(reports_table.c.tile_id)
        ).mappings()
        return [
            TileCategoryCounts(
                tile_id=row["tile_id"],
                total_count=int(row["total"]),
                incident_count=int(row["incident"] or 0),
                positive_count=int(row["positive"] or 0),
            )
            for row in rows
        ]

    def _requantized_category_counts(self, conn, filters: list, tile_size_m: float) -> List[TileCategoryCounts]:
        # Stored tile ids use the ingestion size; other sizes re-tile the raw points.
        buckets: Dict[str, List[int]] = defaultdict(lambda: [0, 0, 0])
        rows = conn.execute(
            select(reports_table.c.lat, reports_table.c.lng, reports_table.c.type).where(*filters)
        )
        for lat, lng, report_type in rows:
            bucket = buckets[to_tile(lat, lng, tile_size_m)]
            bucket[0] += 1
            if report_type in INCIDENT_TYPES:
                bucket[1] += 1
            elif report_type in POSITIVE_TYPES:
                bucket[2] += 1
        return [
            TileCategoryCounts(
                tile_id=tile_id,
                total_count=total,
                incident_count=incident,
                positive_count=positive,
            )
            for tile_id, (total, incident, positive) in sorted(buckets.items())
        ]

    def tile_summaries(self, *, since: datetime) -> List[TileSummary]:
        dark = func.sum(case((reports_table.c.lighting_flag == "dark", 1), else_=0))
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(
                        reports_table.c.tile_id,
                        func.count().label("count"),
                        func.max(reports_table.c.created_at).label("latest"),
                        dark.label("dark_reports"),
                    )
                    .where(*self._base_filters(since))
                    .group_by(reports_table.c.tile_id)
                    .order_by(reports_table.c.tile_id)
                ).mappings().all()
        except SQLAlchemyError as exc:
            logger.exception("Tile summary aggregation failed")
            raise StoreUnavailable("tile summary aggregation failed") from exc
        return [
            TileSummary(
                tile_id=row["tile_id"],
                count=int(row["count"]),
                latest=_as_datetime(row["latest"]),
                dark_reports=int(row["dark_reports"] or 0),
            )
            for row in rows
        ]

    def add_reports(self, reports: Sequence[NewReport]) -> int:
        """Insert reports, deriving tile ids and anonymised reporter hashes server-side."""
        if not reports:
            return 0
        now = utc_now()
        values = [self._row_values(r, now) for r in reports]
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(reports_table), values)
        except SQLAlchemyError as exc:
            logger.exception("Report insert failed (%s rows)", len(values))
            raise StoreUnavailable("report insert failed") from exc
        return len(values)

    def _row_values(self, report: NewReport, now: datetime) -> dict:
        if report.type not in REPORT_TYPES:
            raise InvalidInput(f"Invalid report type '{report.type}'")
        if report.status not in REPORT_STATUSES:
            raise InvalidInput(f"Invalid report status '{report.status}'")
        lighting = report.lighting_flag if report.lighting_flag in LIGHTING_FLAGS else "unknown"
        seed = f"{report.anon_seed or ''}{secrets.token_hex(8)}{now.timestamp()}"
        return {
            "tile_id": to_tile(report.lat, report.lng, self.tile_size_m),
            "anon_hash": sha256(seed.encode("utf-8")).hexdigest()[:16],
            "type": report.type,
            "title": report.title,
            "description": report.description,
            "lat": float(report.lat),
            "lng": float(report.lng),
            "severity": report.severity,
            "status": report.status,
            "lighting_flag": lighting,
            "is_public": bool(report.is_public),
            "created_at": ensure_utc(report.created_at or now),
        }


def _as_datetime(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return ensure_utc(value)
