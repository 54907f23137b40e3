from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, MetaData, Table, Text

metadata = MetaData()

REPORT_TYPES = ("incident", "harassment", "safety_concern", "positive_experience", "tip")
INCIDENT_TYPES = ("incident", "harassment", "safety_concern")
POSITIVE_TYPES = ("positive_experience",)
REPORT_STATUSES = ("draft", "submitted", "under_review", "resolved", "archived")
LIGHTING_FLAGS = ("dark", "normal", "unknown")

reports_table = Table(
    "reports",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("tile_id", Text, nullable=False),
    Column("anon_hash", Text, nullable=False),
    Column("type", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("lat", Float, nullable=False),
    Column("lng", Float, nullable=False),
    Column("severity", Text, nullable=False, default="medium"),
    Column("status", Text, nullable=False, default="submitted"),
    Column("lighting_flag", Text, nullable=False, default="unknown"),
    Column("is_public", Boolean, nullable=False, default=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Index("ix_reports_status_created_tile", reports_table.c.status, reports_table.c.created_at, reports_table.c.tile_id)
Index("ix_reports_tile_id", reports_table.c.tile_id)
