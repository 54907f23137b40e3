"""
SQLAlchemy engine factory for the report store.

The aggregation timeout from settings is applied where the driver supports it:
- SQLite: lock wait timeout (`timeout` connect arg); relative file paths resolve
  against the project root.
- PostgreSQL: `statement_timeout` plus connect and pool checkout timeouts.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from saferoute.config.settings import Settings
from saferoute.core.env import resolve_project_path
from saferoute.store.tables import metadata

logger = logging.getLogger(__name__)


def build_engine(settings: Settings, *, url: str | None = None) -> Engine:
    """Create an engine for `url` (defaults to `settings.database.url`)."""
    db_url = make_url(url or settings.database.url)
    timeout = float(settings.aggregation.store_timeout_seconds)
    backend = db_url.get_backend_name()
    kwargs: dict[str, Any] = {"echo": settings.database.echo, "future": True}

    if backend == "sqlite":
        database = db_url.database
        if database and database != ":memory:" and not database.startswith("file:"):
            path = resolve_project_path(database)
            path.parent.mkdir(parents=True, exist_ok=True)
            db_url = db_url.set(database=str(path))
        kwargs["connect_args"] = {"timeout": timeout, "check_same_thread": False}
    else:
        kwargs["pool_timeout"] = timeout
        kwargs["pool_pre_ping"] = True
        if backend == "postgresql":
            kwargs["connect_args"] = {
                "connect_timeout": max(1, int(timeout)),
                "options": f"-c statement_timeout={int(timeout * 1000)}",
            }

    logger.info("Report store backend=%s", backend)
    return create_engine(db_url, **kwargs)


def init_db(engine: Engine) -> None:
    """Create the reports table (idempotent)."""
    metadata.create_all(engine)
