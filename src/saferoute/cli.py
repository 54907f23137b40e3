"""
SafeRoute CLI entrypoint.

This CLI is intended for local demos and debugging without the HTTP layer.
It delegates all scoring logic to `saferoute.engine.safety.SafetyEngine`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from saferoute.config.settings import get_settings
from saferoute.core.errors import InvalidInput
from saferoute.core.geo import GeoPoint
from saferoute.core.logging import configure_logging
from saferoute.domain.models import MaskedTile
from saferoute.domain.parsing import parse_bbox, parse_lnglat
from saferoute.engine.safety import SafetyEngine
from saferoute.store.database import build_engine, init_db
from saferoute.store.demo import DEFAULT_CENTER, build_demo_reports
from saferoute.store.reports_repository import ReportsRepository


def _repository(args: argparse.Namespace) -> ReportsRepository:
    settings = get_settings()
    engine = build_engine(settings, url=args.database_url)
    init_db(engine)
    return ReportsRepository(engine, tile_size_m=settings.privacy.tile_size_m)


def _safety_engine(args: argparse.Namespace) -> SafetyEngine:
    return SafetyEngine(get_settings(), _repository(args))


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _cmd_init_db(args: argparse.Namespace) -> int:
    _repository(args)
    print("Report store ready.")
    return 0


def _cmd_seed_demo(args: argparse.Namespace) -> int:
    center = DEFAULT_CENTER
    if args.center:
        center = parse_lnglat(args.center, field="center")
    reports = build_demo_reports(center, seed=int(args.seed))
    inserted = _repository(args).add_reports(reports)
    print(f"Inserted {inserted} synthetic reports around lat={center.lat:.4f} lng={center.lon:.4f}")
    return 0


def _cmd_safest_route(args: argparse.Namespace) -> int:
    """Handle the `safest-route` subcommand."""
    start: GeoPoint = parse_lnglat(args.start, field="start")
    end: GeoPoint = parse_lnglat(args.end, field="end")
    result = _safety_engine(args).safest_route(start, end, steps=args.steps, days=args.days)

    if args.json:
        _print_json(result.to_json_dict())
        return 0

    for i, route in enumerate(result.routes, start=1):
        marker = "*" if result.best is not None and route.name == result.best.name else " "
        print(f"{marker}{i}. {route.name:<13} score={route.score:.4f} tiles_evaluated={route.tiles_evaluated}")
    return 0


def _cmd_heatmap(args: argparse.Namespace) -> int:
    bbox = parse_bbox(args.bbox)
    result = _safety_engine(args).heatmap(bbox, days=args.days, tile_size_m=args.tile_size)

    if args.json:
        _print_json(result.to_json_dict())
        return 0

    print(f"{result.meta.tiles_returned} tiles (k={result.meta.k_anon}, tile={result.meta.tile_size_meters:g}m)")
    for item in result.items:
        print(
            f"  {item.tile_id}  total={item.total_count} danger={item.danger_weight:.4f} safe={item.safe_weight:.4f}"
        )
    return 0


def _cmd_tiles(args: argparse.Namespace) -> int:
    result = _safety_engine(args).tile_scores(days=args.days)

    if args.json:
        _print_json(result.to_json_dict())
        return 0

    masked = sum(1 for t in result.tiles if isinstance(t, MaskedTile))
    print(f"{len(result.tiles)} tiles ({masked} masked)")
    for tile in result.tiles:
        if isinstance(tile, MaskedTile):
            continue
        print(f"  {tile.tile_id}  count={tile.count} score={tile.score:.4f}  {', '.join(tile.reasons)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the SafeRoute CLI."""
    parser = argparse.ArgumentParser(prog="saferoute")
    parser.add_argument(
        "--database-url", default=None, help="Override the configured database URL (SQLAlchemy URL)."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Create the reports table if missing.")
    init.set_defaults(func=_cmd_init_db)

    seed = sub.add_parser("seed-demo", help="Insert synthetic hotspot/background reports.")
    seed.add_argument("--center", default=None, help='Centre as "lng,lat" (default: Jaipur).')
    seed.add_argument("--seed", type=int, default=7, help="Random seed for reproducible data.")
    seed.set_defaults(func=_cmd_seed_demo)

    route = sub.add_parser("safest-route", help="Score sampled candidates between two endpoints.")
    route.add_argument("--start", required=True, help='"lng,lat"')
    route.add_argument("--end", required=True, help='"lng,lat"')
    route.add_argument("--steps", type=int, default=None)
    route.add_argument("--days", type=int, default=None)
    route.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    route.set_defaults(func=_cmd_safest_route)

    heat = sub.add_parser("heatmap", help="k-anonymous heatmap weights inside a bounding box.")
    heat.add_argument("--bbox", required=True, help="minLng,minLat,maxLng,maxLat")
    heat.add_argument("--days", type=int, default=None)
    heat.add_argument("--tile-size", type=float, default=None, help="Tile edge in meters.")
    heat.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    heat.set_defaults(func=_cmd_heatmap)

    tiles = sub.add_parser("tiles", help="Per-tile risk overview.")
    tiles.add_argument("--days", type=int, default=None)
    tiles.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    tiles.set_defaults(func=_cmd_tiles)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m saferoute.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except InvalidInput as e:
        parser.exit(2, f"saferoute: error: {e}\n")


if __name__ == "__main__":
    raise SystemExit(main())
