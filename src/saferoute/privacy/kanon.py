"""
k-anonymity enforcement for tile views.

A tile's statistics may only leave the engine when at least `k` submitted reports fall in
it. Below that, the whole record is replaced by `MaskedTile(tile_id, masked=True)`: no count,
centroid, score or weight survives.
"""

from __future__ import annotations

from typing import Iterable, Protocol, TypeVar

from saferoute.domain.models import MaskedTile

DEFAULT_K = 3


class CountedTile(Protocol):
    tile_id: str
    count: int


T = TypeVar("T", bound=CountedTile)


def is_masked(count: int | None, k: int) -> bool:
    return int(count or 0) < int(k)


def enforce_k_anonymity(tiles: Iterable[T], k: int = DEFAULT_K) -> list[T | MaskedTile]:
    """Mask every tile whose count is below `k`, keeping input order."""
    if int(k) < 1:
        raise ValueError("k must be >= 1")
    out: list[T | MaskedTile] = []
    for tile in tiles:
        if is_masked(tile.count, k):
            out.append(MaskedTile(tile_id=tile.tile_id))
        else:
            out.append(tile)
    return out
