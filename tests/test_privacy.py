import pytest

from saferoute.domain.models import MaskedTile, TileCount
from saferoute.privacy.kanon import enforce_k_anonymity


@pytest.mark.parametrize("count,k,masked", [(0, 3, True), (2, 3, True), (3, 3, False), (10, 3, False), (4, 5, True)])
def test_enforce_masks_iff_count_below_k(count, k, masked):
    out = enforce_k_anonymity([TileCount(tile_id="t", count=count)], k)
    assert isinstance(out[0], MaskedTile) is masked


def test_masked_stub_carries_only_tile_id_and_flag():
    out = enforce_k_anonymity([TileCount(tile_id="1.000000_2.000000", count=1)], 3)
    assert out[0].to_json_dict() == {"tileId": "1.000000_2.000000", "masked": True}


def test_enforce_keeps_order_and_untouched_tiles():
    tiles = [TileCount(tile_id="a", count=5), TileCount(tile_id="b", count=1), TileCount(tile_id="c", count=3)]
    out = enforce_k_anonymity(tiles)
    assert [t.tile_id for t in out] == ["a", "b", "c"]
    assert out[0] is tiles[0]
    assert out[2] is tiles[2]


def test_enforce_rejects_k_below_one():
    with pytest.raises(ValueError):
        enforce_k_anonymity([], 0)
