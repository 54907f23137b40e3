import pytest

from saferoute.core.tiles import tile_centroid
from saferoute.features.heatmap import build_heatmap_items
from saferoute.store.base import TileCategoryCounts


def _tile(tile_id, total, incident, positive):
    return TileCategoryCounts(tile_id=tile_id, total_count=total, incident_count=incident, positive_count=positive)


def test_weights_are_normalized_against_box_maxima():
    items = build_heatmap_items(
        [
            _tile("26.910000_75.780000", 10, 8, 2),
            _tile("26.920000_75.790000", 5, 2, 3),
        ],
        k=3,
    )
    by_id = {i.tile_id: i for i in items}
    assert by_id["26.910000_75.780000"].danger_weight == 1.0
    assert by_id["26.910000_75.780000"].safe_weight == pytest.approx(0.6667)
    assert by_id["26.920000_75.790000"].danger_weight == 0.25
    assert by_id["26.920000_75.790000"].safe_weight == 1.0


def test_under_threshold_tiles_are_dropped_but_still_count_towards_maxima():
    items = build_heatmap_items(
        [
            _tile("1.000000_1.000000", 4, 4, 0),
            _tile("2.000000_2.000000", 10, 2, 8),
        ],
        k=5,
    )
    assert [i.tile_id for i in items] == ["2.000000_2.000000"]
    assert items[0].danger_weight == 0.5


def test_item_carries_origin_centroid_and_counts():
    (item,) = build_heatmap_items([_tile("26.912000_75.787000", 3, 3, 0)], k=3)
    origin = tile_centroid(item.tile_id)
    assert (item.centroid.lat, item.centroid.lng) == (origin.lat, origin.lon)
    assert item.total_count == 3
    assert item.safe_weight == 0.0
    assert item.to_json_dict()["dangerWeight"] == 1.0


def test_empty_box_yields_no_items():
    assert build_heatmap_items([], k=3) == []
