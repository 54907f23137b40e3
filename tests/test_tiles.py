import re

import pytest

from saferoute.core.errors import InvalidInput
from saferoute.core.geo import GeoPoint
from saferoute.core.tiles import tile_centroid, tile_degrees, to_tile, unique_tiles


def test_to_tile_is_deterministic_and_fixed_precision():
    a = to_tile(26.9124, 75.7873, 50)
    b = to_tile(26.9124, 75.7873, 50)
    assert a == b
    assert re.fullmatch(r"-?\d+\.\d{6}_-?\d+\.\d{6}", a)


def test_points_in_same_cell_share_an_id_and_neighbours_do_not():
    deg = tile_degrees(50)
    base_lat = 1000 * deg + deg * 0.1
    base_lon = 2000 * deg + deg * 0.1
    same = to_tile(base_lat + deg * 0.5, base_lon + deg * 0.5, 50)
    assert to_tile(base_lat, base_lon, 50) == same
    assert to_tile(base_lat + deg, base_lon, 50) != same
    assert to_tile(base_lat, base_lon + deg, 50) != same


def test_negative_coordinates_floor_towards_negative_infinity():
    assert to_tile(-0.0001, -0.0001, 50) == "-0.000449_-0.000449"


@pytest.mark.parametrize("lat,lon", [(26.9124, 75.7873), (-33.8688, 151.2093), (51.5007, -0.1246)])
def test_centroid_is_lower_left_origin_of_the_cell(lat, lon):
    deg = tile_degrees(50)
    origin = tile_centroid(to_tile(lat, lon, 50))
    # 6-decimal formatting can move the origin by at most 5e-7.
    assert origin.lat - 1e-6 <= lat < origin.lat + deg + 1e-6
    assert origin.lon - 1e-6 <= lon < origin.lon + deg + 1e-6


@pytest.mark.parametrize("size", [0, -50])
def test_non_positive_tile_size_is_rejected(size):
    with pytest.raises(InvalidInput):
        to_tile(26.9, 75.8, size)


def test_malformed_tile_id_is_rejected():
    with pytest.raises(InvalidInput):
        tile_centroid("not-a-tile")
    with pytest.raises(InvalidInput):
        tile_centroid("abc_def")


def test_unique_tiles_dedupes_in_first_seen_order():
    p1 = GeoPoint(lat=26.9124, lon=75.7873)
    p2 = GeoPoint(lat=26.9200, lon=75.8000)
    tiles = unique_tiles([p1, p2, p1, p2], 50)
    assert tiles == [to_tile(p1.lat, p1.lon, 50), to_tile(p2.lat, p2.lon, 50)]
