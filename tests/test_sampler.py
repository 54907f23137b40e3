import pytest

from saferoute.core.geo import GeoPoint
from saferoute.routing.sampler import candidate_routes, clamp_steps, sample_line

START = GeoPoint(lat=26.9124, lon=75.7873)
END = GeoPoint(lat=26.9200, lon=75.8000)


@pytest.mark.parametrize("steps", [5, 20, 200])
def test_sample_line_returns_steps_plus_one_points_including_endpoints(steps):
    points = sample_line(START, END, steps)
    assert len(points) == steps + 1
    assert points[0] == START
    assert points[-1].lat == pytest.approx(END.lat)
    assert points[-1].lon == pytest.approx(END.lon)


@pytest.mark.parametrize("requested,expected", [(1, 5), (-3, 5), (1000, 200)])
def test_steps_are_clamped_not_rejected(requested, expected):
    assert len(sample_line(START, END, requested)) == expected + 1


def test_clamp_steps_uses_default_when_missing():
    assert clamp_steps(None, default=20) == 20
    assert clamp_steps(None, default=40) == 40


def test_candidate_routes_are_center_plus_lateral_offsets():
    routes = candidate_routes(START, END, steps=10, tile_size_m=50)
    assert [r.name for r in routes] == ["center", "north_offset", "south_offset"]

    center, north, south = routes
    offset = 3 * 50 / 111320
    for c, n, s in zip(center.points, north.points, south.points):
        assert n.lat - c.lat == pytest.approx(offset)
        assert c.lat - s.lat == pytest.approx(offset)
        assert n.lon == c.lon == s.lon
