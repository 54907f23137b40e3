import httpx
import pytest

from saferoute.config.settings import DirectionsSettings, RoutingSettings
from saferoute.core.errors import ProviderFailure
from saferoute.core.geo import GeoPoint
from saferoute.routing.base import RouteGeometry
from saferoute.routing.directions import DirectionsAdapter
from saferoute.routing.polyline import encode_polyline
from saferoute.routing.providers import LegacyDirectionsProvider, RoutesApiProvider, SampledRouteProvider

ORIGIN = GeoPoint(lat=26.9124, lon=75.7873)
DESTINATION = GeoPoint(lat=26.9200, lon=75.8000)
LINE = [ORIGIN, GeoPoint(lat=26.9160, lon=75.7930), DESTINATION]


class _StubProvider:
    requires_network = True

    def __init__(self, name, routes=None, error=None):
        self.name = name
        self._routes = routes
        self._error = error
        self.timeouts = []

    def attempt(self, origin, destination, *, timeout_seconds):
        self.timeouts.append(timeout_seconds)
        if self._error is not None:
            raise self._error
        return self._routes


def _sampler():
    return SampledRouteProvider(RoutingSettings(), tile_size_m=50)


def test_primary_success_short_circuits_the_chain():
    primary = _StubProvider("routes_api", routes=[RouteGeometry(name="via A", points=tuple(LINE))])
    legacy = _StubProvider("directions_api", error=AssertionError("must not be called"))
    outcome = DirectionsAdapter([primary, legacy, _sampler()]).resolve(ORIGIN, DESTINATION)

    assert outcome.source == "routes_api"
    assert [r.name for r in outcome.routes] == ["via A"]
    assert legacy.timeouts == []
    assert [(a.provider, a.ok) for a in outcome.attempts] == [("routes_api", True)]


def test_primary_failure_falls_back_to_legacy():
    primary = _StubProvider("routes_api", error=ProviderFailure("routes_api", "error body: denied"))
    legacy = _StubProvider("directions_api", routes=[RouteGeometry(name="legacy", points=tuple(LINE))])
    outcome = DirectionsAdapter([primary, legacy, _sampler()]).resolve(ORIGIN, DESTINATION)

    assert outcome.source == "directions_api"
    assert outcome.attempts[0].reason == "error body: denied"


def test_both_providers_failing_ends_in_sampler():
    primary = _StubProvider("routes_api", error=ProviderFailure("routes_api", "timeout"))
    legacy = _StubProvider("directions_api", error=ProviderFailure("directions_api", "status ZERO_RESULTS"))
    outcome = DirectionsAdapter([primary, legacy, _sampler()]).resolve(ORIGIN, DESTINATION)

    assert outcome.source == "fallback"
    assert [r.name for r in outcome.routes] == ["center", "north_offset", "south_offset"]
    assert all(len(r.points) == 41 for r in outcome.routes)
    assert [(a.provider, a.ok) for a in outcome.attempts] == [
        ("routes_api", False),
        ("directions_api", False),
        ("fallback", True),
    ]


def test_empty_route_list_counts_as_failure():
    primary = _StubProvider("routes_api", routes=[])
    outcome = DirectionsAdapter([primary, _sampler()]).resolve(ORIGIN, DESTINATION)
    assert outcome.source == "fallback"
    assert outcome.attempts[0].reason == "no routes returned"


def test_unexpected_errors_are_not_swallowed():
    primary = _StubProvider("routes_api", error=RuntimeError("bug"))
    with pytest.raises(RuntimeError):
        DirectionsAdapter([primary, _sampler()]).resolve(ORIGIN, DESTINATION)


def test_attempt_timeout_is_capped_by_request_budget(monkeypatch):
    ticks = iter([0.0, 0.0, 9.0])
    monkeypatch.setattr("saferoute.core.time.time.monotonic", lambda: next(ticks, 20.0))
    primary = _StubProvider("routes_api", error=ProviderFailure("routes_api", "timeout"))
    legacy = _StubProvider("directions_api", error=ProviderFailure("directions_api", "timeout"))
    third = _StubProvider("third", error=AssertionError("budget is spent"))

    outcome = DirectionsAdapter(
        [primary, legacy, third, _sampler()], timeout_seconds=5, total_budget_seconds=12
    ).resolve(ORIGIN, DESTINATION)

    assert primary.timeouts == [5.0]
    assert legacy.timeouts == [3.0]
    assert third.timeouts == []
    assert outcome.source == "fallback"
    assert outcome.attempts[2].reason == "budget exhausted"


def _directions_settings(**kwargs):
    return DirectionsSettings(api_key="test-key", **kwargs)


def test_routes_api_request_shape_and_decoding(monkeypatch):
    import saferoute.routing.providers as providers

    captured = {}

    def fake_post_json(url, *, payload, headers=None, timeout_seconds=5):
        captured.update(url=url, payload=payload, headers=headers, timeout=timeout_seconds)
        return {
            "routes": [
                {"polyline": {"encodedPolyline": encode_polyline(LINE)}, "description": "MI Road"},
                {"polyline": {"encodedPolyline": encode_polyline(LINE[::-1])}},
            ]
        }

    monkeypatch.setattr(providers, "post_json", fake_post_json)
    routes = RoutesApiProvider(_directions_settings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)

    assert [r.name for r in routes] == ["MI Road", "directions"]
    assert routes[0].points[0].lat == pytest.approx(ORIGIN.lat, abs=1e-5)
    assert captured["headers"]["X-Goog-Api-Key"] == "test-key"
    assert "routes.polyline.encodedPolyline" in captured["headers"]["X-Goog-FieldMask"]
    assert captured["payload"]["computeAlternativeRoutes"] is True
    assert captured["payload"]["origin"]["location"]["latLng"] == {"latitude": ORIGIN.lat, "longitude": ORIGIN.lon}
    assert captured["timeout"] == 4


def test_routes_api_error_body_is_a_provider_failure(monkeypatch):
    import saferoute.routing.providers as providers

    monkeypatch.setattr(
        providers, "post_json", lambda url, **kw: {"error": {"code": 403, "message": "API key not valid"}}
    )
    with pytest.raises(ProviderFailure, match="API key not valid"):
        RoutesApiProvider(_directions_settings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)


def test_routes_api_transport_error_is_a_provider_failure(monkeypatch):
    import saferoute.routing.providers as providers

    def boom(url, **kw):
        raise httpx.ConnectTimeout("timed out")

    monkeypatch.setattr(providers, "post_json", boom)
    with pytest.raises(ProviderFailure) as excinfo:
        RoutesApiProvider(_directions_settings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)
    assert excinfo.value.provider == "routes_api"


def test_missing_api_key_fails_without_network(monkeypatch):
    import saferoute.routing.providers as providers

    def no_network(*args, **kwargs):
        raise AssertionError("network must not be used")

    monkeypatch.setattr(providers, "post_json", no_network)
    monkeypatch.setattr(providers, "get_json", no_network)
    with pytest.raises(ProviderFailure):
        RoutesApiProvider(DirectionsSettings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)
    with pytest.raises(ProviderFailure):
        LegacyDirectionsProvider(DirectionsSettings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)


def test_legacy_provider_requires_ok_status(monkeypatch):
    import saferoute.routing.providers as providers

    monkeypatch.setattr(providers, "get_json", lambda url, **kw: {"status": "REQUEST_DENIED", "routes": []})
    with pytest.raises(ProviderFailure, match="REQUEST_DENIED"):
        LegacyDirectionsProvider(_directions_settings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)


def test_legacy_provider_decodes_overview_polylines(monkeypatch):
    import saferoute.routing.providers as providers

    captured = {}

    def fake_get_json(url, *, params=None, headers=None, timeout_seconds=5):
        captured.update(params=params)
        return {
            "status": "OK",
            "routes": [{"summary": "NH48", "overview_polyline": {"points": encode_polyline(LINE)}}],
        }

    monkeypatch.setattr(providers, "get_json", fake_get_json)
    (route,) = LegacyDirectionsProvider(_directions_settings()).attempt(ORIGIN, DESTINATION, timeout_seconds=4)

    assert route.name == "NH48"
    assert len(route.points) == 3
    assert captured["params"]["origin"] == f"{ORIGIN.lat},{ORIGIN.lon}"
    assert captured["params"]["alternatives"] == "true"


def test_full_chain_with_failing_http_ends_in_sampler(monkeypatch):
    import saferoute.routing.providers as providers

    monkeypatch.setattr(providers, "post_json", lambda url, **kw: {"error": {"message": "quota"}})
    monkeypatch.setattr(providers, "get_json", lambda url, **kw: {"status": "OVER_QUERY_LIMIT"})
    settings = _directions_settings()
    adapter = DirectionsAdapter(
        [RoutesApiProvider(settings), LegacyDirectionsProvider(settings), _sampler()]
    )
    outcome = adapter.resolve(ORIGIN, DESTINATION)
    assert outcome.source == "fallback"
    assert len(outcome.routes) == 3


@pytest.mark.parametrize(
    "routes_body,legacy_body",
    [
        ({"routes": [{"polyline": "oops"}]}, {"status": "OK", "routes": [{"overview_polyline": "oops"}]}),
        ({"routes": ["oops"]}, {"status": "OK", "routes": "oops"}),
        (
            {"routes": [{"polyline": {"encodedPolyline": 42}}]},
            {"status": "OK", "routes": [{"overview_polyline": {"points": ["a", "b"]}}]},
        ),
    ],
)
def test_malformed_provider_bodies_fall_through_to_sampler(monkeypatch, routes_body, legacy_body):
    import saferoute.routing.providers as providers

    monkeypatch.setattr(providers, "post_json", lambda url, **kw: routes_body)
    monkeypatch.setattr(providers, "get_json", lambda url, **kw: legacy_body)
    settings = _directions_settings()
    outcome = DirectionsAdapter(
        [RoutesApiProvider(settings), LegacyDirectionsProvider(settings), _sampler()]
    ).resolve(ORIGIN, DESTINATION)

    assert outcome.source == "fallback"
    assert [(a.provider, a.reason) for a in outcome.attempts[:2]] == [
        ("routes_api", "malformed response"),
        ("directions_api", "malformed response"),
    ]
