from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from fakes import FakeResponse, http_error

from marketproxy.api.routes import get_orchestrator
from marketproxy.cache import CacheStore
from marketproxy.main import create_app
from marketproxy.orchestrator import Orchestrator
from marketproxy.schemas.provider import Quote

BODY = '{"bitcoin":{"usd":64000,"usd_24h_change":1.2},"ethereum":{"usd":3100,"usd_24h_change":-0.4}}'
_URLOPEN = "marketproxy.providers.upstream.urlopen"


@pytest.fixture
def store(clock) -> CacheStore:
    return CacheStore(ttl_seconds=120, clock=clock)


@pytest.fixture
def client(store) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_orchestrator] = lambda: Orchestrator(store)
    return TestClient(app)


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_simple_price_miss_then_hit(client, store, clock) -> None:
    params = {"ids": "bitcoin,ethereum", "vs_currencies": "usd"}
    with patch(_URLOPEN, return_value=FakeResponse(BODY)) as urlopen_mock:
        first = client.get("/api/coingecko", params=params)
        clock.advance(30)
        second = client.get("/api/coingecko", params=params)

    assert urlopen_mock.call_count == 1
    assert first.status_code == 200
    assert first.headers["x-cache"] == "MISS"
    assert first.headers["access-control-allow-origin"] == "*"
    assert first.headers["cache-control"] == "public, max-age=120, stale-while-revalidate=60"
    assert first.headers["content-type"].startswith("application/json")
    assert second.headers["x-cache"] == "HIT"
    assert second.content == first.content == BODY.encode("utf-8")
    assert store.get("bitcoin,ethereum:usd:true") is not None


def test_simple_price_sanitizes_upstream_url(client) -> None:
    params = {"ids": "bitcoin,evil&token=x", "vs_currencies": "XYZ", "include_24hr_change": "1"}
    with patch(_URLOPEN, return_value=FakeResponse("{}")) as urlopen_mock:
        client.get("/api/coingecko", params=params)

    url = urlopen_mock.call_args.args[0].full_url
    assert "evil" not in url
    assert "ids=bitcoin&vs_currencies=usd&include_24hr_change=true" in url


def test_simple_price_rate_limited_serves_stale(client, store, clock) -> None:
    store.put("bitcoin,ethereum:usd:true", BODY)
    clock.advance(400)

    with patch(_URLOPEN, side_effect=http_error(429)):
        response = client.get("/api/coingecko", params={"ids": "bitcoin,ethereum"})

    assert response.status_code == 200
    assert response.headers["x-cache"] == "STALE"
    assert response.content == BODY.encode("utf-8")


def test_simple_price_error_fallback(client, store, clock) -> None:
    store.put("bitcoin,ethereum:usd:true", BODY)
    clock.advance(400)

    with patch(_URLOPEN, side_effect=TimeoutError()):
        response = client.get("/api/coingecko", params={"ids": "bitcoin,ethereum"})

    assert response.status_code == 200
    assert response.headers["x-cache"] == "ERROR-FALLBACK"
    assert response.headers["cache-control"] == "public, max-age=120, stale-if-error=600"


def test_simple_price_hard_failure(client, store) -> None:
    with patch(_URLOPEN, side_effect=TimeoutError()):
        response = client.get("/api/coingecko")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch data"}
    assert "x-cache" not in response.headers
    assert response.headers["access-control-allow-origin"] == "*"
    assert len(store) == 0


def test_simple_price_mirrors_upstream_error(client) -> None:
    with patch(_URLOPEN, side_effect=http_error(400, '{"error":"invalid vs_currency"}')):
        response = client.get("/api/coingecko")

    assert response.status_code == 400
    assert response.json() == {"error": "invalid vs_currency"}
    assert response.headers["x-cache"] == "MISS"


def test_quotes_endpoint(client) -> None:
    def fake_quote(symbol: str) -> Quote:
        return Quote(symbol=symbol, price=1.5, change_percent=2.0)

    with patch("marketproxy.orchestrator.selector.fetch_quote", side_effect=fake_quote) as quote_mock:
        response = client.get("/api/quotes", params={"symbols": "aapl,^vix"})

    assert response.status_code == 200
    assert sorted(call.args[0] for call in quote_mock.call_args_list) == ["AAPL", "^VIX"]
    assert response.json() == [
        {"symbol": "AAPL", "price": 1.5, "changePercent": 2.0},
        {"symbol": "^VIX", "price": 1.5, "changePercent": 2.0},
    ]


def test_markets_endpoint_hard_failure(client) -> None:
    with patch("marketproxy.orchestrator.coingecko.fetch_markets", return_value=[]):
        response = client.get("/api/crypto/markets", params={"ids": "bitcoin"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch data"}
