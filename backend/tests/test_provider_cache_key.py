from unittest.mock import Mock

from marketproxy.cache import CacheStore
from marketproxy.orchestrator import Orchestrator
from marketproxy.schemas.provider import UpstreamResult
from marketproxy.validation.validator import validate_query, validate_symbols


def test_simple_price_cache_key() -> None:
    query = validate_query(
        {"ids": "Bitcoin, ethereum", "vs_currencies": "USD", "include_24hr_change": "false"}
    )
    assert query.cache_key == "bitcoin,ethereum:usd:false"


def test_equivalent_raw_inputs_share_a_cache_key() -> None:
    first = validate_query({"ids": "bitcoin,ethereum", "vs_currencies": "usd"})
    second = validate_query(
        {"ids": " BITCOIN ,ethereum,", "vs_currencies": "Usd", "include_24hr_change": "maybe"}
    )
    assert first.cache_key == second.cache_key


def test_order_is_part_of_the_cache_key() -> None:
    first = validate_query({"ids": "bitcoin,ethereum"})
    second = validate_query({"ids": "ethereum,bitcoin"})
    assert first.cache_key != second.cache_key


def test_symbol_cache_key() -> None:
    assert validate_symbols("aapl,msft").cache_key == "quotes:AAPL,MSFT"


def test_markets_cache_key_is_separate_from_simple_price() -> None:
    store = CacheStore()
    orchestrator = Orchestrator(store)
    query = validate_query({"ids": "bitcoin", "vs_currency": "eur"})

    orchestrator.serve_simple_price(
        query, Mock(return_value=UpstreamResult(status_code=200, body="{}"))
    )
    orchestrator.serve_markets(query, Mock(return_value=[]))

    assert store.get("bitcoin:eur:true") is not None
    assert store.get("markets:bitcoin:eur") is None
