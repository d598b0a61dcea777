from __future__ import annotations

import logging

from pydantic import ValidationError

from marketproxy.config.settings import settings
from marketproxy.providers import upstream
from marketproxy.schemas.provider import CryptoMarketItem, UpstreamResult
from marketproxy.schemas.quotes import ValidatedQuery

logger = logging.getLogger(__name__)

_SIMPLE_PRICE_PATH = "/api/v3/simple/price"
_MARKETS_PATH = "/api/v3/coins/markets"


def fetch_simple_price(query: ValidatedQuery) -> UpstreamResult:
    """Fetch the simple price endpoint; the body is handed back untouched."""
    url = upstream.build_url(
        settings.providers.coingecko_base_url,
        _SIMPLE_PRICE_PATH,
        {
            "ids": query.ids_param,
            "vs_currencies": query.currency,
            "include_24hr_change": query.include_change,
        },
    )
    return upstream.get(url, label="coingecko simple/price")


def fetch_markets(ids: list[str], vs_currency: str = "usd") -> list[CryptoMarketItem]:
    url = upstream.build_url(
        settings.providers.coingecko_base_url,
        _MARKETS_PATH,
        {
            "vs_currency": vs_currency,
            "ids": ",".join(ids),
            "order": "market_cap_desc",
            "sparkline": "true",
            "price_change_percentage": "24h",
        },
    )
    result, payload = upstream.get_json(url, label="coingecko coins/markets")
    if not result.ok or not isinstance(payload, list):
        return []

    items: list[CryptoMarketItem] = []
    for raw in payload:
        try:
            items.append(CryptoMarketItem.model_validate(raw))
        except ValidationError:
            logger.debug("Skipping malformed markets item: %r", raw)
    return items
