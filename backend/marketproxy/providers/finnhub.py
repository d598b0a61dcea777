from __future__ import annotations

import logging

from marketproxy.config.settings import settings
from marketproxy.providers import upstream
from marketproxy.schemas.provider import Quote

logger = logging.getLogger(__name__)

_QUOTE_PATH = "/api/v1/quote"


def _is_unknown_symbol(payload: dict) -> bool:
    # Finnhub answers unknown symbols with an all-zero quote instead of an error.
    return all(payload.get(field) == 0 for field in ("c", "h", "l"))


def fetch_quote(symbol: str) -> Quote | None:
    api_key = settings.providers.finnhub_api_key
    if not api_key:
        logger.debug("Finnhub API key missing, skipping %s", symbol)
        return None

    url = upstream.build_url(
        settings.providers.finnhub_base_url,
        _QUOTE_PATH,
        {"symbol": symbol, "token": api_key},
    )
    result, payload = upstream.get_json(url, label=f"finnhub quote {symbol}")
    if not result.ok or not isinstance(payload, dict):
        return None
    if _is_unknown_symbol(payload):
        logger.info("Finnhub has no quote for %s", symbol)
        return None

    price = payload.get("c")
    change_percent = payload.get("dp")
    if not isinstance(price, (int, float)):
        return None
    if not isinstance(change_percent, (int, float)):
        change_percent = 0.0
    return Quote(symbol=symbol, price=float(price), change_percent=float(change_percent))
