from __future__ import annotations

from marketproxy.config.settings import settings
from marketproxy.providers import finnhub, yahoo
from marketproxy.schemas.provider import Quote


def _is_chart_only_symbol(symbol: str) -> bool:
    normalized = symbol.strip().upper()
    chart_only = {value.strip().upper() for value in settings.yahoo_only_symbols}
    return normalized in chart_only


def fetch_quote(symbol: str) -> Quote | None:
    if _is_chart_only_symbol(symbol):
        return yahoo.fetch_chart_quote(symbol)
    quote = finnhub.fetch_quote(symbol)
    if quote is not None:
        return quote
    return yahoo.fetch_chart_quote(symbol)
