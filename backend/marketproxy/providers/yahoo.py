from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from marketproxy.config.settings import settings
from marketproxy.providers import upstream
from marketproxy.schemas.provider import Quote

logger = logging.getLogger(__name__)

_CHART_PATH = "/v8/finance/chart/"


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _previous_close(meta: dict, price: float) -> float:
    for field in ("chartPreviousClose", "previousClose"):
        value = _number(meta.get(field))
        if value:
            return value
    return price


def _change_percent(price: float, previous_close: float) -> float:
    if previous_close == 0:
        return 0.0
    return (price - previous_close) / previous_close * 100


def _first_dict(value: Any) -> dict | None:
    if not isinstance(value, list) or not value or not isinstance(value[0], dict):
        return None
    return value[0]


def _sparkline(result: dict) -> list[float]:
    indicators = result.get("indicators")
    if not isinstance(indicators, dict):
        return []
    quote_series = _first_dict(indicators.get("quote"))
    if quote_series is None:
        return []
    closes = quote_series.get("close")
    if not isinstance(closes, list):
        return []
    return [float(value) for value in closes if _number(value) is not None]


def parse_chart(symbol: str, payload: Any) -> Quote | None:
    if not isinstance(payload, dict):
        return None
    chart = payload.get("chart")
    if not isinstance(chart, dict):
        return None
    result = _first_dict(chart.get("result"))
    if result is None:
        return None
    meta = result.get("meta")
    if not isinstance(meta, dict):
        return None
    price = _number(meta.get("regularMarketPrice"))
    if price is None:
        return None

    return Quote(
        symbol=symbol,
        price=price,
        change_percent=_change_percent(price, _previous_close(meta, price)),
        sparkline=_sparkline(result),
    )


def fetch_chart_quote(symbol: str) -> Quote | None:
    url = upstream.build_url(
        settings.providers.yahoo_base_url, _CHART_PATH + quote(symbol, safe="")
    )
    result, payload = upstream.get_json(
        url,
        headers={"User-Agent": settings.providers.yahoo_user_agent},
        label=f"yahoo chart {symbol}",
    )
    if not result.ok:
        return None
    try:
        return parse_chart(symbol, payload)
    except (AttributeError, KeyError, IndexError, TypeError, ValueError):
        logger.warning("Unexpected chart payload for %s", symbol)
        return None
