from __future__ import annotations

import re
from collections.abc import Mapping

from marketproxy.config.settings import ValidationSettings, settings
from marketproxy.schemas.quotes import ValidatedQuery, ValidatedSymbols

_COIN_ID_RE = re.compile(r"^[a-z0-9-]+$")
_SYMBOL_RE = re.compile(r"^[A-Z0-9.^=-]+$")
_BOOLEAN_VALUES = ("true", "false")


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",")]


def validate_coin_ids(
    raw: str | None, config: ValidationSettings | None = None
) -> list[str]:
    config = config or settings.validation
    ids = [
        value
        for value in (part.lower() for part in _split(raw))
        if _COIN_ID_RE.fullmatch(value) and len(value) <= config.max_coin_id_length
    ][: config.max_ids]
    return ids or list(config.default_coin_ids)


def validate_currency(raw: str | None, config: ValidationSettings | None = None) -> str:
    config = config or settings.validation
    currency = (raw or config.default_currency).lower()
    if currency in config.allowed_currencies:
        return currency
    return config.default_currency


def validate_boolean(raw: str | None, default: str) -> str:
    if raw in _BOOLEAN_VALUES:
        return raw
    return default


def validate_symbols(
    raw: str | None, config: ValidationSettings | None = None
) -> ValidatedSymbols:
    config = config or settings.validation
    symbols = [
        value
        for value in (part.upper() for part in _split(raw))
        if _SYMBOL_RE.fullmatch(value) and len(value) <= config.max_symbol_length
    ][: config.max_ids]
    return ValidatedSymbols(symbols=symbols or list(config.default_symbols))


def validate_query(
    params: Mapping[str, str | None], config: ValidationSettings | None = None
) -> ValidatedQuery:
    """Coerce raw query parameters into a bounded, canonical query.

    Never raises: anything unusable is replaced by its configured default.
    ``vs_currencies`` wins over ``vs_currency`` when both are present.
    """
    currency_raw = params.get("vs_currencies") or params.get("vs_currency")
    return ValidatedQuery(
        ids=validate_coin_ids(params.get("ids"), config),
        currency=validate_currency(currency_raw, config),
        include_change=validate_boolean(params.get("include_24hr_change"), "true"),
    )
