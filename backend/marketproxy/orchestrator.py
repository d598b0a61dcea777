from __future__ import annotations

import json
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait

from marketproxy.cache import CacheStore
from marketproxy.config.settings import Settings, settings as default_settings
from marketproxy.providers import coingecko, selector
from marketproxy.schemas.provider import (
    CryptoMarketItem,
    ProxyResponse,
    Quote,
    UpstreamResult,
)
from marketproxy.schemas.quotes import (
    CryptoMarketQuote,
    ErrorBody,
    ValidatedQuery,
    ValidatedSymbols,
)

logger = logging.getLogger(__name__)

HARD_FAILURE_STATUS = 500
HARD_FAILURE_MESSAGE = "Failed to fetch data"


def _dump(items: list[dict]) -> str:
    return json.dumps(items, separators=(",", ":"))


class Orchestrator:
    """Decides per request between cache, upstream and stale fallback.

    At most one upstream attempt is made per call to ``serve``; stale cache
    entries stand in for retries.
    """

    def __init__(self, cache: CacheStore, config: Settings | None = None) -> None:
        self.cache = cache
        self.config = config or default_settings

    def serve(self, cache_key: str, fetch: Callable[[], UpstreamResult]) -> ProxyResponse:
        entry = self.cache.get_fresh(cache_key)
        if entry is not None:
            logger.debug("Cache hit for %s", cache_key)
            return ProxyResponse(
                status_code=200, body=entry.payload, state="CACHE_HIT", cache_status="HIT"
            )

        try:
            result = fetch()
        except Exception:
            logger.exception("Upstream call for %s raised", cache_key)
            return self._fallback(cache_key)

        if result.ok:
            self.cache.put(cache_key, result.body)
            return ProxyResponse(
                status_code=result.status_code or 200,
                body=result.body,
                state="UPSTREAM_CALL",
                cache_status="MISS",
            )

        stale = self.cache.get(cache_key)
        if result.rate_limited and stale is not None:
            logger.info("Rate limited upstream, serving stale entry for %s", cache_key)
            return ProxyResponse(
                status_code=200,
                body=stale.payload,
                state="RATE_LIMIT_FALLBACK",
                cache_status="STALE",
            )
        if result.answered and stale is None:
            # Nothing to fall back to: mirror the upstream answer.
            return ProxyResponse(
                status_code=result.status_code,
                body=result.body or ErrorBody(error=HARD_FAILURE_MESSAGE).model_dump_json(),
                state="UPSTREAM_CALL",
                cache_status="MISS",
            )
        logger.warning("Upstream failed for %s (%s)", cache_key, result.failure)
        return self._fallback(cache_key)

    def _fallback(self, cache_key: str) -> ProxyResponse:
        stale = self.cache.get(cache_key)
        if stale is not None:
            logger.info("Serving stale entry for %s after upstream error", cache_key)
            return ProxyResponse(
                status_code=200,
                body=stale.payload,
                state="ERROR_FALLBACK",
                cache_status="ERROR-FALLBACK",
            )
        logger.error("No data available for %s", cache_key)
        return ProxyResponse(
            status_code=HARD_FAILURE_STATUS,
            body=ErrorBody(error=HARD_FAILURE_MESSAGE).model_dump_json(),
            state="HARD_FAILURE",
        )

    def serve_simple_price(
        self,
        query: ValidatedQuery,
        fetch: Callable[[ValidatedQuery], UpstreamResult] | None = None,
    ) -> ProxyResponse:
        fetch = fetch or coingecko.fetch_simple_price
        return self.serve(query.cache_key, lambda: fetch(query))

    def serve_quotes(
        self,
        symbols: ValidatedSymbols,
        fetch_quote: Callable[[str], Quote | None] | None = None,
    ) -> ProxyResponse:
        fetch_quote = fetch_quote or selector.fetch_quote

        def fetch() -> UpstreamResult:
            quotes = self._gather_quotes(symbols.symbols, fetch_quote)
            if not quotes:
                return UpstreamResult(failure="empty")
            body = _dump([quote.model_dump(by_alias=True, exclude_none=True) for quote in quotes])
            return UpstreamResult(status_code=200, body=body)

        return self.serve(symbols.cache_key, fetch)

    def _gather_quotes(
        self, symbols: list[str], fetch_quote: Callable[[str], Quote | None]
    ) -> list[Quote]:
        """Fetch all symbols concurrently under one shared deadline.

        Symbols still pending at the deadline are abandoned and left out.
        """
        pool = ThreadPoolExecutor(max_workers=len(symbols), thread_name_prefix="quotes")
        futures = [pool.submit(fetch_quote, symbol) for symbol in symbols]
        done, pending = wait(futures, timeout=self.config.providers.timeout_seconds)
        pool.shutdown(wait=False, cancel_futures=True)
        if pending:
            logger.warning("%d of %d quotes missed the deadline", len(pending), len(symbols))

        quotes: list[Quote] = []
        for symbol, future in zip(symbols, futures):
            if future not in done:
                continue
            if future.exception() is not None:
                logger.warning("Quote fetch for %s raised: %s", symbol, future.exception())
                continue
            if future.result() is not None:
                quotes.append(future.result())
        return quotes

    def serve_markets(
        self,
        query: ValidatedQuery,
        fetch_markets: Callable[[list[str], str], list[CryptoMarketItem]] | None = None,
    ) -> ProxyResponse:
        fetch_markets = fetch_markets or coingecko.fetch_markets

        def fetch() -> UpstreamResult:
            items = fetch_markets(query.ids, query.currency)
            if not items:
                return UpstreamResult(failure="empty")
            quotes = [self._market_quote(item) for item in items]
            return UpstreamResult(
                status_code=200,
                body=_dump([quote.model_dump(by_alias=True) for quote in quotes]),
            )

        return self.serve(f"markets:{query.ids_param}:{query.currency}", fetch)

    def _market_quote(self, item: CryptoMarketItem) -> CryptoMarketQuote:
        meta = self.config.crypto_meta.get(item.id, {})
        return CryptoMarketQuote(
            id=item.id,
            symbol=meta.get("symbol", item.id.upper()),
            name=meta.get("name", item.id),
            price=item.current_price,
            change_percent=item.price_change_percentage_24h or 0.0,
            sparkline=item.sparkline_in_7d.price if item.sparkline_in_7d else [],
        )

    def response_headers(self, response: ProxyResponse) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": self.config.cors_allow_origin,
        }
        if response.cache_status is None:
            return headers

        cache = self.config.cache
        if response.state == "ERROR_FALLBACK":
            directive = f"stale-if-error={cache.stale_if_error_seconds}"
        else:
            directive = f"stale-while-revalidate={cache.stale_while_revalidate_seconds}"
        headers["Cache-Control"] = f"public, max-age={cache.ttl_seconds}, {directive}"
        headers["X-Cache"] = response.cache_status
        return headers
