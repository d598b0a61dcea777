from fastapi import APIRouter, Depends, Query, Response

from marketproxy.cache import CacheStore, get_cache_store
from marketproxy.orchestrator import Orchestrator
from marketproxy.schemas.provider import ProxyResponse
from marketproxy.validation.validator import validate_query, validate_symbols

router = APIRouter()


def get_orchestrator(cache: CacheStore = Depends(get_cache_store)) -> Orchestrator:
    return Orchestrator(cache)


def _render(orchestrator: Orchestrator, result: ProxyResponse) -> Response:
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=orchestrator.response_headers(result),
        media_type="application/json",
    )


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/api/coingecko")
def simple_price(
    ids: str | None = Query(default=None),
    vs_currencies: str | None = Query(default=None),
    include_24hr_change: str | None = Query(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> Response:
    query = validate_query(
        {
            "ids": ids,
            "vs_currencies": vs_currencies,
            "include_24hr_change": include_24hr_change,
        }
    )
    return _render(orchestrator, orchestrator.serve_simple_price(query))


@router.get("/api/crypto/markets")
def crypto_markets(
    ids: str | None = Query(default=None),
    vs_currency: str | None = Query(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> Response:
    query = validate_query({"ids": ids, "vs_currency": vs_currency})
    return _render(orchestrator, orchestrator.serve_markets(query))


@router.get("/api/quotes")
def quotes(
    symbols: str | None = Query(default=None),
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> Response:
    return _render(orchestrator, orchestrator.serve_quotes(validate_symbols(symbols)))
