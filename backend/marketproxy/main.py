"""
marketproxy application entry point.

    uvicorn marketproxy.main:app --port 8000
"""

import logging

from fastapi import FastAPI

from marketproxy.api.routes import router
from marketproxy.config.settings import settings


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="marketproxy",
        description="Cached price proxy for CoinGecko, Finnhub and Yahoo Finance.",
    )
    app.include_router(router)
    return app


app = create_app()
