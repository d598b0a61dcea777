from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseModel):
    ttl_seconds: int = 120
    stale_while_revalidate_seconds: int = 60
    stale_if_error_seconds: int = 600


class ValidationSettings(BaseModel):
    allowed_currencies: List[str] = Field(
        default_factory=lambda: ["usd", "eur", "gbp", "jpy", "cny", "btc", "eth"]
    )
    default_currency: str = "usd"
    default_coin_ids: List[str] = Field(
        default_factory=lambda: ["bitcoin", "ethereum", "solana"]
    )
    default_symbols: List[str] = Field(
        default_factory=lambda: ["^GSPC", "^DJI", "^IXIC"]
    )
    max_ids: int = 20
    max_coin_id_length: int = 50
    max_symbol_length: int = 20


class ProviderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETPROXY_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
    finnhub_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FINNHUB_API_KEY", "MARKETPROXY_FINNHUB_API_KEY"),
    )
    coingecko_base_url: str = "https://api.coingecko.com"
    finnhub_base_url: str = "https://finnhub.io"
    yahoo_base_url: str = "https://query1.finance.yahoo.com"
    yahoo_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    timeout_seconds: float = 10.0
    max_workers: int = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MARKETPROXY_",
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "MARKETPROXY_LOG_LEVEL"),
    )
    cors_allow_origin: str = "*"

    # Indices and futures that the quote provider does not serve on its free tier.
    yahoo_only_symbols: List[str] = Field(
        default_factory=lambda: [
            "^GSPC",
            "^DJI",
            "^IXIC",
            "^VIX",
            "GC=F",
            "CL=F",
            "NG=F",
            "SI=F",
            "HG=F",
        ]
    )
    crypto_meta: Dict[str, Dict[str, str]] = Field(
        default_factory=lambda: {
            "bitcoin": {"name": "Bitcoin", "symbol": "BTC"},
            "ethereum": {"name": "Ethereum", "symbol": "ETH"},
            "solana": {"name": "Solana", "symbol": "SOL"},
            "ripple": {"name": "XRP", "symbol": "XRP"},
        }
    )

    cache: CacheSettings = Field(default_factory=CacheSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)


settings = Settings()
