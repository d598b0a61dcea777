from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ValidatedQuery(BaseModel):
    ids: list[str]
    currency: str
    include_change: Literal["true", "false"] = "true"

    @property
    def ids_param(self) -> str:
        return ",".join(self.ids)

    @property
    def cache_key(self) -> str:
        return f"{self.ids_param}:{self.currency}:{self.include_change}"


class ValidatedSymbols(BaseModel):
    symbols: list[str]

    @property
    def cache_key(self) -> str:
        return "quotes:" + ",".join(self.symbols)


class CryptoMarketQuote(BaseModel):
    id: str
    symbol: str
    name: str
    price: float
    change_percent: float = Field(serialization_alias="changePercent")
    sparkline: list[float] = Field(default_factory=list)


class ErrorBody(BaseModel):
    error: str
