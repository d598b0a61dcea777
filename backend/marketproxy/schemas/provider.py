from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

FailureReason = Literal[
    "timeout",
    "network_error",
    "http_error",
    "rate_limited",
    "malformed_body",
    "missing_key",
    "empty",
]
CacheStatus = Literal["MISS", "HIT", "STALE", "ERROR-FALLBACK"]
RequestState = Literal[
    "CACHE_HIT",
    "UPSTREAM_CALL",
    "RATE_LIMIT_FALLBACK",
    "ERROR_FALLBACK",
    "HARD_FAILURE",
]


class UpstreamResult(BaseModel):
    """Outcome of a single upstream request.

    ``status_code`` is set whenever the upstream answered at the HTTP level,
    ``failure`` is set whenever the result is unusable.
    """

    status_code: Optional[int] = None
    body: Optional[str] = None
    failure: Optional[FailureReason] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.body is not None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def answered(self) -> bool:
        return self.status_code is not None


class CacheEntry(BaseModel):
    key: str
    payload: str
    captured_at: float


class Quote(BaseModel):
    symbol: str
    price: float
    change_percent: float = Field(serialization_alias="changePercent")
    sparkline: Optional[list[float]] = None


class CryptoSparkline(BaseModel):
    price: list[float] = Field(default_factory=list)


class CryptoMarketItem(BaseModel):
    id: str
    current_price: float
    price_change_percentage_24h: Optional[float] = None
    sparkline_in_7d: Optional[CryptoSparkline] = None


class ProxyResponse(BaseModel):
    status_code: int
    body: str
    state: RequestState
    cache_status: Optional[CacheStatus] = None
