import pytest
from fakes import FakeClock

from marketproxy.config.settings import settings


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def finnhub_key(monkeypatch) -> str:
    monkeypatch.setattr(settings.providers, "finnhub_api_key", "test-token")
    return "test-token"
