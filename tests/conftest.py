"""
Shared fixtures: fresh caches per test and a mock-transport httpx client factory.
"""

from __future__ import annotations

import httpx
import pytest

from yakson_agent.cache import EXTRACT_CACHE, HTML_CACHE


@pytest.fixture(autouse=True)
def clear_caches():
    HTML_CACHE.clear()
    EXTRACT_CACHE.clear()
    yield
    HTML_CACHE.clear()
    EXTRACT_CACHE.clear()


@pytest.fixture
def mock_client():
    """Build an AsyncClient whose requests are answered by `handler`."""

    def factory(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return factory


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
