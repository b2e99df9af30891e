from __future__ import annotations

import asyncio
import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from .config import FETCH_RETRIES, FETCH_TIMEOUT_MS

logger = logging.getLogger(__name__)


USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)


class FetchError(Exception):
    """Timeout or transport failure. Callers treat it as "no data"."""


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def accept_language_header(lang: str) -> str:
    if lang == "en":
        return "en-US,en;q=0.9,ko;q=0.6"
    return "ko-KR,ko;q=0.9,en-US;q=0.7,en;q=0.5"


@asynccontextmanager
async def client_scope(client: httpx.AsyncClient | None = None) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(follow_redirects=True) as owned:
        yield owned


async def fetch_with_timeout(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout_ms: int = 2000,
) -> httpx.Response:
    try:
        return await asyncio.wait_for(client.get(url, headers=headers), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        raise FetchError(f"Timeout after {timeout_ms}ms: {url}") from e
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        raise FetchError(f"{type(e).__name__}: {e}") from e


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    retries: int = FETCH_RETRIES,
    timeout_ms: int = FETCH_TIMEOUT_MS,
    backoff_s: float = 0.5,
) -> httpx.Response | None:
    """GET with up to `retries` extra attempts and linear backoff.

    Returns the first 2xx response. If every attempt returned a non-2xx status,
    returns None; if the last attempt raised, the FetchError is re-raised.
    """
    attempts = retries + 1
    for i in range(attempts):
        try:
            res = await fetch_with_timeout(client, url, headers=headers, timeout_ms=timeout_ms)
            if res.is_success:
                return res
            logger.info("[Retry %d/%d] Failed to fetch %s: %s", i + 1, attempts, url, res.status_code)
        except FetchError as e:
            logger.info("[Retry %d/%d] Error fetching %s: %s", i + 1, attempts, url, e)
            if i == attempts - 1:
                raise
        if i < attempts - 1:
            await asyncio.sleep(backoff_s * (i + 1))
    return None
