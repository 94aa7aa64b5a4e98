"""
HTTP fetcher for the resolution pipeline. Wraps aiohttp with common defaults,
headers and timeout, and turns transport failures into UpstreamFetchFailed.
"""
from __future__ import annotations
import aiohttp
import asyncio
from typing import Optional
from urllib.parse import urljoin

from ..core.config import FETCH_TIMEOUT, USER_AGENT
from .base import UpstreamFetchFailed

DEFAULT_UA = USER_AGENT

class Fetcher:
    def __init__(self, *, timeout: int = FETCH_TIMEOUT, proxy: str | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=min(timeout, 5))
        self.proxy = proxy
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_UA},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc):
        await self.close()

    # ── convenience methods ──────────────────

    async def get(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
        follow_redirects: bool = True,
    ) -> str:
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.get(
                full,
                headers=headers or {},
                params=params,
                allow_redirects=follow_redirects,
                proxy=self.proxy,
            ) as resp:
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamFetchFailed(f"GET {full} failed: {e}") from e
