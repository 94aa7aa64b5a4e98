"""
Provider engine — looks up an embed scraper and resolves a video id to a
proxied HLS source.

Usage:
    engine = ProviderEngine()
    source = await engine.resolve(video_id)
    print(source.to_dict())
    await engine.close()
"""
from __future__ import annotations
import logging

from .base import ProviderError, ResolvedSource
from .fetcher import Fetcher

log = logging.getLogger("desiflash.providers")


# ──────────────────────────────
#  Scraper registry
# ──────────────────────────────
class _EmbedScraper:
    id: str
    name: str

    async def scrape(self, video_id: str, fetcher: Fetcher) -> ResolvedSource:
        raise NotImplementedError


# Populated when embed modules are imported
_EMBEDS: dict[str, _EmbedScraper] = {}

DEFAULT_EMBED = "flashplayer"


def register_embed(scraper):
    """Decorator to register an embed scraper class."""
    inst = scraper()
    _EMBEDS[inst.id] = inst
    return scraper


# ──────────────────────────────
#  Engine
# ──────────────────────────────
class ProviderEngine:
    def __init__(self, *, fetcher: Fetcher | None = None):
        self.fetcher = fetcher or Fetcher()

    async def close(self):
        await self.fetcher.close()

    def list_embeds(self):
        return [{"id": e.id, "name": e.name} for e in _EMBEDS.values()]

    async def resolve(self, video_id: str, embed_id: str = DEFAULT_EMBED) -> ResolvedSource:
        scraper = _EMBEDS.get(embed_id)
        if scraper is None:
            raise ProviderError(f"Unknown embed: {embed_id}")
        log.info(f"[{scraper.id}] Resolving {video_id}...")
        source = await scraper.scrape(video_id, self.fetcher)
        log.info(f"[{scraper.id}] Stream resolved")
        return source


# ──────────────────────────────
#  Import all scrapers to register them
# ──────────────────────────────
def _load_scrapers():
    from .embeds import flashplayer     # noqa: F401

_load_scrapers()
