"""
Master playlist handling: parse #EXT-X-STREAM-INF variants and pick the best.
"""
from __future__ import annotations
import logging
import re
from typing import Optional

from .base import ProviderError, Variant
from .fetcher import Fetcher
from .resolver import to_absolute_url

log = logging.getLogger("desiflash.providers.variants")

STREAM_INF_RE = re.compile(r"^#EXT-X-STREAM-INF:", re.IGNORECASE)
BANDWIDTH_RE = re.compile(r"BANDWIDTH=(\d+)", re.IGNORECASE)
RESOLUTION_RE = re.compile(r"RESOLUTION=(\d+)x(\d+)", re.IGNORECASE)
PLAYLIST_REF_RE = re.compile(r"\.m3u8(\?|$)", re.IGNORECASE)
LINE_SPLIT_RE = re.compile(r"\r?\n")


def parse_master_variants(text: str, master_url: str) -> list[Variant]:
    lines = LINE_SPLIT_RE.split(text)
    variants: list[Variant] = []
    for i, line in enumerate(lines):
        if not STREAM_INF_RE.match(line):
            continue
        nxt = lines[i + 1] if i + 1 < len(lines) else ""
        if not nxt or nxt.startswith("#"):
            continue
        bw = BANDWIDTH_RE.search(line)
        res = RESOLUTION_RE.search(line)
        variants.append(Variant(
            url=to_absolute_url(nxt.strip(), master_url),
            bandwidth=int(bw.group(1)) if bw else None,
            resolution=(int(res.group(1)), int(res.group(2))) if res else None,
        ))

    if not variants:
        # bare nested playlists, no metadata
        for line in lines:
            if line and not line.startswith("#") and PLAYLIST_REF_RE.search(line):
                variants.append(Variant(url=to_absolute_url(line.strip(), master_url)))
    return variants


def pick_variant(variants: list[Variant]) -> Optional[Variant]:
    """Largest resolution area wins, then bandwidth; ties keep the earlier one."""
    if not variants:
        return None
    best = variants[0]
    for v in variants[1:]:
        if (v.area, v.bandwidth or 0) > (best.area, best.bandwidth or 0):
            best = v
    return best


async def select_best_variant(url: str, fetcher: Fetcher, *, referer: str, user_agent: str) -> str:
    """Swap a master playlist URL for its best variant. Falls back to url on any failure."""
    headers = {"Referer": referer, "User-Agent": user_agent, "Accept": "*/*"}
    try:
        master = await fetcher.get(url, headers=headers)
        best = pick_variant(parse_master_variants(master, url))
    except (ProviderError, ValueError) as e:
        log.warning("[variants] master fetch failed for %s: %s", url, e)
        return url
    if best is None:
        log.debug("[variants] %s is a media playlist", url)
        return url
    log.info("[variants] picked %s (res=%s bw=%s)", best.url, best.resolution, best.bandwidth)
    return best.url
