"""
FlashPlayer (thrfive.io) — JuicyCodes payload → packed JS → HLS playlist.

Flow:
  1. <embed-host>/embed/{id}       → HTML carrying a JuicyCodes payload
                                     (follows one <iframe> if the page is a shell)
  2. decode the payload            → player script, usually p,a,c,k,e,d packed
  3. unpack + resolver rules       → playlist URL
  4. master playlist               → best variant
  5. wrap as /hls/<token>.m3u8 so playback goes through our proxy
"""
from __future__ import annotations
import logging
import re
from typing import Optional
from urllib.parse import quote

from ...core.config import EMBED_ORIGIN, PARTNER_REFERER, USER_AGENT
from ..base import DecodeFailed, PayloadNotFound, ResolvedSource, SourceFile
from ..codec import b64_decode_lenient, encode_token
from ..fetcher import Fetcher
from ..resolver import resolve_hls, to_absolute_url
from ..runner import register_embed
from ..unpacker import UnpackError, unpack
from ..variants import select_best_variant
from .juicycodes import decode_payload, find_payloads

log = logging.getLogger("desiflash.providers.flashplayer")

IFRAME_RE = re.compile(r"""<iframe[^>]*?src=["']([^"'\s>]+)["'][^>]*?>""", re.IGNORECASE)
STREAM_TOKEN_RE = re.compile(r"/stream/([^\s?]+?\.m3u8)(?:$|\?)", re.IGNORECASE)
# RFC 2396 marks left literal in the id path segment
ID_SAFE_CHARS = "!*'()"

IFRAME_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Referer": PARTNER_REFERER,
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "iframe",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "cross-site",
    "Priority": "u=4",
}


def extract_iframe_src(html: str, base: str) -> Optional[str]:
    m = IFRAME_RE.search(html)
    return to_absolute_url(m.group(1), base) if m else None


def decode_embed(html: str) -> str:
    """Recover the player script from embed markup.

    The _juicycodes payload is tried first, then JuicyCodes.Run. If neither
    decodes but a _juicycodes payload was present, its raw text is returned
    so the resolver can still mine it.
    """
    payloads = list(find_payloads(html))
    if not payloads:
        raise PayloadNotFound("DESI-FLASH: Direct embed payload not found")

    for payload in payloads:
        decoded = decode_payload(payload)
        if decoded:
            log.debug("[flashplayer] %s payload decoded to %d chars", payload.pattern, len(decoded))
            return decoded

    raw = next((p.text for p in payloads if p.pattern == "juicycodes"), None)
    if raw is None:
        raise DecodeFailed("DESI-FLASH: Embed payload could not be decoded")
    log.warning("[flashplayer] payload undecodable, mining it as-is")
    return raw


def unpack_or_passthrough(script: str) -> str:
    try:
        return unpack(script)
    except UnpackError:
        return script


def log_stream_token(url: str) -> None:
    m = STREAM_TOKEN_RE.search(url)
    if not m:
        return
    token = re.sub(r"\.m3u8.*", "", m.group(1))
    log.debug("[flashplayer] stream token %s -> %r", token, b64_decode_lenient(token))


def proxy_path(url: str) -> str:
    return f"/hls/{encode_token(url)}.m3u8"


@register_embed
class FlashPlayerEmbed:
    id = "flashplayer"
    name = "FlashPlayer"

    async def fetch_embed(self, embed_url: str, fetcher: Fetcher) -> str:
        html = await fetcher.get(embed_url, headers=IFRAME_HEADERS)
        log.debug("[flashplayer] embed page %d chars", len(html))
        return html

    async def scrape(self, video_id: str, fetcher: Fetcher) -> ResolvedSource:
        embed_url = f"{EMBED_ORIGIN}/embed/{quote(video_id, safe=ID_SAFE_CHARS)}"
        origin = f"{EMBED_ORIGIN}/"

        log.info("[flashplayer] fetching %s", embed_url)
        html = await self.fetch_embed(embed_url, fetcher)
        try:
            script = decode_embed(html)
        except PayloadNotFound:
            iframe_url = extract_iframe_src(html, embed_url)
            if not iframe_url:
                raise
            log.info("[flashplayer] no payload, following iframe %s", iframe_url)
            script = decode_embed(await self.fetch_embed(iframe_url, fetcher))

        script = unpack_or_passthrough(script)
        candidate = resolve_hls(script, origin)
        log.info("[flashplayer] resolved %s", candidate.url)

        hls_url = await select_best_variant(
            candidate.url, fetcher, referer=origin, user_agent=USER_AGENT)
        log_stream_token(hls_url)

        return ResolvedSource(
            sources=(SourceFile(url=proxy_path(hls_url), quality="auto"),),
            headers={"Referer": origin},
        )
