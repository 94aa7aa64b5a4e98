"""
HLS proxy: /hls/<token> → upstream URL.

Playlists are buffered and every URI line is rewritten to another /hls/<token>
so the player never talks to the upstream host directly. Anything else is
streamed through untouched, with range headers forwarded both ways.
"""
from __future__ import annotations
import logging
import re
from urllib.parse import urlsplit

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from ..core.config import EMBED_ORIGIN, FETCH_TIMEOUT, USER_AGENT
from ..providers.base import InvalidTarget, MissingParameter, UpstreamFetchFailed
from ..providers.codec import decode_token, encode_token
from ..providers.resolver import to_absolute_url

log = logging.getLogger("desiflash.proxy")

PLAYLIST_TYPE = "application/vnd.apple.mpegurl"
CORS = {"Access-Control-Allow-Origin": "*"}
ABSOLUTE_HTTP_RE = re.compile(r"^https?://", re.IGNORECASE)
LINE_SPLIT_RE = re.compile(r"\r?\n")

UPSTREAM_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "identity",
    "Referer": f"{EMBED_ORIGIN}/",
    "Origin": EMBED_ORIGIN,
    "Connection": "keep-alive",
}


def decode_target(token: str) -> str:
    token = re.sub(r"\.m3u8$", "", token or "")
    if not token:
        raise MissingParameter("Missing param")
    target = decode_token(token)
    if not target or not ABSOLUTE_HTTP_RE.match(target):
        raise InvalidTarget("Invalid target")
    try:
        parts = urlsplit(target)
    except ValueError as e:
        raise InvalidTarget("Invalid target") from e
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        raise InvalidTarget("Invalid target")
    return target


def is_playlist(url: str) -> bool:
    return urlsplit(url).path.lower().endswith(".m3u8")


def rewrite_playlist(playlist: str, base_url: str) -> str:
    out = []
    for line in LINE_SPLIT_RE.split(playlist):
        if not line.strip() or line.startswith("#"):
            out.append(line)
            continue
        out.append("/hls/" + encode_token(to_absolute_url(line.strip(), base_url)))
    return "\n".join(out)


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(FETCH_TIMEOUT, read=None), follow_redirects=True)


async def _fetch(target: str, range_header: str | None) -> tuple[httpx.AsyncClient, httpx.Response]:
    headers = dict(UPSTREAM_HEADERS)
    if range_header:
        headers["Range"] = range_header
    client = _new_client()
    try:
        req = client.build_request("GET", target, headers=headers)
        resp = await client.send(req, stream=True)
    except httpx.InvalidURL as e:
        await client.aclose()
        raise InvalidTarget("Invalid target") from e
    except httpx.HTTPError as e:
        await client.aclose()
        raise UpstreamFetchFailed(f"Upstream fetch failed: {e}") from e
    return client, resp


async def _close(resp: httpx.Response, client: httpx.AsyncClient):
    await resp.aclose()
    await client.aclose()


async def handle_hls_proxy(token: str, request: Request) -> Response:
    try:
        target = decode_target(token)
        client, resp = await _fetch(target, request.headers.get("range"))
    except (MissingParameter, InvalidTarget) as e:
        return PlainTextResponse(str(e), status_code=400, headers=CORS)

    if is_playlist(target):
        try:
            await resp.aread()
            text = resp.text
        except httpx.HTTPError as e:
            raise UpstreamFetchFailed(f"Upstream read failed: {e}") from e
        finally:
            await _close(resp, client)
        log.debug("[hls] rewrote playlist %s (upstream %d)", target, resp.status_code)
        return Response(
            rewrite_playlist(text, target),
            status_code=200,
            media_type=PLAYLIST_TYPE,
            headers={**CORS, "Cache-Control": "no-cache"},
        )

    headers = {
        **CORS,
        "Content-Type": resp.headers.get("content-type") or "application/octet-stream",
        "Accept-Ranges": resp.headers.get("accept-ranges") or "bytes",
    }
    for name in ("Content-Range", "Content-Length", "Content-Encoding"):
        value = resp.headers.get(name)
        if value:
            headers[name] = value

    return StreamingResponse(
        resp.aiter_raw(),
        status_code=resp.status_code,
        headers=headers,
        background=BackgroundTask(_close, resp, client),
    )
