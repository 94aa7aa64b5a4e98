"""
HLS candidate resolver.

Mines a decoded/unpacked player script for a playlist URL. Rules are tried in
order and the first hit wins:

  1. direct      absolute https://...m3u8 URLs anywhere in the text
  2. config      JW-style `sources: [{"src": "...m3u8", "label": ...}]`
  3. generic     any quoted "...m3u8..." string, with packer dictionary
                 indices (`'a|b|c'.split('|')`) substituted back in

Whatever wins is passed through sanitize_m3u8_url(), which undoes the
"Cannot GET" and doubled-path corruption some upstream mirrors produce.
"""
from __future__ import annotations
import logging
import re
from typing import Callable, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .base import HlsCandidate, HlsSourceNotFound

log = logging.getLogger("desiflash.providers.resolver")

ABS_M3U8_RE = re.compile(r"""https?://[^\s"']+?\.m3u8(?:\?[^\s"']*)?""", re.IGNORECASE)
PREFERRED_RE = re.compile(r"/stream/|infamous\.", re.IGNORECASE)
ERROR_MARKER_RE = re.compile(r"Cannot%20GET%20|Cannot\s+GET", re.IGNORECASE)
CONFIG_SRC_RE = re.compile(
    r"""sources\s*:\s*\[[\s\S]*?\{[\s\S]*?"src"\s*:\s*"([^"]+\.m3u8[^"]*)"[\s\S]*?\}""",
    re.IGNORECASE,
)
CONFIG_LABEL_RE = re.compile(
    r"""sources\s*:\s*\[[\s\S]*?\{[\s\S]*?"label"\s*:\s*"([^"]+)"[\s\S]*?\}""",
    re.IGNORECASE,
)
GENERIC_RE = re.compile(r"""["']([^"']*\.m3u8[^"']*)["']""", re.IGNORECASE)
DICTIONARY_RE = re.compile(r"""'([^']*)'\.split\('\|'\)""")
NUMERAL_RE = re.compile(r"\b(\d+)\b", re.ASCII)
ABSOLUTE_RE = re.compile(r"^https?://", re.IGNORECASE)

Rule = Callable[[str, str], Optional[HlsCandidate]]


def to_absolute_url(url_or_path: str, base: str) -> str:
    if not url_or_path:
        return url_or_path
    if ABSOLUTE_RE.match(url_or_path):
        return url_or_path
    if url_or_path.startswith("//"):
        return f"https:{url_or_path}"
    try:
        return urljoin(base, url_or_path)
    except ValueError:
        return url_or_path

# ──────────────────────────────
#  Sanitation
# ──────────────────────────────
def _strip_marker(s: str) -> str:
    return ERROR_MARKER_RE.sub("", s)


def sanitize_m3u8_url(raw: str) -> str:
    """Drop error markers, cut the path down to /stream/...m3u8, collapse slashes."""
    try:
        parts = urlsplit(raw)
        if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
            raise ValueError(raw)
    except ValueError:
        text = _strip_marker(raw)
        text = re.sub(r"^(https?://[^/]+)/+", r"\1/", text, flags=re.IGNORECASE)
        return re.sub(r"([^:])/{2,}", r"\1/", text)

    path = _strip_marker(parts.path)
    ix = path.lower().rfind("/stream/")
    if ix >= 0:
        tail = path[ix:]
        end = tail.lower().find(".m3u8")
        path = tail[:end + len(".m3u8")] if end >= 0 else tail
    path = re.sub(r"/+", "/", path)
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))

# ──────────────────────────────
#  Rule 1: direct absolute URLs
# ──────────────────────────────
def extract_m3u8_candidates(text: str) -> list[str]:
    seen: dict[str, None] = {}
    for m in ABS_M3U8_RE.finditer(text):
        seen.setdefault(m.group(0), None)
    return list(seen)


def pick_preferred_m3u8(candidates: list[str]) -> Optional[str]:
    if not candidates:
        return None
    clean = [c for c in candidates if not ERROR_MARKER_RE.search(c)]
    for c in clean:
        if PREFERRED_RE.search(c):
            return c
    return clean[0] if clean else candidates[0]


def direct_rule(text: str, base: str) -> Optional[HlsCandidate]:
    picked = pick_preferred_m3u8(extract_m3u8_candidates(text))
    return HlsCandidate(url=picked) if picked else None

# ──────────────────────────────
#  Rule 2: player config
# ──────────────────────────────
def config_rule(text: str, base: str) -> Optional[HlsCandidate]:
    m = CONFIG_SRC_RE.search(text)
    if not m:
        return None
    label = CONFIG_LABEL_RE.search(text)
    return HlsCandidate(
        url=to_absolute_url(m.group(1), base),
        label=label.group(1) if label else None,
    )

# ──────────────────────────────
#  Rule 3: generic string + packer dictionary
# ──────────────────────────────
def extract_dictionary(text: str) -> Optional[list[str]]:
    m = DICTIONARY_RE.search(text)
    return m.group(1).split("|") if m else None


def denormalize_numeric_tokens(url: str, dictionary: Optional[list[str]]) -> str:
    if not dictionary:
        return url

    def _sub(m: re.Match) -> str:
        idx = int(m.group(1))
        if idx < len(dictionary) and dictionary[idx]:
            return dictionary[idx]
        return m.group(0)

    return NUMERAL_RE.sub(_sub, url)


def generic_rule(text: str, base: str) -> Optional[HlsCandidate]:
    m = GENERIC_RE.search(text)
    if not m:
        return None
    rebuilt = denormalize_numeric_tokens(m.group(1), extract_dictionary(text))
    return HlsCandidate(url=to_absolute_url(rebuilt, base), label="auto")


RULES: tuple[tuple[str, Rule], ...] = (
    ("direct", direct_rule),
    ("config", config_rule),
    ("generic", generic_rule),
)


def resolve_hls(text: str, base: str) -> HlsCandidate:
    for name, rule in RULES:
        hit = rule(text, base)
        if hit and hit.url:
            log.debug("[resolver] %s rule matched %s", name, hit.url)
            return HlsCandidate(url=sanitize_m3u8_url(hit.url), label=hit.label)
    raise HlsSourceNotFound("DESI-FLASH: HLS source not found after unpacking")
