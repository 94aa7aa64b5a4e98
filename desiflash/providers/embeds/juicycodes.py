"""
JuicyCodes payload extraction and decoding.

Embed pages hide their player script in one of two call sites:

  _juicycodes("abc" + 'def' + ...)   five-stage decode (base64url → rot13 →
                                     symbol digits → salted char codes)
  JuicyCodes.Run("abc" + "def")      plain base64url

Both are literal concatenations; the fragments are glued back together before
decoding.
"""
from __future__ import annotations
import re
from typing import Iterator, Optional

from ..base import Payload, PayloadNotFound
from ..codec import b64url_decode, rot13

_LITERALS = r"""((?:"[^"]*"|'[^']*')(?:\s*\+\s*(?:"[^"]*"|'[^']*'))*)"""
JUICY_RE = re.compile(r"_juicycodes\(\s*" + _LITERALS + r"\s*\)", re.IGNORECASE)
RUN_RE = re.compile(r"JuicyCodes\.Run\(\s*" + _LITERALS + r"\s*\)", re.IGNORECASE)
PART_RE = re.compile(r""""([^"]*)"|'([^']*)'""")

PATTERNS = (
    ("juicycodes", JUICY_RE),
    ("run", RUN_RE),
)

SYMBOLS = ("`", "%", "-", "+", "*", "$", "!", "_", "^", "=")
_SYMBOL_INDEX = {ch: str(i) for i, ch in enumerate(SYMBOLS)}
SALT_LEN = 3
GROUP_LEN = 4
MAX_CODEPOINT = 0x10FFFF
_LEADING_INT_RE = re.compile(r"[+-]?\d+")


def join_literals(section: str) -> str:
    """Concatenate every quoted fragment of a `"a" + 'b'` expression."""
    return "".join(dq or sq for dq, sq in PART_RE.findall(section))


def find_payloads(html: str) -> Iterator[Payload]:
    """Yield each non-empty payload, _juicycodes(...) first."""
    for pattern, regex in PATTERNS:
        m = regex.search(html)
        if not m:
            continue
        text = join_literals(m.group(1))
        if text:
            yield Payload(pattern=pattern, text=text)


def extract_payload(html: str) -> Payload:
    for payload in find_payloads(html):
        return payload
    raise PayloadNotFound("DESI-FLASH: Direct embed payload not found")


def decode_salt(digits: str) -> Optional[int]:
    if not digits:
        return None
    acc = "".join(str(ord(ch) - 100) for ch in digits)
    # leading integer only, so "1-52" reads as 1
    m = _LEADING_INT_RE.match(acc)
    return int(m.group(0)) if m else None


def symbols_to_digits(text: str) -> str:
    return "".join(_SYMBOL_INDEX[ch] for ch in text if ch in _SYMBOL_INDEX)


def digits_to_text(digits: str, salt: int) -> Optional[str]:
    """Turn each full 4-digit group into chr((n % 1000) - salt)."""
    usable = len(digits) - len(digits) % GROUP_LEN
    if not usable:
        return None
    out = []
    for i in range(0, usable, GROUP_LEN):
        code = int(digits[i:i + GROUP_LEN]) % 1000 - salt
        if not 0 <= code <= MAX_CODEPOINT:
            return None
        out.append(chr(code))
    return "".join(out)


def decode_juicycodes(payload: str) -> Optional[str]:
    if not payload or len(payload) < SALT_LEN + 1:
        return None
    body, salt_digits = payload[:-SALT_LEN], payload[-SALT_LEN:]
    salt = decode_salt(salt_digits) or 0

    stage1 = b64url_decode(body, errors="replace")
    if stage1 is None:
        return None
    stage2 = rot13(stage1)
    return digits_to_text(symbols_to_digits(stage2), salt)


def decode_run(payload: str) -> Optional[str]:
    if not payload:
        return None
    return b64url_decode(payload, errors="replace")


def decode_payload(payload: Payload) -> Optional[str]:
    if payload.pattern == "juicycodes":
        return decode_juicycodes(payload.text)
    return decode_run(payload.text)
