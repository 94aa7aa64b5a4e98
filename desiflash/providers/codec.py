"""URL-safe base64 text helpers and the rot13 letter rotation."""
from __future__ import annotations
import base64
import binascii
import re
from typing import Optional

_LETTER_RE = re.compile(r"[A-Za-z]")


def b64url_encode(text: str) -> str:
    """Encode text as unpadded URL-safe base64."""
    raw = base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")
    return raw.rstrip("=")


def b64url_decode(value: str, errors: str = "strict") -> Optional[str]:
    """Decode URL-safe base64 (padding optional) to text, or None.

    errors="replace" keeps going past invalid UTF-8 with U+FFFD.
    """
    value = re.sub(r"\s+", "", value)
    value = value.replace("-", "+").replace("_", "/")
    padding = (-len(value)) % 4
    if padding:
        value += "=" * padding
    try:
        return base64.b64decode(value, validate=True).decode("utf-8", errors)
    except (binascii.Error, ValueError):
        return None


def b64_decode_lenient(value: str) -> Optional[str]:
    """Standard-alphabet decode that tolerates missing padding and stray bytes."""
    value = re.sub(r"\s+", "", value)
    value += "=" * ((-len(value)) % 4)
    try:
        return base64.b64decode(value).decode("utf-8", "replace")
    except (binascii.Error, ValueError):
        return None


def _rotate(m: re.Match) -> str:
    ch = m.group(0)
    base = ord("a") if ch.islower() else ord("A")
    return chr((ord(ch) - base + 13) % 26 + base)


def rot13(text: str) -> str:
    """Rotate ASCII letters by 13, leaving everything else alone."""
    return _LETTER_RE.sub(_rotate, text)


# Proxy tokens are plain URL-safe base64 of the target URL
encode_token = b64url_encode
decode_token = b64url_decode
