"""
Dean Edwards p,a,c,k,e,d unpacker.

Embed hosts wrap their player setup in

  eval(function(p,a,c,k,e,d){...}('<payload>',<radix>,<count>,'<a|b|c>'.split('|')...))

unpack() rebuilds the plain script so stream URLs can be regexed out of it.
"""
from __future__ import annotations
import re

_PACKED_RE = re.compile(
    r"eval\(function\(p,a,c,k,e,[dr]\)\{.*?\}\("
    r"'((?:\\.|[^'\\])*)',\s*(\d+),\s*(\d+),\s*'((?:\\.|[^'\\])*)'\.split\('\|'\)",
    re.DOTALL,
)
_WORD_RE = re.compile(r"\b\w+\b")
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class UnpackError(ValueError):
    pass


def detect(text: str) -> bool:
    """Check if text contains packed JS."""
    return bool(_PACKED_RE.search(text))


def _decode_word(word: str, radix: int) -> int:
    alphabet = _DIGITS[:radix]
    val = 0
    for ch in word:
        idx = alphabet.find(ch)
        if idx < 0:
            raise ValueError(word)
        val = val * radix + idx
    return val


def _unescape(s: str) -> str:
    return s.replace("\\'", "'").replace("\\\\", "\\")


def unpack(text: str) -> str:
    """Unpack the first packed script in text. Raises UnpackError if there is none."""
    match = _PACKED_RE.search(text)
    if not match:
        raise UnpackError("no p,a,c,k,e,d signature found")

    payload, radix_s, count_s, symtab_raw = match.groups()
    radix = int(radix_s)
    count = int(count_s)
    if not 2 <= radix <= len(_DIGITS):
        raise UnpackError(f"unsupported radix {radix}")

    symtab = _unescape(symtab_raw).split("|")
    if len(symtab) < count:
        symtab.extend([""] * (count - len(symtab)))

    def _replace(m: re.Match) -> str:
        word = m.group(0)
        try:
            idx = _decode_word(word, radix)
        except ValueError:
            return word
        if idx < len(symtab) and symtab[idx]:
            return symtab[idx]
        return word

    return _WORD_RE.sub(_replace, _unescape(payload))
