"""
Core types for the desiflash provider pipeline.

  - Payload: obfuscated string lifted out of an embed page
  - HlsCandidate: playlist URL picked by one resolver rule
  - Variant: one quality level of a master playlist
  - ResolvedSource: what /sources hands back to the client
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

# ──────────────────────────────
#  Errors
# ──────────────────────────────
class ProviderError(Exception):
    """Base class for every failure the pipeline or proxy reports."""


class MissingParameter(ProviderError):
    pass


class PayloadNotFound(ProviderError):
    pass


class DecodeFailed(ProviderError):
    pass


class HlsSourceNotFound(ProviderError):
    pass


class InvalidTarget(ProviderError):
    pass


class UpstreamFetchFailed(ProviderError):
    pass

# ──────────────────────────────
#  Embed payload
# ──────────────────────────────
@dataclass(frozen=True)
class Payload:
    pattern: str                      # "juicycodes" | "run"
    text: str

# ──────────────────────────────
#  Resolver output
# ──────────────────────────────
@dataclass(frozen=True)
class HlsCandidate:
    url: str
    label: Optional[str] = None

# ──────────────────────────────
#  Master playlist variant
# ──────────────────────────────
@dataclass(frozen=True)
class Variant:
    url: str
    bandwidth: Optional[int] = None
    resolution: Optional[tuple[int, int]] = None    # (width, height)

    @property
    def area(self) -> int:
        if not self.resolution:
            return 0
        return self.resolution[0] * self.resolution[1]

# ──────────────────────────────
#  Final pipeline output
# ──────────────────────────────
@dataclass(frozen=True)
class SourceFile:
    url: str
    quality: str = "auto"

    def to_dict(self):
        return {"url": self.url, "quality": self.quality}


@dataclass(frozen=True)
class ResolvedSource:
    sources: tuple[SourceFile, ...]
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.sources[0].url

    def to_dict(self):
        return {
            "sources": [s.to_dict() for s in self.sources],
            "tracks": [],
            "audio": [],
            "intro": {"start": 0, "end": 0},
            "outro": {"start": 0, "end": 0},
            "headers": dict(self.headers),
        }
