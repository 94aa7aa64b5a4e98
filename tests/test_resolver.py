import pytest

from desiflash.providers.base import HlsCandidate, HlsSourceNotFound
from desiflash.providers.resolver import (
    config_rule, denormalize_numeric_tokens, direct_rule, extract_dictionary,
    extract_m3u8_candidates, generic_rule, pick_preferred_m3u8, resolve_hls,
    sanitize_m3u8_url, to_absolute_url,
)

BASE = "https://thrfive.io/"


def test_sanitize_strips_marker_and_query():
    raw = "https://host/path/Cannot%20GET%20/stream/abc.m3u8?x=1"
    assert sanitize_m3u8_url(raw) == "https://host/stream/abc.m3u8"


def test_sanitize_truncates_after_playlist():
    raw = "https://host/a/stream/tok.m3u8/junk/more.ts"
    assert sanitize_m3u8_url(raw) == "https://host/stream/tok.m3u8"


def test_sanitize_collapses_slashes_without_stream():
    assert sanitize_m3u8_url("https://host//a///b.m3u8?t=9") == "https://host/a/b.m3u8"


def test_sanitize_text_fallback_for_unparsable():
    assert sanitize_m3u8_url("//cdn//Cannot GET/x.m3u8") == "//cdn/x.m3u8"


def test_candidates_are_deduplicated_in_order():
    text = 'a "https://x/1.m3u8" b https://x/2.m3u8?k=v c "https://x/1.m3u8"'
    assert extract_m3u8_candidates(text) == ["https://x/1.m3u8", "https://x/2.m3u8?k=v"]


def test_preference_skips_error_candidates():
    cands = [
        "https://a/plain.m3u8",
        "https://a/Cannot%20GET%20/stream/bad.m3u8",
        "https://cdn.infamous.to/x/good.m3u8",
    ]
    assert pick_preferred_m3u8(cands) == "https://cdn.infamous.to/x/good.m3u8"


def test_preference_falls_back_to_first_clean_then_first():
    assert pick_preferred_m3u8(["https://a/Cannot GET/x.m3u8", "https://a/y.m3u8"]) == "https://a/y.m3u8"
    assert pick_preferred_m3u8(["https://a/Cannot GET/x.m3u8"]) == "https://a/Cannot GET/x.m3u8"
    assert pick_preferred_m3u8([]) is None


def test_direct_rule_prefers_stream_path():
    text = '"https://a/master.m3u8" "https://b/stream/tok.m3u8"'
    assert direct_rule(text, BASE) == HlsCandidate(url="https://b/stream/tok.m3u8")


def test_config_rule_resolves_relative_src_with_label():
    text = 'jwplayer().setup({sources: [{"src": "/hls/v1/index.m3u8", "label": "HD"}]})'
    assert config_rule(text, BASE) == HlsCandidate(url="https://thrfive.io/hls/v1/index.m3u8", label="HD")


def test_config_rule_without_label():
    text = 'sources:[{"type":"hls","src":"//cdn.x/v.m3u8"}]'
    assert config_rule(text, BASE) == HlsCandidate(url="https://cdn.x/v.m3u8", label=None)


def test_dictionary_denormalization():
    assert denormalize_numeric_tokens("/v/0-1-2.m3u8", ["a", "b", "c"]) == "/v/a-b-c.m3u8"


def test_dictionary_keeps_out_of_range_and_empty():
    assert denormalize_numeric_tokens("/7/1/0x.m3u8", ["", "b"]) == "/7/b/0x.m3u8"
    assert denormalize_numeric_tokens("/0.m3u8", None) == "/0.m3u8"


def test_generic_rule_uses_packer_dictionary():
    text = "var f='/0/1.m3u8';x('y','stream|abc'.split('|'))"
    assert extract_dictionary(text) == ["stream", "abc"]
    assert generic_rule(text, BASE) == HlsCandidate(url="https://thrfive.io/stream/abc.m3u8", label="auto")


def test_resolve_cascade_order():
    direct = 'x "https://a/stream/d.m3u8" sources:[{"src":"/c.m3u8"}]'
    assert resolve_hls(direct, BASE).url == "https://a/stream/d.m3u8"
    config = 'sources:[{"src":"/c.m3u8"}]'
    assert resolve_hls(config, BASE).url == "https://thrfive.io/c.m3u8"


def test_resolve_sanitizes_generic_hit():
    text = "load('/x//Cannot%20GET%20/stream/q.m3u8?z=1')"
    assert resolve_hls(text, BASE).url == "https://thrfive.io/stream/q.m3u8"


def test_resolve_raises_when_nothing_found():
    with pytest.raises(HlsSourceNotFound):
        resolve_hls("var nothing = 'here.mp4';", BASE)


def test_to_absolute_url():
    assert to_absolute_url("", BASE) == ""
    assert to_absolute_url("HTTPS://x/y", BASE) == "HTTPS://x/y"
    assert to_absolute_url("//x/y", BASE) == "https://x/y"
    assert to_absolute_url("seg.ts", "https://h/dir/index.m3u8") == "https://h/dir/seg.ts"
