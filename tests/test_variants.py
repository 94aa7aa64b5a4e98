import asyncio

from desiflash.providers.base import UpstreamFetchFailed, Variant
from desiflash.providers.variants import parse_master_variants, pick_variant, select_best_variant

MASTER_URL = "https://cdn.example/hls/master.m3u8"

MASTER = """#EXTM3U
#EXT-X-VERSION:3
#EXT-X-STREAM-INF:BANDWIDTH=1000,RESOLUTION=1280x720
720/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=500,RESOLUTION=1920x1080
1080a/index.m3u8
#EXT-X-STREAM-INF:BANDWIDTH=800,RESOLUTION=1920x1080,CODECS="avc1.640028"
https://other.example/1080b/index.m3u8
"""


class FakeFetcher:
    def __init__(self, body=None, error=None):
        self.body = body
        self.error = error
        self.calls = []

    async def get(self, url, *, headers=None, **kwargs):
        self.calls.append((url, headers))
        if self.error:
            raise self.error
        return self.body


def test_parse_master_variants():
    variants = parse_master_variants(MASTER, MASTER_URL)
    assert variants == [
        Variant("https://cdn.example/hls/720/index.m3u8", 1000, (1280, 720)),
        Variant("https://cdn.example/hls/1080a/index.m3u8", 500, (1920, 1080)),
        Variant("https://other.example/1080b/index.m3u8", 800, (1920, 1080)),
    ]


def test_pick_largest_area_then_bandwidth():
    variants = [
        Variant("a", 1000, (1280, 720)),
        Variant("b", 500, (1920, 1080)),
        Variant("c", 800, (1920, 1080)),
    ]
    assert pick_variant(variants).url == "c"


def test_pick_first_when_no_metadata():
    assert pick_variant([Variant("a"), Variant("b")]).url == "a"
    assert pick_variant([]) is None


def test_pick_bandwidth_only():
    assert pick_variant([Variant("a", 100), Variant("b", 300), Variant("c", 200)]).url == "b"


def test_stream_inf_without_uri_is_skipped():
    text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=1\n#EXT-X-ENDLIST\n"
    assert parse_master_variants(text, MASTER_URL) == []


def test_implicit_variants_when_no_stream_inf():
    text = "#EXTM3U\r\nlow.m3u8\r\nhigh.m3u8?t=1\r\nseg.ts\r\n"
    assert parse_master_variants(text, MASTER_URL) == [
        Variant("https://cdn.example/hls/low.m3u8"),
        Variant("https://cdn.example/hls/high.m3u8?t=1"),
    ]


def test_media_playlist_has_no_variants():
    text = "#EXTM3U\n#EXTINF:10,\nseg0.ts\n#EXT-X-ENDLIST"
    assert parse_master_variants(text, MASTER_URL) == []


def test_select_best_variant_sends_headers():
    fetcher = FakeFetcher(MASTER)
    url = asyncio.run(select_best_variant(MASTER_URL, fetcher, referer="https://r/", user_agent="UA"))
    assert url == "https://other.example/1080b/index.m3u8"
    assert fetcher.calls == [(MASTER_URL, {"Referer": "https://r/", "User-Agent": "UA", "Accept": "*/*"})]


def test_select_best_variant_keeps_media_playlist():
    fetcher = FakeFetcher("#EXTM3U\n#EXTINF:10,\nseg0.ts\n")
    assert asyncio.run(select_best_variant(MASTER_URL, fetcher, referer="r", user_agent="u")) == MASTER_URL


def test_select_best_variant_swallows_fetch_failure():
    fetcher = FakeFetcher(error=UpstreamFetchFailed("boom"))
    assert asyncio.run(select_best_variant(MASTER_URL, fetcher, referer="r", user_agent="u")) == MASTER_URL
