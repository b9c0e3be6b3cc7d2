import pytest

from app.errors import MalformedManifest, NoSuitableVariant
from app.utils import hls

from conftest import AUTH, BASE, MASTER_URL, master_playlist, media_playlist


def test_selects_only_variant_inside_range():
    text = master_playlist(
        (2_000_000, "high/playlist.m3u8"),
        (800_000, "mid/playlist.m3u8"),
        (50_000, "low/playlist.m3u8"),
    )
    v = hls.select_variant(text)
    assert v == hls.Variant(bandwidth=800_000, uri="mid/playlist.m3u8")


def test_selects_lowest_bandwidth_in_range():
    text = master_playlist(
        (1_200_000, "a.m3u8"),
        (300_000, "b.m3u8"),
        (600_000, "c.m3u8"),
        (99_999, "too-low.m3u8"),
    )
    assert hls.select_variant(text).uri == "b.m3u8"


def test_range_bounds_are_inclusive():
    assert hls.select_variant(master_playlist((1_500_000, "top.m3u8"))).bandwidth == 1_500_000
    assert hls.select_variant(master_playlist((100_000, "floor.m3u8"))).bandwidth == 100_000


def test_ties_keep_first_occurrence():
    text = master_playlist((400_000, "first.m3u8"), (400_000, "second.m3u8"))
    assert hls.select_variant(text).uri == "first.m3u8"


def test_no_variant_in_range():
    text = master_playlist((2_000_000, "high.m3u8"), (50_000, "low.m3u8"))
    with pytest.raises(NoSuitableVariant):
        hls.select_variant(text)


def test_empty_master_has_no_variant():
    with pytest.raises(NoSuitableVariant):
        hls.select_variant("#EXTM3U\n")


def test_average_bandwidth_is_not_the_bandwidth():
    text = "#EXTM3U\n#EXT-X-STREAM-INF:AVERAGE-BANDWIDTH=200000,BANDWIDTH=900000\nv.m3u8\n"
    assert hls.parse_master(text) == [hls.Variant(900_000, "v.m3u8")]


def test_blank_lines_between_tag_and_uri_are_skipped():
    text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=500000\n\n  mid.m3u8  \n"
    assert hls.parse_master(text) == [hls.Variant(500_000, "mid.m3u8")]


def test_iframe_playlists_are_not_paired():
    text = (
        "#EXTM3U\n"
        '#EXT-X-I-FRAME-STREAM-INF:BANDWIDTH=150000,URI="iframe.m3u8"\n'
        "#EXT-X-STREAM-INF:BANDWIDTH=700000\n"
        "v.m3u8\n"
    )
    assert hls.parse_master(text) == [hls.Variant(700_000, "v.m3u8")]


def test_tag_followed_by_tag_is_malformed():
    text = "#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=500000\n#EXT-X-STREAM-INF:BANDWIDTH=600000\nv.m3u8\n"
    with pytest.raises(MalformedManifest):
        hls.parse_master(text)


def test_tag_at_end_of_input_is_malformed():
    with pytest.raises(MalformedManifest):
        hls.select_variant("#EXTM3U\n#EXT-X-STREAM-INF:BANDWIDTH=500000\n")


def test_split_auth():
    bare, auth = hls.split_auth(MASTER_URL)
    assert bare == BASE + "master.m3u8"
    assert auth.query == AUTH


def test_auth_apply_without_query_is_noop():
    assert hls.AuthContext().apply("https://x/y.ts") == "https://x/y.ts"


def test_auth_apply_merges_existing_query():
    assert hls.AuthContext("a=1").apply("https://x/y.ts?b=2") == "https://x/y.ts?b=2&a=1"


def test_relative_variant_gets_auth():
    _, auth = hls.split_auth(MASTER_URL)
    url = hls.variant_url(MASTER_URL, hls.Variant(800_000, "mid/playlist.m3u8"), auth)
    assert url == BASE + "mid/playlist.m3u8?" + AUTH


def test_absolute_variant_is_untouched():
    _, auth = hls.split_auth(MASTER_URL)
    v = hls.Variant(800_000, "https://other.example/v.m3u8?token=t")
    assert hls.variant_url(MASTER_URL, v, auth) == "https://other.example/v.m3u8?token=t"


def test_resolve_segment_urls():
    _, auth = hls.split_auth(MASTER_URL)
    media_url = BASE + "mid/playlist.m3u8?" + AUTH
    text = media_playlist("seg0.ts", "seg1.TS", "https://edge.example/seg2.ts?sig=own")
    assert hls.resolve_segment_urls(text, media_url, auth) == [
        BASE + "mid/seg0.ts?" + AUTH,
        BASE + "mid/seg1.TS?" + AUTH,
        "https://edge.example/seg2.ts?sig=own",
    ]


def test_non_ts_entries_are_skipped():
    _, auth = hls.split_auth(MASTER_URL)
    text = media_playlist("seg0.ts", "seg1.m4s", "seg2.aac", "seg3.ts")
    urls = hls.resolve_segment_urls(text, BASE + "mid/playlist.m3u8", auth)
    assert [u.split("?")[0].rsplit("/", 1)[1] for u in urls] == ["seg0.ts", "seg3.ts"]


def test_segment_resolution_is_idempotent():
    _, auth = hls.split_auth(MASTER_URL)
    text = media_playlist(*[f"seg{i}.ts" for i in range(8)])
    first = hls.resolve_segment_urls(text, BASE + "mid/playlist.m3u8?" + AUTH, auth)
    second = hls.resolve_segment_urls(text, BASE + "mid/playlist.m3u8?" + AUTH, auth)
    assert first == second
    assert len(first) == 8


def test_scheme_relative_segment_keeps_its_own_host_and_query():
    _, auth = hls.split_auth(MASTER_URL)
    text = media_playlist("//edge.example/s.ts?sig=own", "local.ts")
    urls = hls.resolve_segment_urls(text, BASE + "mid/playlist.m3u8?" + AUTH, auth)
    assert urls == ["https://edge.example/s.ts?sig=own", BASE + "mid/local.ts?" + AUTH]
    assert "Policy" not in urls[0]


def test_scheme_relative_variant_takes_master_scheme_only():
    _, auth = hls.split_auth(MASTER_URL)
    v = hls.Variant(800_000, "//other.example/v.m3u8")
    assert hls.variant_url(MASTER_URL, v, auth) == "https://other.example/v.m3u8"
