"""
Shared fixtures: an in-memory web that replaces ``requests.get`` so the
retrieval pipeline can run without network access.
"""
import pytest
import requests

MASTER_URL = "https://cdn.loom.com/sessions/abc123/master.m3u8?Policy=p0&Signature=s1&Key-Pair-Id=k2"
AUTH = "Policy=p0&Signature=s1&Key-Pair-Id=k2"
BASE = "https://cdn.loom.com/sessions/abc123/"


class FakeResponse:
    def __init__(self, url, body=b"", status=200, headers=None):
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.url = url
        self.content = body
        self.status_code = status
        self.headers = headers or {}
        self.closed = False

    @property
    def text(self):
        return self.content.decode("utf-8")

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def json(self):
        import json
        return json.loads(self.text)

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeWeb:
    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, body=b"", status=200, headers=None):
        self.routes[url] = FakeResponse(url, body, status, headers)

    def fail(self, url, exc=None):
        self.routes[url] = exc or requests.ConnectionError(f"connection refused: {url}")

    def get(self, url, headers=None, timeout=None, stream=False, **kwargs):
        self.calls.append({"url": url, "headers": headers or {}, "stream": stream})
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(url, b"not found", status=404)
        if isinstance(route, Exception):
            raise route
        return route

    @property
    def urls(self):
        return [c["url"] for c in self.calls]


@pytest.fixture
def web(monkeypatch):
    fake = FakeWeb()
    monkeypatch.setattr(requests, "get", fake.get)
    return fake


def master_playlist(*ladder):
    lines = ["#EXTM3U", "#EXT-X-VERSION:3"]
    for bw, uri in ladder:
        lines.append(f"#EXT-X-STREAM-INF:BANDWIDTH={bw},RESOLUTION=640x360,CODECS=\"avc1.4d401e,mp4a.40.2\"")
        lines.append(uri)
    return "\n".join(lines) + "\n"


def media_playlist(*segments):
    lines = ["#EXTM3U", "#EXT-X-VERSION:3", "#EXT-X-TARGETDURATION:4", "#EXT-X-MEDIA-SEQUENCE:0"]
    for seg in segments:
        lines.append("#EXTINF:4.000,")
        lines.append(seg)
    lines.append("#EXT-X-ENDLIST")
    return "\n".join(lines) + "\n"
