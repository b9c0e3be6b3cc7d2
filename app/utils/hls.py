"""
Minimal HLS playlist handling for short, VOD-style samples.

Only the pieces needed to pull a prefix of a stream are supported: the
bandwidth ladder of a master playlist and the ``.ts`` entries of a media
playlist. Encryption, discontinuities, live reloads and alternate
renditions are ignored.
"""
import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple
from urllib.parse import urljoin, urlsplit, urlunsplit

from app.config import MAX_VARIANT_BANDWIDTH, MIN_VARIANT_BANDWIDTH
from app.errors import MalformedManifest, NoSuitableVariant

BANDWIDTH_RX = re.compile(r"(?<![A-Z-])BANDWIDTH=(\d+)")
I_FRAME_TAG = "#EXT-X-I-FRAME-STREAM-INF"
SEGMENT_EXT = ".ts"


@dataclass(frozen=True)
class Variant:
    bandwidth: int  # bits per second
    uri: str


@dataclass(frozen=True)
class AuthContext:
    """Query string carried by the manifest URL (signed CDN policy)."""

    query: str = ""

    def apply(self, url: str) -> str:
        if not self.query:
            return url
        sep = "&" if urlsplit(url).query else "?"
        return f"{url}{sep}{self.query}"


def split_auth(url: str) -> Tuple[str, AuthContext]:
    parts = urlsplit(url)
    bare = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))
    return bare, AuthContext(parts.query)


def _is_absolute(uri: str) -> bool:
    # "//host/path" names another host even without a scheme
    parts = urlsplit(uri)
    return bool(parts.scheme or parts.netloc)


def _resolve(uri: str, base_url: str, auth: AuthContext) -> str:
    # absolute entries already carry whatever token they need
    if _is_absolute(uri):
        return urljoin(base_url, uri)
    bare_base, _ = split_auth(base_url)
    return auth.apply(urljoin(bare_base, uri))


# ---------------------------------------------------------------------------
# Master playlist
# ---------------------------------------------------------------------------

def iter_tagged_uris(text: str) -> Iterator[Tuple[str, str]]:
    """
    Yield (tag_line, uri_line) pairs for every line declaring a BANDWIDTH.

    Two states: scanning for a tag, or waiting for the URI that must follow
    it. Blank lines are skipped. Another tag or end of input while waiting
    is a malformed playlist.
    """
    pending = None
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if pending is not None:
            if line.startswith("#"):
                raise MalformedManifest(
                    f"line {lineno}: expected a URI after {pending[1]!r}, got a tag"
                )
            yield pending[1], line
            pending = None
            continue
        if line.startswith(I_FRAME_TAG):
            continue
        if BANDWIDTH_RX.search(line):
            pending = (lineno, line)
    if pending is not None:
        raise MalformedManifest(f"line {pending[0]}: {pending[1]!r} has no URI line")


def parse_master(text: str) -> List[Variant]:
    variants = []
    for tag, uri in iter_tagged_uris(text):
        bw = int(BANDWIDTH_RX.search(tag).group(1))
        variants.append(Variant(bandwidth=bw, uri=uri))
    return variants


def select_variant(text: str,
                   min_bandwidth: int = MIN_VARIANT_BANDWIDTH,
                   max_bandwidth: int = MAX_VARIANT_BANDWIDTH) -> Variant:
    """
    Pick the lowest bitrate whose bandwidth lies in [min_bandwidth, max_bandwidth].
    Ties keep the first occurrence.
    """
    best = None
    for v in parse_master(text):
        if not (min_bandwidth <= v.bandwidth <= max_bandwidth):
            continue
        if best is None or v.bandwidth < best.bandwidth:
            best = v
    if best is None:
        raise NoSuitableVariant(
            f"no variant between {min_bandwidth} and {max_bandwidth} bit/s"
        )
    return best


def variant_url(master_url: str, variant: Variant, auth: AuthContext) -> str:
    return _resolve(variant.uri, master_url, auth)


# ---------------------------------------------------------------------------
# Media playlist
# ---------------------------------------------------------------------------

def is_segment_line(line: str) -> bool:
    if not line or line.startswith("#"):
        return False
    return urlsplit(line).path.lower().endswith(SEGMENT_EXT)


def resolve_segment_urls(text: str, variant_manifest_url: str, auth: AuthContext) -> List[str]:
    """Ordered, absolute, authorized URLs of every .ts entry (not capped)."""
    urls = []
    for raw in text.splitlines():
        line = raw.strip()
        if is_segment_line(line):
            urls.append(_resolve(line, variant_manifest_url, auth))
    return urls
