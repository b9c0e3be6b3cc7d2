import logging
import mimetypes
from urllib.parse import urlparse

from app.config import DEFAULT_BUDGET, DownloadBudget
from app.errors import MalformedManifest
from app.utils import hls
from app.utils.http import fetch_capped, fetch_text
from app.utils.resolver import HLS, resolve_source
from app.utils.segments import MediaBuffer, assemble, download_prefix

logger = logging.getLogger(__name__)

DEFAULT_MIME = "video/mp4"


def _guess_mime(url: str, content_type: str) -> str:
    ctype = (content_type or "").split(";")[0].strip().lower()
    if ctype.startswith("video/"):
        return ctype
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    if guessed and guessed.startswith("video/"):
        return guessed
    return DEFAULT_MIME


def download_hls_sample(manifest_url: str, budget: DownloadBudget = DEFAULT_BUDGET) -> MediaBuffer:
    """
    master playlist -> lowest variant in range -> media playlist
    -> first N .ts segments -> single buffer under the size budget.
    """
    _, auth = hls.split_auth(manifest_url)

    master = fetch_text(manifest_url)
    variant = hls.select_variant(master, budget.min_variant_bandwidth, budget.max_variant_bandwidth)
    media_url = hls.variant_url(manifest_url, variant, auth)
    logger.info("selected variant %s (%d bit/s)", variant.uri, variant.bandwidth)

    media = fetch_text(media_url)
    segment_urls = hls.resolve_segment_urls(media, media_url, auth)
    if not segment_urls:
        raise MalformedManifest(f"variant playlist lists no {hls.SEGMENT_EXT} segments")
    logger.info("media playlist lists %d segments, budget %d",
                len(segment_urls), budget.max_segments)

    chunks = download_prefix(segment_urls, budget)
    buf = assemble(chunks, budget)
    logger.info("assembled %d bytes from %d segments", len(buf), buf.chunk_count)
    return buf


def download_direct(url: str, budget: DownloadBudget = DEFAULT_BUDGET) -> MediaBuffer:
    data, ctype = fetch_capped(url, budget.max_total_bytes)
    logger.info("downloaded %d bytes from direct link", len(data))
    return MediaBuffer(data=data, chunk_count=1, mime_type=_guess_mime(url, ctype))


def download_video(url: str, budget: DownloadBudget = DEFAULT_BUDGET) -> MediaBuffer:
    source = resolve_source(url)
    if source.kind == HLS:
        return download_hls_sample(source.url, budget)
    return download_direct(source.url, budget)
