# utils/resolver.py
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse

import requests
import yt_dlp
from bs4 import BeautifulSoup

from app.errors import SourceResolutionError
from app.utils.http import browser_headers
from app.config import DOWNLOAD_TIMEOUT

logger = logging.getLogger(__name__)

SHARE_PATH_RX = re.compile(r"^/(share|embed)/[0-9a-zA-Z]+", re.I)
SHARE_DOMAINS = ["loom.com"]

HLS = "hls"
DIRECT = "direct"


@dataclass(frozen=True)
class ResolvedSource:
    kind: str  # HLS | DIRECT
    url: str


def is_hls(url: str) -> bool:
    return urlparse(url).path.lower().endswith(".m3u8")


def is_share_link(url: str) -> bool:
    p = urlparse(url)
    host = (p.hostname or "").lower()
    if not any(host == d or host.endswith("." + d) for d in SHARE_DOMAINS):
        return False
    return bool(SHARE_PATH_RX.match(p.path or ""))


def _manifest_from_ytdlp(url: str) -> Optional[str]:
    ydl_opts = {
        "noplaylist": True,
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "socket_timeout": DOWNLOAD_TIMEOUT,
        "http_headers": browser_headers(),
    }
    with yt_dlp.YoutubeDL(ydl_opts) as ydl:
        info = ydl.extract_info(url, download=False)
    if not info:
        return None
    # Preferisci il manifest HLS: i formati m3u8 condividono lo stesso master
    for f in info.get("formats") or []:
        if str(f.get("protocol") or "").startswith("m3u8"):
            return f.get("manifest_url") or f.get("url")
    return info.get("manifest_url") or info.get("url")


def _video_from_html(url: str) -> Optional[str]:
    r = requests.get(url, headers=browser_headers(), timeout=DOWNLOAD_TIMEOUT)
    r.raise_for_status()
    soup = BeautifulSoup(r.text, "html.parser")
    for key in ["og:video", "og:video:url", "og:video:secure_url"]:
        og = soup.find("meta", attrs={"property": key})
        if og and og.get("content"):
            return urljoin(url, og["content"])
    return None


def _resolve_share_link(url: str) -> str:
    try:
        found = _manifest_from_ytdlp(url)
        if found:
            return found
    except yt_dlp.utils.DownloadError as e:
        logger.warning("yt-dlp could not resolve %s: %s", url, e)
    try:
        found = _video_from_html(url)
    except requests.RequestException as e:
        raise SourceResolutionError(f"Could not load share page {url}") from e
    if not found:
        raise SourceResolutionError(f"No playable media found behind {url}")
    return found


def resolve_source(url: str) -> ResolvedSource:
    """
    Decide how a user-supplied link is retrieved.
    - .m3u8 URL        -> used as the master manifest
    - share/embed link -> resolved to its manifest (yt-dlp, then og:video)
    - anything else    -> direct media file, fetched whole
    """
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError("Only http/https supported")

    target = url
    if is_share_link(url):
        target = _resolve_share_link(url)
        logger.info("share link %s resolved to %s", url, urlparse(target).path)

    if is_hls(target):
        return ResolvedSource(HLS, target)
    return ResolvedSource(DIRECT, target)
