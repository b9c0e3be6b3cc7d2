import logging
from typing import Optional, Tuple

import requests

from app.config import BROWSER_UA, DOWNLOAD_TIMEOUT, PLATFORM_ORIGIN
from app.errors import NetworkError, PayloadTooLarge

logger = logging.getLogger(__name__)


def browser_headers() -> dict:
    # the CDN only serves manifests/segments to requests that look like the player
    return {
        "User-Agent": BROWSER_UA,
        "Accept": "*/*",
        "Origin": PLATFORM_ORIGIN,
        "Referer": PLATFORM_ORIGIN.rstrip("/") + "/",
    }


def _get(url: str, stream: bool = False, timeout: Optional[int] = None) -> requests.Response:
    try:
        r = requests.get(url, headers=browser_headers(), stream=stream,
                         timeout=timeout or DOWNLOAD_TIMEOUT)
    except requests.RequestException as e:
        raise NetworkError(url, str(e) or e.__class__.__name__) from e
    try:
        r.raise_for_status()
    except requests.HTTPError as e:
        r.close()
        raise NetworkError(url, f"HTTP {r.status_code}", status=r.status_code) from e
    return r


def fetch_text(url: str, timeout: Optional[int] = None) -> str:
    """GET a manifest and return its body as text."""
    r = _get(url, timeout=timeout)
    logger.debug("fetched %s (%d chars)", url, len(r.text))
    return r.text


def fetch_bytes(url: str, timeout: Optional[int] = None) -> bytes:
    r = _get(url, timeout=timeout)
    return r.content


def fetch_capped(url: str, max_bytes: int, timeout: Optional[int] = None) -> Tuple[bytes, str]:
    """
    Stream a whole file into memory, aborting as soon as it grows past
    max_bytes. Returns (body, content_type).
    """
    buf = bytearray()
    with _get(url, stream=True, timeout=timeout) as r:
        ctype = r.headers.get("Content-Type", "")
        try:
            for chunk in r.iter_content(chunk_size=1024 * 128):
                if not chunk:
                    continue
                buf.extend(chunk)
                if len(buf) > max_bytes:
                    raise PayloadTooLarge(len(buf), max_bytes)
        except requests.RequestException as e:
            raise NetworkError(url, str(e) or e.__class__.__name__) from e
    return bytes(buf), ctype
