import logging
from dataclasses import dataclass
from typing import List, Sequence

from app.config import DEFAULT_BUDGET, DownloadBudget
from app.errors import NetworkError, PayloadTooLarge, SegmentDownloadError
from app.utils.http import fetch_bytes

logger = logging.getLogger(__name__)

TS_MIME = "video/mp2t"


@dataclass(frozen=True)
class MediaBuffer:
    data: bytes
    chunk_count: int = 1
    mime_type: str = TS_MIME

    def __len__(self) -> int:
        return len(self.data)


# Scarica in ordine i primi N segmenti: niente parallelismo, niente retry.
# Il primo errore interrompe tutto (nessun buffer parziale).
def download_prefix(urls: Sequence[str], budget: DownloadBudget = DEFAULT_BUDGET) -> List[bytes]:
    """
    Fetch the first ``budget.max_segments`` URLs one after the other.

    Chunks come back in list order so they can be concatenated positionally.
    Raises SegmentDownloadError for the first URL that fails.
    """
    selected = list(urls[:budget.max_segments])
    chunks = []
    for i, url in enumerate(selected):
        try:
            chunks.append(fetch_bytes(url))
        except NetworkError as e:
            logger.warning("segment %d/%d failed: %s", i + 1, len(selected), e.reason)
            raise SegmentDownloadError(url, i) from e
    logger.info("downloaded %d of %d segments", len(chunks), len(urls))
    return chunks


def check_payload_size(size: int, budget: DownloadBudget = DEFAULT_BUDGET) -> None:
    if size > budget.max_total_bytes:
        raise PayloadTooLarge(size, budget.max_total_bytes)


def assemble(chunks: Sequence[bytes],
             budget: DownloadBudget = DEFAULT_BUDGET,
             mime_type: str = TS_MIME) -> MediaBuffer:
    data = b"".join(chunks)
    check_payload_size(len(data), budget)
    return MediaBuffer(data=data, chunk_count=len(chunks), mime_type=mime_type)
