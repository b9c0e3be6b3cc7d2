"""Errors raised while retrieving and analyzing a video.

Every retrieval stage fails fast: nothing is retried and the first error
aborts the request. The FastAPI layer maps these to HTTP status codes.
"""
from typing import Optional


class RetrievalError(Exception):
    """Base class for failures while turning a link into a media buffer."""

    kind = "retrieval_error"


class NetworkError(RetrievalError):
    kind = "network_error"

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"GET {url} failed: {reason}")


class MalformedManifest(RetrievalError):
    kind = "malformed_manifest"


class NoSuitableVariant(RetrievalError):
    kind = "no_suitable_variant"


class SegmentDownloadError(RetrievalError):
    kind = "segment_download_error"

    def __init__(self, url: str, index: int):
        self.url = url
        self.index = index
        super().__init__(f"Segment #{index} could not be downloaded: {url}")


class PayloadTooLarge(RetrievalError):
    kind = "payload_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Payload of {size} bytes exceeds the {limit} byte limit")


class SourceResolutionError(RetrievalError):
    kind = "source_resolution_error"


class AnalysisError(Exception):
    """The accent analysis service could not produce an answer."""
