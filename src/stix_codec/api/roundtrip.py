"""
Round-trip pipeline: fetch → decode → encode.

Reproduces the watchlist flow end to end: a document is retrieved,
bound to the typed model and written back to XML. Codec errors are not
caught here; a document that fails is reported by the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from stix_codec.codec import DocumentCodec, DocumentNode
from stix_codec.config import get_settings
from stix_codec.services import DocumentFetchService

logger = logging.getLogger(__name__)


@dataclass
class RoundTripResult:
    """Result of a single round trip."""
    source: str
    document: DocumentNode
    xml: str
    indicator_count: int
    elapsed_sec: float


class RoundTripPipeline:
    """
    Fetch a document, decode it and encode it back.

    Example:
        >>> codec = DocumentCodec.from_settings()
        >>> pipeline = RoundTripPipeline(codec)
        >>> result = pipeline.run()
        >>> print(result.xml)
    """

    def __init__(
        self,
        codec: DocumentCodec,
        fetch_service: Optional[DocumentFetchService] = None
    ):
        """
        Initialize with an injected codec.

        Args:
            codec: Codec used for decode and encode
            fetch_service: Transport for run() (created on first use if omitted)
        """
        self._codec = codec
        self._fetch_service = fetch_service

    def run(self, url: Optional[str] = None) -> RoundTripResult:
        """
        Fetch and round-trip a remote document.

        Args:
            url: Document URL (defaults to settings.source_url)

        Raises:
            DocumentFetchError: If the document cannot be retrieved
            MalformedInputError / SchemaMismatchError: If decoding fails
            IncompleteDocumentError: If encoding fails
        """
        url = url or get_settings().source_url
        if self._fetch_service is None:
            self._fetch_service = DocumentFetchService()

        text = self._fetch_service.fetch(url)
        return self.run_text(text, source=url)

    def run_text(self, text: str, source: str = '<memory>') -> RoundTripResult:
        """
        Round-trip document text that is already in memory.

        Args:
            text: XML document text
            source: Label for logging and the result record
        """
        start_time = time.time()

        document = self._codec.decode(text)
        xml = self._codec.encode(document)
        indicator_count = len(getattr(document, 'indicators', None) or [])

        elapsed = time.time() - start_time
        logger.info(
            f"Round-tripped {source}: {indicator_count} indicator(s), "
            f"{len(xml):,} chars in {elapsed:.3f}s"
        )
        return RoundTripResult(
            source=source,
            document=document,
            xml=xml,
            indicator_count=indicator_count,
            elapsed_sec=elapsed
        )
