"""
Document Fetch Service

Retrieves raw document text over HTTP with:
- Configurable timeout (CodecSettings.request_timeout)
- Fail-fast error handling (no retries)
- UTF-8 decoding of the response body

The codec never performs I/O itself; this service is the transport
collaborator that supplies its input.
"""

import logging
import time
from typing import Optional

import requests

from stix_codec.config import get_settings
from stix_codec.exceptions import DocumentFetchError

logger = logging.getLogger(__name__)


class DocumentFetchService:
    """
    Service for fetching raw XML documents.

    Usage:
        service = DocumentFetchService(timeout=10)
        text = service.fetch("https://example.com/package.xml")
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize fetch service.

        Args:
            timeout: Request timeout in seconds (defaults to settings)
            session: requests Session to reuse (a new one is created if omitted)
        """
        self.timeout = timeout if timeout is not None else get_settings().request_timeout
        self._session = session or requests.Session()

    def fetch(self, url: str) -> str:
        """
        Fetch a document and return its text.

        Args:
            url: Document URL

        Returns:
            Response body decoded as UTF-8 (a leading BOM is dropped)

        Raises:
            DocumentFetchError: On connection failure, timeout, HTTP error
                                status or a body that is not UTF-8
        """
        logger.debug(f"Fetching {url} (timeout={self.timeout}s)")
        start_time = time.time()

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Fetch failed for {url}: {e}")
            raise DocumentFetchError(f"Fetch failed for {url}: {e}") from e

        try:
            text = response.content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            logger.error(f"Response from {url} is not valid UTF-8: {e}")
            raise DocumentFetchError(f"Response from {url} is not valid UTF-8: {e}") from e

        elapsed = time.time() - start_time
        logger.debug(f"Fetched {len(response.content):,} bytes from {url} in {elapsed:.2f}s")
        return text
