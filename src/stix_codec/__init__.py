"""
stix-codec: typed round-trip codec for STIX 1.x threat-intelligence documents.

Main package exports for user-facing API.
"""

from typing import Optional

from stix_codec.exceptions import (
    CodecError,
    MalformedInputError,
    SchemaMismatchError,
    IncompleteDocumentError,
    SchemaDefinitionError,
    DocumentFetchError,
)
from stix_codec.schema import DocumentSchema, load_schema
from stix_codec.codec import DocumentCodec, DocumentNode
from stix_codec.services import DocumentFetchService
from stix_codec.api import RoundTripPipeline, RoundTripResult

__all__ = [
    'CodecError',
    'MalformedInputError',
    'SchemaMismatchError',
    'IncompleteDocumentError',
    'SchemaDefinitionError',
    'DocumentFetchError',
    'DocumentSchema',
    'load_schema',
    'DocumentCodec',
    'DocumentNode',
    'DocumentFetchService',
    'RoundTripPipeline',
    'RoundTripResult',
    'roundtrip',
]


def roundtrip(url: Optional[str] = None) -> str:
    """
    Fetch a STIX document, decode it and return it re-encoded as XML.

    Uses settings from the environment (see CodecSettings) for the schema
    artifact, strictness, timeout and default URL.

    Returns:
        Re-encoded XML text

    Raises:
        DocumentFetchError: If the document cannot be retrieved
        CodecError: If the document cannot be decoded or encoded

    Example:
        >>> from stix_codec import roundtrip
        >>> print(roundtrip())
        <?xml version='1.0' encoding='UTF-8'?>
        <stix:STIX_Package ...>
    """
    pipeline = RoundTripPipeline(DocumentCodec.from_settings())
    return pipeline.run(url).xml
