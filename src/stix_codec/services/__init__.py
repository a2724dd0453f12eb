"""
Collaborator services for stix-codec.

- DocumentFetchService: HTTP retrieval of raw document text
"""

from stix_codec.services.document_fetch import DocumentFetchService

__all__ = [
    'DocumentFetchService',
]
