"""
Document codec for schema-bound XML documents.

- DocumentCodec: decode XML text into typed models and encode them back
- ModelRegistry: pydantic model classes generated from a schema artifact
- DocumentDecoder / DocumentEncoder: single-use tree walkers behind the codec
- lexical: XML Schema lexical forms of scalar values
"""

from .models import DocumentNode, ModelRegistry
from .decoder import DocumentDecoder
from .encoder import DocumentEncoder
from .document_codec import DocumentCodec

__all__ = [
    'DocumentCodec',
    'DocumentNode',
    'ModelRegistry',
    'DocumentDecoder',
    'DocumentEncoder',
]
