"""
DocumentCodec: bidirectional mapping between XML text and typed documents.

The codec is an explicitly constructed, immutable value. It validates its
schema artifact and generates the document model classes on construction;
decode() and encode() are pure functions of their argument afterwards and
may be called concurrently.
"""

import enum
import logging
from typing import Optional, Type, Union

from stix_codec.codec.decoder import DocumentDecoder
from stix_codec.codec.encoder import DocumentEncoder
from stix_codec.codec.models import DocumentNode, ModelRegistry
from stix_codec.config import CodecSettings, get_settings
from stix_codec.schema import DocumentSchema, load_schema

logger = logging.getLogger(__name__)


class DocumentCodec:
    """
    Decode XML text into a typed document and encode it back.

    Round-trip law: for every document ``d`` this codec can encode,
    ``codec.decode(codec.encode(d)) == d``. Formatting (whitespace,
    namespace prefix placement) may differ from the original text.

    Args:
        schema: Validated schema artifact describing the vocabulary
        strict: If True (default), unbound elements or attributes make
                decode() fail with SchemaMismatchError. If False, they are
                preserved on the model (any_elements / any_attributes) and
                written back by encode().
        pretty_print: Indent encode() output

    Example:
        >>> codec = DocumentCodec(load_schema())
        >>> doc = codec.decode(xml_text)
        >>> len(doc.indicators)
        1
        >>> doc.indicators[0].title
        'Known malicious domain'
        >>> print(codec.encode(doc))
    """

    def __init__(
        self,
        schema: DocumentSchema,
        strict: bool = True,
        pretty_print: bool = True
    ):
        self._schema = schema
        self._strict = strict
        self._pretty_print = pretty_print
        self._registry = ModelRegistry(schema)
        logger.debug(
            f"DocumentCodec ready for {schema.name} {schema.version} "
            f"(root={schema.root.element}, strict={strict})"
        )

    @classmethod
    def from_settings(cls, settings: Optional[CodecSettings] = None) -> 'DocumentCodec':
        """
        Build a codec from application settings.

        Args:
            settings: Settings to use (defaults to get_settings())

        Returns:
            Codec for the schema artifact at settings.schema_path

        Raises:
            FileNotFoundError: If the schema artifact does not exist
            SchemaDefinitionError: If the schema artifact is invalid
        """
        settings = settings or get_settings()
        schema = load_schema(settings.schema_path)
        return cls(schema, strict=settings.strict, pretty_print=settings.pretty_print)

    @property
    def schema(self) -> DocumentSchema:
        return self._schema

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def pretty_print(self) -> bool:
        return self._pretty_print

    @property
    def document_type(self) -> Type[DocumentNode]:
        """Model class of the document root (e.g., STIXType)."""
        return self._registry.model(self._schema.root.type)

    def model(self, type_name: str) -> Type[DocumentNode]:
        """Model class for a schema type, for building documents programmatically."""
        return self._registry.model(type_name)

    def enum(self, name: str) -> Type[enum.Enum]:
        """Enum class for a schema enumeration."""
        return self._registry.enum(name)

    def new_document(self, **fields) -> DocumentNode:
        """Create an empty (or partially filled) root document."""
        return self.document_type(**fields)

    def decode(self, text: Union[str, bytes]) -> DocumentNode:
        """
        Decode XML text into a typed document.

        Args:
            text: UTF-8 XML document (str or bytes)

        Returns:
            Root document model populated from the XML

        Raises:
            MalformedInputError: If the text is not well-formed XML
            SchemaMismatchError: If the XML does not conform to the schema
                                 (wrong root, missing required field,
                                 mistyped value, unexpected content in
                                 strict mode)
        """
        decoder = DocumentDecoder(self._schema, self._registry, strict=self._strict)
        document = decoder.decode(text)
        logger.debug(f"Decoded {self._schema.root.element} into {type(document).__name__}")
        return document

    def encode(self, doc: DocumentNode) -> str:
        """
        Encode a typed document into UTF-8 XML text.

        Args:
            doc: Root document produced by decode() or built from this
                 codec's model classes

        Returns:
            XML text including the XML declaration

        Raises:
            IncompleteDocumentError: If required fields are unset or a QName
                                     value uses an undeclared prefix
            TypeError: If doc is not a model of this codec
        """
        encoder = DocumentEncoder(self._schema, self._registry, pretty_print=self._pretty_print)
        xml = encoder.encode(doc)
        logger.debug(f"Encoded {type(doc).__name__} into {len(xml):,} chars")
        return xml
