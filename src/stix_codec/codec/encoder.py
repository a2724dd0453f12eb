"""
Typed document → XML text.

Mirrors the decoder: the encoder walks a generated model tree using the
schema binding of each model's type and emits elements in schema order.
Required fields are checked on the way down, so nothing is serialized
for a document that cannot be written completely.
"""

import logging
from typing import Any, Dict

from lxml import etree

from stix_codec.codec.lexical import find_incompatible_char, format_lexical
from stix_codec.codec.models import DocumentNode, ModelRegistry
from stix_codec.exceptions import IncompleteDocumentError
from stix_codec.schema import XSI_TYPE, DocumentSchema, FieldSpec

logger = logging.getLogger(__name__)


class DocumentEncoder:
    """
    Single-use encoder for one document.

    Args:
        schema: Schema the document was built against
        registry: Model classes generated for the schema
        pretty_print: Indent the output
    """

    def __init__(self, schema: DocumentSchema, registry: ModelRegistry, pretty_print: bool = True):
        self._schema = schema
        self._registry = registry
        self._pretty_print = pretty_print
        self._nsmap: Dict[str, str] = {}
        self._fragment_parser = etree.XMLParser(resolve_entities=False, no_network=True)

    def encode(self, doc: DocumentNode) -> str:
        root_type = self._schema.root.type
        root_model = self._registry.model(root_type)
        if not isinstance(doc, root_model):
            raise TypeError(
                f"Expected a {root_type} document from this codec, got {type(doc).__name__}"
            )

        path = f'/{self._schema.root.element}'
        self._nsmap = self._document_nsmap(doc, path)

        root = etree.Element(self._schema.clark(self._schema.root.element), nsmap=self._nsmap)
        self._encode_complex(root, doc, root_type, path)

        return etree.tostring(
            root,
            xml_declaration=True,
            encoding='UTF-8',
            pretty_print=self._pretty_print
        ).decode('utf-8')

    def _document_nsmap(self, doc: DocumentNode, path: str) -> Dict[str, str]:
        nsmap = dict(self._schema.nsmap)
        for prefix, uri in doc.namespaces.items():
            if nsmap.get(prefix, uri) != uri:
                raise IncompleteDocumentError(
                    f"Document namespace prefix '{prefix}' ({uri}) conflicts with "
                    f"schema namespace {nsmap[prefix]}",
                    path=path
                )
            nsmap[prefix] = uri
        return nsmap

    # ------------------------------------------------------------------
    # Complex content
    # ------------------------------------------------------------------

    def _encode_complex(
        self,
        elem: etree._Element,
        model: DocumentNode,
        slot_type: str,
        path: str
    ) -> None:
        type_name = self._registry.type_name_of(type(model))
        if type_name is None or not self._schema.is_subtype(type_name, slot_type):
            raise TypeError(
                f"{type(model).__name__} cannot be encoded where {slot_type} is expected ({path})"
            )

        xsi_type = model.xsi_type or self._schema.types[type_name].xsi_type
        if xsi_type:
            self._check_prefix(xsi_type, path)
            elem.set(XSI_TYPE, self._xml_string(xsi_type, path))

        for field in self._schema.attributes_of(type_name):
            value = getattr(model, field.name)
            if value is None:
                self._require(field, path, f"Required attribute '{field.xml}' is not set")
                continue
            elem.set(self._schema.clark(field.xml), self._lexical(value, field.type, path))
        for key, value in model.any_attributes.items():
            try:
                elem.set(key, self._xml_string(value, path))
            except ValueError as e:
                raise IncompleteDocumentError(
                    f"Preserved attribute {key!r} cannot be written: {e}", path=path
                ) from e

        text_spec = self._schema.text_of(type_name)
        if text_spec is not None:
            if model.value is None:
                if text_spec.required:
                    raise IncompleteDocumentError("Required text content is not set", path=path)
            else:
                elem.text = self._lexical(model.value, text_spec.type, path)

        for field in self._schema.elements_of(type_name):
            self._encode_field(elem, field, getattr(model, field.name), path)

        if model.any_elements:
            logger.debug(f"Re-emitting {len(model.any_elements)} preserved element(s) at {path}")
        for fragment in model.any_elements:
            try:
                elem.append(etree.fromstring(fragment, self._fragment_parser))
            except etree.XMLSyntaxError as e:
                raise IncompleteDocumentError(
                    f"Preserved element is not well-formed XML: {e.msg}", path=path
                ) from e

    def _encode_field(self, elem: etree._Element, field: FieldSpec, value: Any, path: str) -> None:
        if not field.repeated:
            if value is None:
                self._require(field, path, f"Required element '{field.xml}' is not set")
                return
            self._encode_value(elem, field, value, f'{path}/{field.xml}')
            return

        if not value:
            self._require(field, path, f"Required element '{field.xml}' has no items")
            return

        parent = elem
        item_path = path
        if field.wrapper is not None:
            parent = etree.SubElement(elem, self._schema.clark(field.wrapper))
            item_path = f'{path}/{field.wrapper}'
        for index, item in enumerate(value, start=1):
            self._encode_value(parent, field, item, f'{item_path}/{field.xml}[{index}]')

    def _encode_value(self, parent: etree._Element, field: FieldSpec, value: Any, path: str) -> None:
        child = etree.SubElement(parent, self._schema.clark(field.xml))
        if field.type in self._schema.types:
            self._encode_complex(child, value, field.type, path)
        else:
            child.text = self._lexical(value, field.type, path)

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _lexical(self, value: Any, type_name: str, path: str) -> str:
        if type_name == 'qname':
            self._check_prefix(value, path)
        return self._xml_string(format_lexical(value), path)

    @staticmethod
    def _xml_string(text: str, path: str) -> str:
        bad = find_incompatible_char(text)
        if bad is not None:
            raise IncompleteDocumentError(
                f"Value {text!r} contains character {bad!r}, which XML cannot represent",
                path=path
            )
        return text

    def _check_prefix(self, qname: str, path: str) -> None:
        prefix, sep, _ = qname.partition(':')
        if sep and prefix not in self._nsmap:
            raise IncompleteDocumentError(
                f"Namespace prefix '{prefix}' of value '{qname}' is not declared; "
                f"add it to the document namespaces",
                path=path
            )

    @staticmethod
    def _require(field: FieldSpec, path: str, message: str) -> None:
        if field.required:
            raise IncompleteDocumentError(message, path=path)
