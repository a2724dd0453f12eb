"""
XML text → typed document.

The decoder walks an lxml tree top-down, looks each attribute and child
element up in the schema binding of the current type, and builds the
generated models bottom-up. It is single-use: document-scoped state
(namespaces referenced by QName values) lives on the instance.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple, Union

from lxml import etree
from pydantic import ValidationError

from stix_codec.codec.lexical import parse_lexical
from stix_codec.codec.models import DocumentNode, ModelRegistry, canonical_fragment
from stix_codec.exceptions import MalformedInputError, SchemaMismatchError
from stix_codec.schema import XSI_TYPE, DocumentSchema, FieldSpec

logger = logging.getLogger(__name__)


STRING_TYPES = ('string', 'qname')


def describe_validation_error(error: ValidationError) -> str:
    """Condense a pydantic ValidationError into 'field: message' text."""
    details = []
    for item in error.errors():
        loc = '.'.join(str(part) for part in item['loc']) or '<value>'
        details.append(f"{loc}: {item['msg']}")
    return '; '.join(details)


class DocumentDecoder:
    """
    Single-use decoder for one document.

    Args:
        schema: Schema the document must conform to
        registry: Model classes generated for the schema
        strict: Reject unbound elements/attributes (True) or keep them
                in any_elements/any_attributes (False)
    """

    def __init__(self, schema: DocumentSchema, registry: ModelRegistry, strict: bool = True):
        self._schema = schema
        self._registry = registry
        self._strict = strict
        self._document_namespaces: Dict[str, str] = {}

    def decode(self, data: Union[str, bytes]) -> DocumentNode:
        root = self._parse(data)

        expected = self._schema.clark(self._schema.root.element)
        if root.tag != expected:
            raise SchemaMismatchError(
                f"Expected root element '{self._schema.root.element}' ({expected}), "
                f"found '{root.tag}'",
                path=f'/{self._schema.lexical(root.tag)}',
                line=root.sourceline
            )

        return self._decode_complex(
            root, self._schema.root.type, f'/{self._schema.root.element}', is_root=True
        )

    def _parse(self, data: Union[str, bytes]) -> etree._Element:
        if isinstance(data, str):
            # lxml refuses str input carrying an encoding declaration
            data = data.encode('utf-8')
        if not isinstance(data, bytes):
            raise TypeError(f"Expected XML text as str or bytes, got {type(data).__name__}")

        parser = etree.XMLParser(
            recover=False,
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
        )
        try:
            return etree.fromstring(data, parser)
        except etree.XMLSyntaxError as e:
            line, column = e.position if e.position else (None, None)
            raise MalformedInputError(
                f"Input is not well-formed XML: {e.msg}", line=line, column=column
            ) from e
        except ValueError as e:
            raise MalformedInputError(f"Input is not well-formed XML: {e}") from e

    # ------------------------------------------------------------------
    # Complex content
    # ------------------------------------------------------------------

    def _decode_complex(
        self,
        elem: etree._Element,
        slot_type: str,
        path: str,
        is_root: bool = False
    ) -> DocumentNode:
        type_name, xsi_type = self._resolve_type(elem, slot_type, path)

        values: Dict[str, Any] = {}
        if xsi_type is not None:
            values['xsi_type'] = xsi_type
        self._decode_attributes(elem, type_name, path, values)
        self._decode_text(elem, type_name, path, values)
        self._decode_children(elem, type_name, path, values)
        if is_root and self._document_namespaces:
            values['namespaces'] = dict(self._document_namespaces)

        model = self._registry.model(type_name)
        try:
            return model.model_validate(values)
        except ValidationError as e:
            raise SchemaMismatchError(
                f"Invalid content for {type_name}: {describe_validation_error(e)}",
                path=path,
                line=elem.sourceline
            ) from e

    def _resolve_type(
        self,
        elem: etree._Element,
        slot_type: str,
        path: str
    ) -> Tuple[str, Optional[str]]:
        """
        Pick the model type for an element from its xsi:type.

        Returns:
            (type_name, xsi_type) where xsi_type is the normalized value to
            keep on the model, or None when the type itself records it
        """
        raw = elem.get(XSI_TYPE)
        if raw is None:
            return slot_type, None

        uri, local = self._split_qname(raw, elem, path)
        bound_type = self._schema.type_for_xsi(f'{{{uri}}}{local}' if uri else local)
        if bound_type is None:
            return slot_type, self._normalize_qname(raw, elem, path)

        if not self._schema.is_subtype(bound_type, slot_type):
            raise SchemaMismatchError(
                f"xsi:type '{raw}' binds to {bound_type}, which cannot stand in for {slot_type}",
                path=path,
                line=elem.sourceline
            )
        return bound_type, None

    def _decode_attributes(
        self,
        elem: etree._Element,
        type_name: str,
        path: str,
        values: Dict[str, Any]
    ) -> None:
        bound = {self._schema.clark(f.xml): f for f in self._schema.attributes_of(type_name)}

        for key, raw in elem.attrib.items():
            if key == XSI_TYPE:
                continue
            field = bound.get(key)
            if field is None:
                self._unexpected(f"attribute '{self._schema.lexical(key)}'", path, elem)
                logger.warning(f"Preserving unexpected attribute '{key}' at {path}")
                values.setdefault('any_attributes', {})[key] = raw
                continue
            values[field.name] = self._scalar(raw, field.type, elem, path, f"attribute '{field.xml}'")

        for field in bound.values():
            if field.required and field.name not in values:
                raise SchemaMismatchError(
                    f"Missing required attribute '{field.xml}'",
                    path=path,
                    line=elem.sourceline
                )

    def _decode_text(
        self,
        elem: etree._Element,
        type_name: str,
        path: str,
        values: Dict[str, Any]
    ) -> None:
        text_spec = self._schema.text_of(type_name)
        if text_spec is None:
            if elem.text and elem.text.strip():
                self._unexpected("text content", path, elem)
                logger.warning(f"Dropping text content at {path}: {type_name} has no simple content")
            return

        value = self._leaf_value(elem.text, text_spec.type, elem, path, "text content")
        if value is None and text_spec.required:
            raise SchemaMismatchError("Missing required text content", path=path, line=elem.sourceline)
        if value is not None:
            values['value'] = value

    def _decode_children(
        self,
        elem: etree._Element,
        type_name: str,
        path: str,
        values: Dict[str, Any]
    ) -> None:
        bound = {
            self._schema.clark(f.wrapper or f.xml): f
            for f in self._schema.elements_of(type_name)
        }

        for child in elem:
            if not isinstance(child.tag, str):
                continue
            child_name = self._schema.lexical(child.tag)
            child_path = f'{path}/{child_name}'
            field = bound.get(child.tag)

            if field is None:
                self._unexpected(f"element '{child_name}'", child_path, child)
                logger.warning(f"Preserving unexpected element at {child_path}")
                values.setdefault('any_elements', []).append(
                    canonical_fragment(child)
                )
            elif field.wrapper is not None:
                self._check_single(field, values, child_path, child)
                values[field.name] = self._decode_wrapped(child, field, child_path)
            elif field.repeated:
                items = values.setdefault(field.name, [])
                items.append(self._decode_value(child, field, f'{child_path}[{len(items) + 1}]'))
            else:
                self._check_single(field, values, child_path, child)
                values[field.name] = self._decode_value(child, field, child_path)

        for field in bound.values():
            if field.required and not self._present(values.get(field.name), field):
                raise SchemaMismatchError(
                    f"Missing required element '{field.xml}'",
                    path=path,
                    line=elem.sourceline
                )

    def _decode_wrapped(
        self,
        wrapper: etree._Element,
        field: FieldSpec,
        path: str
    ) -> List[Any]:
        for key in wrapper.attrib:
            self._unexpected(f"attribute '{self._schema.lexical(key)}'", path, wrapper)
            logger.warning(f"Dropping attribute '{key}' on list wrapper {path}")

        item_tag = self._schema.clark(field.xml)
        items = []
        for child in wrapper:
            if not isinstance(child.tag, str):
                continue
            if child.tag != item_tag:
                child_path = f'{path}/{self._schema.lexical(child.tag)}'
                self._unexpected(f"element '{self._schema.lexical(child.tag)}'", child_path, child)
                logger.warning(f"Dropping element {child_path}: only {field.xml} items are allowed")
                continue
            items.append(self._decode_value(child, field, f'{path}/{field.xml}[{len(items) + 1}]'))
        return items

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def _decode_value(self, elem: etree._Element, field: FieldSpec, path: str) -> Any:
        if field.type in self._schema.types:
            return self._decode_complex(elem, field.type, path)

        for key in elem.attrib:
            self._unexpected(f"attribute '{self._schema.lexical(key)}'", path, elem)
            logger.warning(f"Dropping attribute '{key}' on simple element {path}")
        for child in elem:
            if isinstance(child.tag, str):
                self._unexpected(f"element '{self._schema.lexical(child.tag)}'", path, child)
                logger.warning(f"Dropping child element of simple element {path}")

        return self._leaf_value(elem.text, field.type, elem, path, f"element '{field.xml}'")

    def _leaf_value(
        self,
        text: Optional[str],
        type_name: str,
        elem: etree._Element,
        path: str,
        what: str
    ) -> Any:
        # Empty and absent text are the same value: '' for strings, unset otherwise
        if type_name in STRING_TYPES:
            return self._scalar(text or '', type_name, elem, path, what)
        if text is None or not text.strip():
            return None
        return self._scalar(text, type_name, elem, path, what)

    def _scalar(
        self,
        raw: str,
        type_name: str,
        elem: etree._Element,
        path: str,
        what: str
    ) -> Any:
        """
        Convert a lexical value to the Python value stored on the model.

        Enumeration values are passed through as text; pydantic accepts
        only exact members.
        """
        if type_name == 'qname':
            return self._normalize_qname(raw, elem, path)
        if type_name == 'string':
            return raw
        if type_name in self._schema.enums:
            return raw.strip()
        try:
            return parse_lexical(raw, type_name)
        except ValueError as e:
            raise SchemaMismatchError(
                f"Invalid {type_name} value {raw!r} in {what}: {e}",
                path=path,
                line=elem.sourceline
            ) from e

    # ------------------------------------------------------------------
    # QName values
    # ------------------------------------------------------------------

    def _split_qname(self, raw: str, elem: etree._Element, path: str) -> Tuple[Optional[str], str]:
        prefix, sep, local = raw.strip().partition(':')
        if not sep:
            return elem.nsmap.get(None), prefix
        uri = elem.nsmap.get(prefix)
        if uri is None:
            raise SchemaMismatchError(
                f"Namespace prefix '{prefix}' used in value '{raw}' is not declared",
                path=path,
                line=elem.sourceline
            )
        return uri, local

    def _normalize_qname(self, raw: str, elem: etree._Element, path: str) -> str:
        """
        Rewrite a QName value so its prefix is valid in encoder output.

        Prefixes bound to schema namespaces become the schema's prefix;
        other namespaces are recorded as document namespaces. An unprefixed
        value in the scope of a default namespace gets an explicit prefix,
        since encoder output never declares a default namespace.
        """
        value = raw.strip()
        prefix, sep, _ = value.partition(':')
        if not sep:
            if elem.nsmap.get(None) is None:
                return value
            prefix = 'ns'

        uri, local = self._split_qname(value, elem, path)
        schema_prefix = self._schema.prefixes.get(uri)
        if schema_prefix is not None:
            return f'{schema_prefix}:{local}'
        return f'{self._document_prefix(prefix, uri)}:{local}'

    def _document_prefix(self, prefix: str, uri: str) -> str:
        for known_prefix, known_uri in self._document_namespaces.items():
            if known_uri == uri:
                return known_prefix

        candidate = prefix
        counter = 0
        while candidate in self._schema.nsmap or candidate in self._document_namespaces:
            candidate = f'ns{counter}'
            counter += 1
        self._document_namespaces[candidate] = uri
        return candidate

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _unexpected(self, what: str, path: str, elem: etree._Element) -> None:
        """Reject unbound content in strict mode; the caller decides what lax mode keeps."""
        if self._strict:
            raise SchemaMismatchError(f"Unexpected {what}", path=path, line=elem.sourceline)

    def _check_single(
        self,
        field: FieldSpec,
        values: Dict[str, Any],
        path: str,
        elem: etree._Element
    ) -> None:
        if field.name in values:
            raise SchemaMismatchError(
                f"Element '{field.wrapper or field.xml}' may occur only once",
                path=path,
                line=elem.sourceline
            )

    @staticmethod
    def _present(value: Any, field: FieldSpec) -> bool:
        if field.repeated:
            return bool(value)
        return value is not None
