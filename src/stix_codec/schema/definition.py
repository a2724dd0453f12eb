"""
Schema artifact model for document bindings.

A DocumentSchema describes an XML vocabulary (namespaces, root element,
complex types with their attributes/child elements, enumerations) in a
form the codec can bind to typed models. It is loaded from YAML and fully
validated on construction, so a codec never starts from a broken binding.
"""

import keyword
import re
from functools import cached_property
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from stix_codec.exceptions import SchemaDefinitionError


XSI_NAMESPACE = 'http://www.w3.org/2001/XMLSchema-instance'
XSI_TYPE = f'{{{XSI_NAMESPACE}}}type'

SCALAR_TYPES = frozenset({
    'string', 'qname', 'integer', 'decimal', 'boolean', 'datetime', 'date'
})

# Field names generated on every model by the codec
RESERVED_FIELDS = frozenset({'xsi_type', 'any_attributes', 'any_elements', 'namespaces'})
TEXT_FIELD = 'value'

# Names visible while resolving generated model annotations
RESERVED_TYPE_NAMES = frozenset({
    'Optional', 'List', 'Dict', 'datetime', 'date', 'Decimal', 'str', 'int', 'bool'
})

_NCNAME = re.compile(r'^[A-Za-z_][\w.\-]*$')

DEFAULT_SCHEMA_PATH = Path(__file__).parent / 'stix-1.2.yaml'


def enum_member_name(value: str) -> str:
    """
    Derive a Python identifier for an enumeration value.

    Example:
        >>> enum_member_name('ipv4-addr')
        'IPV4_ADDR'
        >>> enum_member_name('1.0.1')
        'V1_0_1'
    """
    name = re.sub(r'\W', '_', value).upper()
    if not name or name[0].isdigit():
        name = f'V{name}'
    return name


class FieldSpec(BaseModel):
    """
    Binding of one model field to an XML attribute or child element.

    Attributes:
        name: Python field name on the generated model
        xml: Lexical XML name ('prefix:Local' for elements, 'local' or
             'prefix:local' for attributes)
        type: Scalar type, enumeration name or complex type name
        required: Whether the field must be present
        repeated: Whether the element may occur more than once (elements only)
        wrapper: Lexical name of a container element around repeated items
    """

    name: str
    xml: str
    type: str
    required: bool = False
    repeated: bool = False
    wrapper: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra='forbid')


class TextSpec(BaseModel):
    """Simple (text) content of a complex type, bound to the 'value' field."""

    type: str = 'string'
    required: bool = False

    model_config = ConfigDict(frozen=True, extra='forbid')


class TypeSpec(BaseModel):
    """Complex type definition."""

    extends: Optional[str] = None
    xsi_type: Optional[str] = None
    text: Optional[TextSpec] = None
    attributes: List[FieldSpec] = Field(default_factory=list)
    elements: List[FieldSpec] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra='forbid')


class RootSpec(BaseModel):
    """Document root element and its complex type."""

    element: str
    type: str

    model_config = ConfigDict(frozen=True, extra='forbid')


class DocumentSchema(BaseModel):
    """
    Validated, immutable description of a document vocabulary.

    Consistency rules are checked as soon as the schema is constructed;
    any violation raises SchemaDefinitionError naming the offending type
    or field.

    Example:
        >>> schema = load_schema()
        >>> schema.root.element
        'stix:STIX_Package'
        >>> schema.clark('stix:Indicator')
        '{http://stix.mitre.org/stix-1}Indicator'
    """

    name: str
    version: str
    root: RootSpec
    namespaces: Dict[str, str]
    enums: Dict[str, List[str]] = Field(default_factory=dict)
    types: Dict[str, TypeSpec]

    model_config = ConfigDict(frozen=True, extra='forbid')

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'DocumentSchema':
        """
        Load and validate a schema artifact from a YAML file.

        Args:
            path: Path to the YAML binding file

        Returns:
            Validated DocumentSchema

        Raises:
            FileNotFoundError: If the file does not exist
            SchemaDefinitionError: If the file is not a valid binding
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Schema artifact not found at {path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise SchemaDefinitionError(f"Schema artifact {path} is not valid YAML: {e}") from e

        if not isinstance(data, dict):
            raise SchemaDefinitionError(f"Schema artifact {path} must contain a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise SchemaDefinitionError(f"Schema artifact {path} is malformed: {e}") from e

    # ------------------------------------------------------------------
    # Construction-time validation
    # ------------------------------------------------------------------

    @model_validator(mode='after')
    def check_consistency(self) -> 'DocumentSchema':
        self._check_namespaces()
        self._check_root()
        self._check_enums()
        self._check_type_names()
        self._check_inheritance()
        for type_name in self.types:
            self._check_fields(type_name)
        return self

    def _check_namespaces(self) -> None:
        seen_uris = {}
        for prefix, uri in self.namespaces.items():
            if not _NCNAME.match(prefix):
                raise SchemaDefinitionError(f"Invalid namespace prefix '{prefix}'")
            if not uri:
                raise SchemaDefinitionError(f"Namespace prefix '{prefix}' has an empty URI")
            if uri in seen_uris:
                raise SchemaDefinitionError(
                    f"Namespace '{uri}' is bound to both '{seen_uris[uri]}' and '{prefix}'"
                )
            seen_uris[uri] = prefix
        if self.namespaces.get('xsi', XSI_NAMESPACE) != XSI_NAMESPACE:
            raise SchemaDefinitionError("Prefix 'xsi' is reserved for the XML Schema instance namespace")

    def _check_root(self) -> None:
        self._check_qname(self.root.element, 'root element', prefixed=True)
        if self.root.type not in self.types:
            raise SchemaDefinitionError(
                f"Root type '{self.root.type}' is not a complex type defined in the schema"
            )

    def _check_enums(self) -> None:
        for enum_name, values in self.enums.items():
            if not values:
                raise SchemaDefinitionError(f"Enumeration '{enum_name}' has no values")
            if len(set(values)) != len(values):
                raise SchemaDefinitionError(f"Enumeration '{enum_name}' has duplicate values")
            members = [enum_member_name(str(v)) for v in values]
            if len(set(members)) != len(members):
                raise SchemaDefinitionError(
                    f"Enumeration '{enum_name}' values collide as member names: {members}"
                )

    def _check_type_names(self) -> None:
        for name in list(self.types) + list(self.enums):
            if not name.isidentifier() or keyword.iskeyword(name) or name in RESERVED_TYPE_NAMES:
                raise SchemaDefinitionError(f"'{name}' cannot be used as a type name")
            if name in SCALAR_TYPES:
                raise SchemaDefinitionError(f"Type '{name}' shadows a scalar type")
        clash = set(self.types) & set(self.enums)
        if clash:
            raise SchemaDefinitionError(f"Names defined as both enumeration and type: {sorted(clash)}")

    def _check_inheritance(self) -> None:
        xsi_types = {}
        for type_name, spec in self.types.items():
            if spec.extends is not None and spec.extends not in self.types:
                raise SchemaDefinitionError(
                    f"Type '{type_name}' extends unknown type '{spec.extends}'"
                )
            chain = [type_name]
            current = spec.extends
            while current is not None:
                if current in chain:
                    raise SchemaDefinitionError(
                        f"Inheritance cycle: {' -> '.join(chain + [current])}"
                    )
                chain.append(current)
                current = self.types[current].extends
            if spec.xsi_type is not None:
                self._check_qname(spec.xsi_type, f"xsi_type of '{type_name}'", prefixed=True)
                clark = self.clark(spec.xsi_type)
                if clark in xsi_types:
                    raise SchemaDefinitionError(
                        f"xsi_type '{spec.xsi_type}' is declared by both "
                        f"'{xsi_types[clark]}' and '{type_name}'"
                    )
                xsi_types[clark] = type_name

    def _check_fields(self, type_name: str) -> None:
        names = set()
        attribute_keys = set()
        element_keys = set()
        context = f"type '{type_name}'"

        text = self.text_of(type_name)
        if text is not None:
            if not self.is_simple(text.type):
                raise SchemaDefinitionError(f"Text content of {context} must have a simple type")
            names.add(TEXT_FIELD)

        for field in self.attributes_of(type_name):
            self._check_field_name(field, context, names)
            self._check_qname(field.xml, f"attribute '{field.name}' of {context}", prefixed=False)
            if field.repeated or field.wrapper:
                raise SchemaDefinitionError(f"Attribute '{field.name}' of {context} cannot repeat")
            if not self.is_simple(field.type):
                raise SchemaDefinitionError(
                    f"Attribute '{field.name}' of {context} has non-simple type '{field.type}'"
                )
            key = self.clark(field.xml)
            if key in attribute_keys or key == XSI_TYPE:
                raise SchemaDefinitionError(f"Attribute '{field.xml}' is bound twice in {context}")
            attribute_keys.add(key)

        for field in self.elements_of(type_name):
            self._check_field_name(field, context, names)
            self._check_qname(field.xml, f"element '{field.name}' of {context}", prefixed=True)
            if field.type not in self.types and not self.is_simple(field.type):
                raise SchemaDefinitionError(
                    f"Element '{field.name}' of {context} has unknown type '{field.type}'"
                )
            if field.wrapper is not None:
                self._check_qname(field.wrapper, f"wrapper of '{field.name}' in {context}", prefixed=True)
                if not field.repeated:
                    raise SchemaDefinitionError(
                        f"Element '{field.name}' of {context} has a wrapper but is not repeated"
                    )
            key = self.clark(field.wrapper or field.xml)
            if key in element_keys:
                raise SchemaDefinitionError(
                    f"Element '{field.wrapper or field.xml}' is bound twice in {context}"
                )
            element_keys.add(key)

    def _check_field_name(self, field: FieldSpec, context: str, names: set) -> None:
        name = field.name
        if (
            not name.isidentifier()
            or keyword.iskeyword(name)
            or name.startswith('_')
            or name.startswith('model_')
            or name in RESERVED_FIELDS
            or hasattr(BaseModel, name)
            or name in RESERVED_TYPE_NAMES
            or name in self.types
            or name in self.enums
        ):
            raise SchemaDefinitionError(f"'{name}' cannot be used as a field name in {context}")
        if name in names:
            raise SchemaDefinitionError(f"Field '{name}' is defined twice in {context}")
        names.add(name)

    def _check_qname(self, qname: str, what: str, prefixed: bool) -> None:
        prefix, sep, local = qname.partition(':')
        if not sep:
            if prefixed:
                raise SchemaDefinitionError(f"The {what} '{qname}' must be namespace-qualified")
            local = prefix
        elif prefix not in self.nsmap:
            raise SchemaDefinitionError(f"The {what} '{qname}' uses undeclared prefix '{prefix}'")
        if not _NCNAME.match(local):
            raise SchemaDefinitionError(f"The {what} '{qname}' is not a valid XML name")

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @cached_property
    def nsmap(self) -> Dict[str, str]:
        """Prefix → URI mapping, always including the xsi namespace."""
        nsmap = dict(self.namespaces)
        nsmap.setdefault('xsi', XSI_NAMESPACE)
        return nsmap

    @cached_property
    def prefixes(self) -> Dict[str, str]:
        """URI → prefix mapping (inverse of nsmap)."""
        return {uri: prefix for prefix, uri in self.nsmap.items()}

    def clark(self, qname: str) -> str:
        """Convert 'prefix:Local' to Clark notation '{uri}Local'."""
        prefix, sep, local = qname.partition(':')
        if not sep:
            return qname
        return f'{{{self.nsmap[prefix]}}}{local}'

    def lexical(self, clark: str) -> str:
        """Convert Clark notation back to 'prefix:Local' using schema prefixes."""
        if not clark.startswith('{'):
            return clark
        uri, _, local = clark[1:].partition('}')
        prefix = self.prefixes.get(uri)
        return f'{prefix}:{local}' if prefix else clark

    def is_simple(self, type_name: str) -> bool:
        return type_name in SCALAR_TYPES or type_name in self.enums

    def lineage(self, type_name: str) -> List[str]:
        """Type names from the root of the inheritance chain down to type_name."""
        chain = []
        current = type_name
        while current is not None:
            chain.append(current)
            current = self.types[current].extends
        return chain[::-1]

    def is_subtype(self, type_name: str, base_name: str) -> bool:
        return base_name in self.lineage(type_name)

    def attributes_of(self, type_name: str) -> List[FieldSpec]:
        return [f for name in self.lineage(type_name) for f in self.types[name].attributes]

    def elements_of(self, type_name: str) -> List[FieldSpec]:
        return [f for name in self.lineage(type_name) for f in self.types[name].elements]

    def text_of(self, type_name: str) -> Optional[TextSpec]:
        for name in reversed(self.lineage(type_name)):
            if self.types[name].text is not None:
                return self.types[name].text
        return None

    def type_for_xsi(self, clark: str) -> Optional[str]:
        """Name of the type declaring the given xsi:type (Clark notation), if any."""
        for type_name, spec in self.types.items():
            if spec.xsi_type is not None and self.clark(spec.xsi_type) == clark:
                return type_name
        return None

    def topological_types(self) -> List[str]:
        """All complex type names ordered so that base types come first."""
        ordered: List[str] = []
        for type_name in self.types:
            for name in self.lineage(type_name):
                if name not in ordered:
                    ordered.append(name)
        return ordered


def load_schema(path: Optional[Union[str, Path]] = None) -> DocumentSchema:
    """
    Load a schema artifact, defaulting to the bundled STIX 1.2 binding.

    Example:
        >>> schema = load_schema()
        >>> schema.version
        '1.2'
    """
    return DocumentSchema.from_yaml(path or DEFAULT_SCHEMA_PATH)
