"""
Typed model generation from a DocumentSchema.

Every complex type in the schema becomes a pydantic model class, every
enumeration a str-valued Enum. Classes are generated once per codec and
never registered anywhere global; two codecs built from different schema
artifacts own disjoint model families.
"""

import copy
import enum
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Type, Union

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, create_model, field_validator

from stix_codec.schema import DocumentSchema, FieldSpec, enum_member_name

logger = logging.getLogger(__name__)


SCALAR_ANNOTATIONS = {
    'string': 'str',
    'qname': 'str',
    'integer': 'int',
    'decimal': 'Decimal',
    'boolean': 'bool',
    'datetime': 'datetime',
    'date': 'date',
}


def canonical_fragment(fragment: Union[str, etree._Element]) -> str:
    """
    Serialize an XML element in the form kept in any_elements.

    Whitespace-only text is removed and the element is written as
    exclusive C14N, so only the namespaces it actually uses are declared.
    The result does not depend on where the element sat in its document
    or on pretty-printing, and re-canonicalizing it is a no-op.

    Raises:
        ValueError: If a string fragment is not a well-formed element
    """
    if isinstance(fragment, str):
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        try:
            element = etree.fromstring(fragment.encode('utf-8'), parser)
        except etree.XMLSyntaxError as e:
            raise ValueError(f"preserved element is not well-formed XML: {e.msg}") from e
    else:
        element = copy.deepcopy(fragment)
        element.tail = None

    for node in element.iter():
        if node.text is not None and not node.text.strip() and isinstance(node.tag, str):
            node.text = None
        if node is not element and node.tail is not None and not node.tail.strip():
            node.tail = None

    return etree.tostring(element, method='c14n', exclusive=True).decode('utf-8')


class DocumentNode(BaseModel):
    """
    Base class of every generated model.

    Attributes:
        xsi_type: xsi:type value that did not select a bound subtype
                  (e.g., a controlled vocabulary), prefix normalized
        any_attributes: Unbound attributes kept in lax mode, keyed by
                        Clark name ('{uri}local')
        any_elements: Unbound child elements kept in lax mode, as
                      serialized XML fragments
    """

    xsi_type: Optional[str] = None
    any_attributes: Dict[str, str] = Field(default_factory=dict)
    any_elements: List[str] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True, extra='forbid')

    @field_validator('any_elements')
    @classmethod
    def canonicalize_elements(cls, v: List[str]) -> List[str]:
        """Store preserved elements canonically so they compare equal after a round trip."""
        return [canonical_fragment(fragment) for fragment in v]


class ModelRegistry:
    """
    Model classes generated for one schema.

    Example:
        >>> registry = ModelRegistry(load_schema())
        >>> Indicator = registry.model('IndicatorType')
        >>> Indicator(title='Known malicious domain').title
        'Known malicious domain'
    """

    def __init__(self, schema: DocumentSchema):
        self._schema = schema
        self._enums: Dict[str, Type[enum.Enum]] = {
            name: enum.Enum(name, [(enum_member_name(v), v) for v in values], type=str)
            for name, values in schema.enums.items()
        }
        self._models: Dict[str, Type[DocumentNode]] = {}

        # Annotations are written as strings and resolved against this
        # namespace once every class exists, so types may refer to each
        # other in any order.
        namespace = {
            'Optional': Optional,
            'List': List,
            'Dict': Dict,
            'datetime': datetime,
            'date': date,
            'Decimal': Decimal,
            **self._enums,
        }

        ordered = schema.topological_types()
        for type_name in ordered:
            model = self._create_model(type_name)
            namespace[type_name] = model
            self._models[type_name] = model

        for type_name in ordered:
            self._models[type_name].model_rebuild(force=True, _types_namespace=namespace)

        self._type_names = {model: name for name, model in self._models.items()}
        logger.debug(
            f"Generated {len(self._models)} models and {len(self._enums)} enums "
            f"for schema {schema.name} {schema.version}"
        )

    def _create_model(self, type_name: str) -> Type[DocumentNode]:
        spec = self._schema.types[type_name]
        base = self._models[spec.extends] if spec.extends else DocumentNode

        fields: Dict[str, Tuple[str, object]] = {}
        if spec.text is not None:
            fields['value'] = (f'Optional[{self._annotation(spec.text.type)}]', None)
        for field in spec.attributes + spec.elements:
            fields[field.name] = self._field_definition(field)
        if type_name == self._schema.root.type:
            fields['namespaces'] = ('Dict[str, str]', Field(default_factory=dict))

        return create_model(type_name, __base__=base, __module__=__name__, **fields)

    def _field_definition(self, field: FieldSpec) -> Tuple[str, object]:
        annotation = self._annotation(field.type)
        if field.repeated:
            return (f'List[{annotation}]', Field(default_factory=list))
        return (f'Optional[{annotation}]', None)

    def _annotation(self, type_name: str) -> str:
        return SCALAR_ANNOTATIONS.get(type_name, type_name)

    def model(self, type_name: str) -> Type[DocumentNode]:
        """
        Get the generated model class for a complex type.

        Raises:
            KeyError: If the schema does not define the type
        """
        if type_name not in self._models:
            raise KeyError(f"Unknown type: {type_name}")
        return self._models[type_name]

    def enum(self, name: str) -> Type[enum.Enum]:
        """
        Get the generated Enum class for a schema enumeration.

        Raises:
            KeyError: If the schema does not define the enumeration
        """
        if name not in self._enums:
            raise KeyError(f"Unknown enumeration: {name}")
        return self._enums[name]

    def type_name_of(self, model_class: type) -> Optional[str]:
        """Schema type name of a generated model class, or None for foreign classes."""
        return self._type_names.get(model_class)

    @property
    def models(self) -> Dict[str, Type[DocumentNode]]:
        return dict(self._models)
