"""
Schema artifacts describing document vocabularies.

The bundled artifact (stix-1.2.yaml) binds the STIX 1.2 package format.
Other versions are supported by loading a different artifact.
"""

from .definition import (
    DEFAULT_SCHEMA_PATH,
    SCALAR_TYPES,
    XSI_NAMESPACE,
    XSI_TYPE,
    DocumentSchema,
    FieldSpec,
    RootSpec,
    TextSpec,
    TypeSpec,
    enum_member_name,
    load_schema,
)

__all__ = [
    'DEFAULT_SCHEMA_PATH',
    'SCALAR_TYPES',
    'XSI_NAMESPACE',
    'XSI_TYPE',
    'DocumentSchema',
    'FieldSpec',
    'RootSpec',
    'TextSpec',
    'TypeSpec',
    'enum_member_name',
    'load_schema',
]
