"""
Tests for the schema artifact: bundled STIX binding and consistency checks.
"""

import pytest

from stix_codec.exceptions import SchemaDefinitionError
from stix_codec.schema import DocumentSchema, enum_member_name, load_schema


def minimal_schema(**overrides):
    """Smallest valid binding: a root with one attribute and a repeated element."""
    data = {
        'name': 'test',
        'version': '1',
        'root': {'element': 't:Doc', 'type': 'DocType'},
        'namespaces': {'t': 'urn:test'},
        'types': {
            'DocType': {
                'attributes': [
                    {'name': 'version', 'xml': 'version', 'type': 'string', 'required': True},
                ],
                'elements': [
                    {'name': 'items', 'xml': 't:Item', 'type': 'string', 'repeated': True},
                ],
            },
        },
    }
    data.update(overrides)
    return data


class TestBundledSchema:
    """The shipped STIX 1.2 binding."""

    def test_loads_and_describes_stix_package(self, schema):
        """Root element, namespaces and core types are bound."""
        assert schema.name == 'stix'
        assert schema.version == '1.2'
        assert schema.root.element == 'stix:STIX_Package'
        assert schema.root.type == 'STIXType'
        assert schema.namespaces['indicator'] == 'http://stix.mitre.org/Indicator-2'
        assert 'IndicatorType' in schema.types
        assert 'ConditionType' in schema.enums

    def test_clark_and_lexical_names(self, schema):
        clark = schema.clark('stix:Indicator')
        assert clark == '{http://stix.mitre.org/stix-1}Indicator'
        assert schema.lexical(clark) == 'stix:Indicator'
        assert schema.lexical('{urn:unknown}Thing') == '{urn:unknown}Thing'
        assert schema.clark('version') == 'version'

    def test_xsi_namespace_always_available(self, schema):
        assert schema.nsmap['xsi'] == 'http://www.w3.org/2001/XMLSchema-instance'

    def test_inheritance_lookups(self, schema):
        """Subtypes inherit attributes and are found by their xsi:type."""
        assert schema.lineage('DomainNameObjectType') == ['ObjectPropertiesType', 'DomainNameObjectType']
        assert schema.is_subtype('DomainNameObjectType', 'ObjectPropertiesType')
        assert not schema.is_subtype('ObjectPropertiesType', 'DomainNameObjectType')

        attribute_names = [f.name for f in schema.attributes_of('DomainNameObjectType')]
        assert attribute_names == ['object_reference', 'type']

        clark = '{http://cybox.mitre.org/objects#DomainNameObject-1}DomainNameObjectType'
        assert schema.type_for_xsi(clark) == 'DomainNameObjectType'
        assert schema.type_for_xsi('{urn:unknown}Nothing') is None

    def test_topological_order_puts_bases_first(self, schema):
        ordered = schema.topological_types()
        assert set(ordered) == set(schema.types)
        assert ordered.index('ObjectPropertiesType') < ordered.index('AddressObjectType')

    def test_default_path_is_bundled_artifact(self):
        from stix_codec.schema import DEFAULT_SCHEMA_PATH

        assert DEFAULT_SCHEMA_PATH.exists()
        assert load_schema(DEFAULT_SCHEMA_PATH) == load_schema()


class TestEnumMemberName:

    @pytest.mark.parametrize("value,expected", [
        ('Equals', 'EQUALS'),
        ('ipv4-addr', 'IPV4_ADDR'),
        ('1.0.1', 'V1_0_1'),
        ('General URN', 'GENERAL_URN'),
    ])
    def test_member_names(self, value, expected):
        assert enum_member_name(value) == expected


class TestSchemaConsistency:
    """A broken binding is rejected when the schema is constructed."""

    def test_minimal_schema_is_valid(self):
        schema = DocumentSchema.model_validate(minimal_schema())
        assert schema.root.type == 'DocType'

    def test_root_with_undeclared_prefix(self):
        data = minimal_schema(root={'element': 'x:Doc', 'type': 'DocType'})
        with pytest.raises(SchemaDefinitionError, match="undeclared prefix 'x'"):
            DocumentSchema.model_validate(data)

    def test_root_type_must_exist(self):
        data = minimal_schema(root={'element': 't:Doc', 'type': 'MissingType'})
        with pytest.raises(SchemaDefinitionError, match="MissingType"):
            DocumentSchema.model_validate(data)

    def test_unknown_element_type(self):
        data = minimal_schema()
        data['types']['DocType']['elements'][0]['type'] = 'NoSuchType'
        with pytest.raises(SchemaDefinitionError, match="unknown type 'NoSuchType'"):
            DocumentSchema.model_validate(data)

    def test_reserved_field_name(self):
        data = minimal_schema()
        data['types']['DocType']['attributes'].append(
            {'name': 'xsi_type', 'xml': 'kind', 'type': 'string'}
        )
        with pytest.raises(SchemaDefinitionError, match="cannot be used as a field name"):
            DocumentSchema.model_validate(data)

    def test_duplicate_field_name(self):
        data = minimal_schema()
        data['types']['DocType']['elements'].append(
            {'name': 'version', 'xml': 't:Version', 'type': 'string'}
        )
        with pytest.raises(SchemaDefinitionError, match="defined twice"):
            DocumentSchema.model_validate(data)

    def test_wrapper_requires_repeated(self):
        data = minimal_schema()
        data['types']['DocType']['elements'][0].update(repeated=False, wrapper='t:Items')
        with pytest.raises(SchemaDefinitionError, match="not repeated"):
            DocumentSchema.model_validate(data)

    def test_attribute_must_be_simple(self):
        data = minimal_schema()
        data['types']['DocType']['attributes'].append(
            {'name': 'nested', 'xml': 'nested', 'type': 'DocType'}
        )
        with pytest.raises(SchemaDefinitionError, match="non-simple type"):
            DocumentSchema.model_validate(data)

    def test_inheritance_cycle(self):
        data = minimal_schema()
        data['types']['AType'] = {'extends': 'BType'}
        data['types']['BType'] = {'extends': 'AType'}
        with pytest.raises(SchemaDefinitionError, match="Inheritance cycle"):
            DocumentSchema.model_validate(data)

    def test_duplicate_xsi_type(self):
        data = minimal_schema()
        data['types']['AType'] = {'xsi_type': 't:Same'}
        data['types']['BType'] = {'xsi_type': 't:Same'}
        with pytest.raises(SchemaDefinitionError, match="declared by both"):
            DocumentSchema.model_validate(data)

    def test_empty_enumeration(self):
        data = minimal_schema(enums={'Color': []})
        with pytest.raises(SchemaDefinitionError, match="has no values"):
            DocumentSchema.model_validate(data)

    def test_xsi_prefix_is_reserved(self):
        data = minimal_schema(namespaces={'t': 'urn:test', 'xsi': 'urn:not-xsi'})
        with pytest.raises(SchemaDefinitionError, match="reserved"):
            DocumentSchema.model_validate(data)


class TestSchemaLoading:
    """Loading schema artifacts from disk."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schema(tmp_path / 'missing.yaml')

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text("name: [unclosed\n", encoding='utf-8')

        with pytest.raises(SchemaDefinitionError, match="not valid YAML"):
            load_schema(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / 'list.yaml'
        path.write_text("- one\n- two\n", encoding='utf-8')

        with pytest.raises(SchemaDefinitionError, match="must contain a mapping"):
            load_schema(path)

    def test_missing_section(self, tmp_path):
        path = tmp_path / 'partial.yaml'
        path.write_text("name: test\nversion: '1'\n", encoding='utf-8')

        with pytest.raises(SchemaDefinitionError, match="malformed"):
            load_schema(path)

    def test_custom_artifact(self, tmp_path):
        import yaml

        path = tmp_path / 'custom.yaml'
        path.write_text(yaml.safe_dump(minimal_schema()), encoding='utf-8')

        schema = load_schema(path)
        assert schema.name == 'test'
        assert [f.name for f in schema.elements_of('DocType')] == ['items']
