"""
Pytest configuration for unit tests.

Provides sample documents and codecs shared by all unit tests.
"""

import pytest


SAMPLE_PACKAGE_XML = """\
<stix:STIX_Package
    xmlns:stix="http://stix.mitre.org/stix-1"
    xmlns:indicator="http://stix.mitre.org/Indicator-2"
    xmlns:example="http://example.com/"
    version="1.0">
  <stix:Indicators>
    <stix:Indicator id="example:indicator-1">
      <indicator:Title>Known malicious domain</indicator:Title>
    </stix:Indicator>
  </stix:Indicators>
</stix:STIX_Package>
"""

WATCHLIST_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<stix:STIX_Package
    xmlns:cybox="http://cybox.mitre.org/cybox-2"
    xmlns:cyboxCommon="http://cybox.mitre.org/common-2"
    xmlns:cyboxVocabs="http://cybox.mitre.org/default_vocabularies-2"
    xmlns:DomainNameObj="http://cybox.mitre.org/objects#DomainNameObject-1"
    xmlns:example="http://example.com"
    xmlns:indicator="http://stix.mitre.org/Indicator-2"
    xmlns:stixCommon="http://stix.mitre.org/common-1"
    xmlns:stixVocabs="http://stix.mitre.org/default_vocabularies-1"
    xmlns:stix="http://stix.mitre.org/stix-1"
    xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
    xsi:schemaLocation="http://stix.mitre.org/stix-1 http://stix.mitre.org/XMLSchema/core/1.2/stix_core.xsd"
    id="example:Package-2b8bb9f0-a6e4-4a1e-9b07-8f4e1a5d3b8f"
    version="1.2"
    timestamp="2014-05-08T09:00:00.000000Z">
    <stix:STIX_Header>
        <stix:Title>Example watchlist that contains domain information.</stix:Title>
        <stix:Package_Intent xsi:type="stixVocabs:PackageIntentVocab-1.0">Indicators - Watchlist</stix:Package_Intent>
    </stix:STIX_Header>
    <stix:Indicators>
        <stix:Indicator xsi:type="indicator:IndicatorType" id="example:Indicator-2e20c5b2-56fa-46cd-9662-8f199c69d2c9" timestamp="2014-05-08T09:00:00.000000Z">
            <indicator:Type xsi:type="stixVocabs:IndicatorTypeVocab-1.1">Domain Watchlist</indicator:Type>
            <indicator:Description>Sample domain Indicator for this watchlist</indicator:Description>
            <indicator:Observable id="example:Observable-87c9a5bb-d005-4b3e-8081-99f720fad62b">
                <cybox:Object id="example:Object-12c760ba-cd2c-4f5d-a37d-18212eac7928">
                    <cybox:Properties xsi:type="DomainNameObj:DomainNameObjectType" type="FQDN">
                        <DomainNameObj:Value condition="Equals" apply_condition="ANY">malicious1.example.com##comma##malicious2.example.com##comma##malicious3.example.com</DomainNameObj:Value>
                    </cybox:Properties>
                </cybox:Object>
            </indicator:Observable>
        </stix:Indicator>
    </stix:Indicators>
</stix:STIX_Package>
"""


@pytest.fixture(autouse=True)
def reset_settings_singleton(monkeypatch):
    """Give every test a fresh settings singleton so env overrides apply."""
    import stix_codec.config as config
    monkeypatch.setattr(config, '_settings', None)


@pytest.fixture(scope="session")
def schema():
    """Bundled STIX 1.2 schema artifact (session-scoped, it is immutable)."""
    from stix_codec.schema import load_schema
    return load_schema()


@pytest.fixture(scope="session")
def codec(schema):
    """Strict codec for the bundled schema."""
    from stix_codec.codec import DocumentCodec
    return DocumentCodec(schema)


@pytest.fixture(scope="session")
def lax_codec(schema):
    """Codec that preserves unknown content instead of rejecting it."""
    from stix_codec.codec import DocumentCodec
    return DocumentCodec(schema, strict=False, pretty_print=False)


@pytest.fixture
def sample_package_xml():
    return SAMPLE_PACKAGE_XML


@pytest.fixture
def watchlist_xml():
    return WATCHLIST_XML
