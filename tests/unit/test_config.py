"""
Tests for CodecSettings and the settings singleton.
"""

import pytest
from pydantic import ValidationError

from stix_codec.config import DEFAULT_SOURCE_URL, CodecSettings, get_settings
from stix_codec.schema import DEFAULT_SCHEMA_PATH


class TestCodecSettings:

    def test_defaults(self, monkeypatch):
        for name in ('SCHEMA_PATH', 'STRICT', 'PRETTY_PRINT', 'SOURCE_URL',
                     'REQUEST_TIMEOUT', 'LOG_LEVEL'):
            monkeypatch.delenv(f'STIX_CODEC_{name}', raising=False)

        settings = CodecSettings(_env_file=None)

        assert settings.schema_path == DEFAULT_SCHEMA_PATH
        assert settings.strict is True
        assert settings.pretty_print is True
        assert settings.source_url == DEFAULT_SOURCE_URL
        assert settings.request_timeout == 30.0
        assert settings.log_level == 'INFO'

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv('STIX_CODEC_SCHEMA_PATH', str(tmp_path / 'custom.yaml'))
        monkeypatch.setenv('STIX_CODEC_REQUEST_TIMEOUT', '5')
        monkeypatch.setenv('STIX_CODEC_SOURCE_URL', 'http://localhost/package.xml')

        settings = CodecSettings(_env_file=None)

        assert settings.schema_path == tmp_path / 'custom.yaml'
        assert settings.request_timeout == 5.0
        assert settings.source_url == 'http://localhost/package.xml'

    def test_log_level_normalized(self):
        assert CodecSettings(log_level='debug').log_level == 'DEBUG'

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            CodecSettings(log_level='chatty')

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            CodecSettings(request_timeout=0)


class TestGetSettings:

    def test_singleton(self):
        assert get_settings() is get_settings()

    def test_reads_environment_once(self, monkeypatch):
        monkeypatch.setenv('STIX_CODEC_PRETTY_PRINT', 'false')
        settings = get_settings()

        monkeypatch.setenv('STIX_CODEC_PRETTY_PRINT', 'true')
        assert get_settings().pretty_print is False
        assert get_settings() is settings
