"""
Configuration management using Pydantic Settings.

Settings are read from environment variables (prefix STIX_CODEC_) and an
optional .env file. They select the schema artifact and the codec policy
for DocumentCodec.from_settings(), and drive the fetch service and the
round-trip script. The codec constructor itself never reads settings.
"""

import logging
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stix_codec.schema import DEFAULT_SCHEMA_PATH


DEFAULT_SOURCE_URL = (
    "https://raw.githubusercontent.com/STIXProject/schemas/master/samples/"
    "STIX_Domain_Watchlist.xml"
)


class CodecSettings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment Variables (from .env):
        STIX_CODEC_SCHEMA_PATH: Schema artifact to bind (default: bundled STIX 1.2)
        STIX_CODEC_STRICT: Reject unknown XML content (default: true)
        STIX_CODEC_PRETTY_PRINT: Indent encoded output (default: true)
        STIX_CODEC_SOURCE_URL: Document fetched by the round-trip script
        STIX_CODEC_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 30)
        STIX_CODEC_LOG_LEVEL: Logging level for scripts (default: INFO)

    Example:
        >>> settings = get_settings()
        >>> settings.strict
        True
        >>> settings.schema_path.name
        'stix-1.2.yaml'
    """

    schema_path: Path = Field(
        default=DEFAULT_SCHEMA_PATH,
        description="Path to the YAML schema artifact"
    )

    strict: bool = Field(
        default=True,
        description="Reject unbound elements/attributes instead of preserving them"
    )

    pretty_print: bool = Field(
        default=True,
        description="Indent encoded XML output"
    )

    source_url: str = Field(
        default=DEFAULT_SOURCE_URL,
        description="URL of the document fetched by the round-trip script"
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for fetching documents"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level name"
    )

    model_config = SettingsConfigDict(
        env_prefix='STIX_CODEC_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize to an upper-case level name known to logging."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: '{v}'")
        return level


# Singleton pattern - loaded once, cached forever
_settings: Optional[CodecSettings] = None


def get_settings() -> CodecSettings:
    """
    Get global settings instance (lazy-loaded singleton).

    Returns:
        Singleton CodecSettings instance

    Example:
        >>> settings = get_settings()
        >>> settings2 = get_settings()
        >>> settings is settings2  # Same instance
        True
    """
    global _settings
    if _settings is None:
        _settings = CodecSettings()
    return _settings
