"""
Lexical forms of XML Schema simple types.

Decoding converts element text and attribute values to Python values
here instead of leaving it to pydantic's lax coercion, which would accept
forms XML Schema does not (Unix timestamps as dateTime, 'yes' as boolean).
Encoding writes the canonical form back.
"""

import enum
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional


_INTEGER = re.compile(r'^[+-]?\d+$')
_DECIMAL = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)$')
_DATETIME = re.compile(
    r'^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})?$'
)
_DATE = re.compile(r'^(\d{4}-\d{2}-\d{2})(Z|[+-]\d{2}:\d{2})?$')

# Characters allowed by the XML 1.0 Char production
_XML_INCOMPATIBLE = re.compile(
    '[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]'
)

BOOLEAN_VALUES = {'true': True, '1': True, 'false': False, '0': False}


def parse_lexical(raw: str, type_name: str) -> Any:
    """
    Convert the lexical form of a non-string scalar type.

    Args:
        raw: Attribute value or element text
        type_name: One of 'integer', 'decimal', 'boolean', 'datetime', 'date'

    Returns:
        int, Decimal, bool, datetime or date

    Raises:
        ValueError: If raw is not a valid lexical form of the type

    Example:
        >>> parse_lexical(' 1 ', 'boolean')
        True
        >>> parse_lexical('2014-05-08T09:00:00.000000Z', 'datetime')
        datetime.datetime(2014, 5, 8, 9, 0, tzinfo=datetime.timezone.utc)
    """
    value = raw.strip()

    if type_name == 'boolean':
        if value not in BOOLEAN_VALUES:
            raise ValueError("expected one of true, false, 1, 0")
        return BOOLEAN_VALUES[value]

    if type_name == 'integer':
        if not _INTEGER.match(value):
            raise ValueError("expected an integer")
        return int(value)

    if type_name == 'decimal':
        if not _DECIMAL.match(value):
            raise ValueError("expected a decimal number")
        return Decimal(value)

    if type_name == 'datetime':
        match = _DATETIME.match(value)
        if not match:
            raise ValueError("expected an xs:dateTime (YYYY-MM-DDThh:mm:ss[.fff][zone])")
        base, fraction, zone = match.groups()
        text = base
        if fraction:
            # datetime keeps microseconds only
            text += '.' + fraction[:6].ljust(6, '0')
        if zone:
            text += '+00:00' if zone == 'Z' else zone
        return datetime.fromisoformat(text)

    if type_name == 'date':
        match = _DATE.match(value)
        if not match:
            raise ValueError("expected an xs:date (YYYY-MM-DD[zone])")
        return date.fromisoformat(match.group(1))

    raise ValueError(f"no lexical conversion for type '{type_name}'")


def format_lexical(value: Any) -> str:
    """Canonical lexical form of a model value."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, 'f')
    return str(value)


def find_incompatible_char(text: str) -> Optional[str]:
    """First character that cannot appear in an XML document, or None."""
    match = _XML_INCOMPATIBLE.search(text)
    return match.group(0) if match else None
