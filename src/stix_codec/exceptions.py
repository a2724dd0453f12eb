"""
Error taxonomy for stix-codec.

All codec failures derive from CodecError and carry enough context to
locate the problem: the element path inside the document and, for
failures tied to input text, the source line and column.
"""

from typing import Optional


class CodecError(Exception):
    """
    Base class for decode/encode failures.

    Attributes:
        path: Element path where the failure occurred
              (e.g., '/stix:STIX_Package/stix:Indicators/stix:Indicator[1]')
        line: Source line number in the input text, if known
        column: Source column number in the input text, if known
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None
    ):
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"at {self.path}")
        if self.line is not None:
            location = f"line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            parts.append(f"({location})")
        return ' '.join(parts)


class MalformedInputError(CodecError):
    """Input text is not well-formed XML."""
    pass


class SchemaMismatchError(CodecError):
    """Well-formed XML that does not conform to the expected schema."""
    pass


class IncompleteDocumentError(CodecError):
    """In-memory document lacks data required to produce valid output."""
    pass


class SchemaDefinitionError(CodecError):
    """Schema artifact is invalid and cannot back a codec."""
    pass


class DocumentFetchError(RuntimeError):
    """Retrieving the raw document text failed."""
    pass
