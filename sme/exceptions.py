"""SME codec exceptions.

This module defines the exception hierarchy for the SME record codec.
All exceptions inherit from :class:`SmeException`.

Example:
    Handling decode failures::

        from sme.exceptions import (
            SerializationException,
            TruncatedInputError,
        )

        try:
            record = Person.from_bytes(payload)
        except TruncatedInputError:
            print("Payload was cut short")
        except SerializationException as e:
            print(f"Could not decode: {e}")
"""

from typing import Optional


class SmeException(Exception):
    """Base class for all SME exceptions.

    Args:
        message: The error message describing the exception.
        cause: The underlying exception that caused this error, if any.

    Attributes:
        cause: The underlying cause of this exception, if any.
    """

    def __init__(self, message: str = "", cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class IllegalArgumentException(SmeException):
    """Raised when an illegal or inappropriate argument is passed.

    Example:
        - Using a record type as a map key
        - Building a codec for an unknown type name
    """
    pass


class ConfigurationException(SmeException):
    """Raised when the codec configuration is invalid.

    Example:
        - Unknown byte order name
        - Unknown string encoding
        - Unreadable configuration file
    """
    pass


class SchemaException(SmeException):
    """Raised when a ``.sme`` schema cannot be parsed or resolved.

    Args:
        message: Description of the problem.
        source: Name of the schema source (usually a file path).
        line: 1-based line number, or 0 when not tied to a line.
        column: 0-based column within the line.

    Example:
        >>> try:
        ...     parse_schema("package demo", source="demo.sme")
        ... except SchemaException as e:
        ...     print(e.line, e.column)
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        line: int = 0,
        column: int = 0,
        cause: Exception = None,
    ):
        self.description = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(self._format(), cause)

    def _format(self) -> str:
        if self.line <= 0:
            if self.source:
                return f"{self.source}: {self.description}"
            return self.description
        location = f"{self.line}:{self.column}"
        if self.source:
            location = f"{self.source}:{location}"
        return f"syntax error at {location} - {self.description}"


class SerializationException(SmeException):
    """Raised when a record cannot be encoded or decoded."""
    pass


class TruncatedInputError(SerializationException):
    """Raised when the source runs out of bytes mid-read.

    Args:
        message: The error message.
        needed: Number of bytes the failed read asked for.
        available: Number of bytes that were left, if known.

    Example:
        >>> try:
        ...     Person.from_bytes(payload[:-1])
        ... except TruncatedInputError as e:
        ...     print(f"needed {e.needed}, had {e.available}")
    """

    def __init__(self, message: str, needed: int = 0, available: Optional[int] = None):
        super().__init__(message)
        self.needed = needed
        self.available = available


class MalformedInputError(SerializationException):
    """Raised in strict mode when a declared length cannot fit the input.

    Also raised in strict mode when bytes remain after a whole record
    has been decoded.
    """
    pass


class InvalidValueError(SerializationException):
    """Raised when a field value does not fit its wire kind.

    Example:
        - A negative number in a ``uint32`` field
        - A two-character string in a ``char`` field
    """
    pass
