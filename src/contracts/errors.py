"""Error taxonomy shared by the codec, validation, and threshold modules."""

from __future__ import annotations


class AlertToolError(Exception):
    """Base class for every error raised by this package."""


class MalformedBlockError(AlertToolError):
    """An alert block could not be parsed.

    Raised for a block (or the section itself) that is opened but never
    closed, and for values that are not a quoted string, number, boolean,
    map, or list.  The parse call fails as a whole; nothing is partially
    returned.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class SectionNotFoundError(AlertToolError):
    """Rewrite requested but the document has no alert section."""


class ConfigurationError(AlertToolError):
    """A required configuration parameter is missing or invalid."""


class ValidationError(AlertToolError):
    """One field-level violation found while validating an alert.

    Validation never raises these; it returns all of them together.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return (self.field, self.message) == (other.field, other.message)

    def __hash__(self) -> int:
        return hash((self.field, self.message))

    def __repr__(self) -> str:
        return f"ValidationError({self.field!r}, {self.message!r})"
