"""Exceptions raised by feed operations."""


class FeedError(Exception):
    """Base class for errors raised while handling a feed document."""


class StructuralParseError(FeedError):
    """Raised when a feed document is malformed or incomplete."""


class ValidationError(FeedError, ValueError):
    """Raised when caller-supplied arguments violate a precondition.

    Args:
        message: Human-readable description of the problem
        field: Name of the offending argument, if there is one
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class LinkSyntaxError(ValidationError):
    """Raised when a link annotation like ``URL[rel=self]`` cannot be parsed."""

    def __init__(self, message: str, text: str):
        super().__init__(f"{message}: {text!r}", field="link")
        self.text = text


class DuplicateEntryError(ValidationError):
    """Raised when adding an entry whose id is already in the feed."""

    def __init__(self, entry_id: str):
        super().__init__(f"an entry with id {entry_id!r} already exists", field="id")
        self.entry_id = entry_id
