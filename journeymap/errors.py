"""Error types raised by the journey core."""


class JourneyError(Exception):
    """Base class for all journeymap errors."""


class ValidationError(JourneyError):
    """A mutation was rejected before touching any state."""


class ParseError(JourneyError):
    """A persisted document could not be read."""


class ResourceLimitError(JourneyError):
    """An uploaded media item exceeds the configured size limit."""

    def __init__(self, name: str, size: int, limit: int):
        super().__init__(f"'{name}' is {size} bytes, limit is {limit} bytes")
        self.name = name
        self.size = size
        self.limit = limit


class IntegrityError(JourneyError):
    """The parent relation is corrupted (cycle or dangling reference)."""
