"""Error types raised by the match log core."""


class MatchLogError(Exception):
    """Base class for match log errors."""


class StorageError(MatchLogError):
    """Opening, reading or writing the record store failed."""


class ValidationError(MatchLogError):
    """An import payload parsed as JSON but has the wrong shape."""


class ParseError(MatchLogError):
    """An import payload is not valid JSON."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
