"""Exceptions raised by the destination scorer."""


class DestinationScorerError(Exception):
    """Base class for destination scorer errors."""


class InvalidCodeKind(DestinationScorerError, ValueError):
    """Raised when a personality code is not one of the 16 known codes.

    This is a programmer error: the request layer is expected to reject
    unknown codes before a profile reaches the engine.
    """

    def __init__(self, code: object):
        self.code = code
        super().__init__(f"Unknown personality code: {code!r}")


class CatalogLoadError(DestinationScorerError):
    """Raised when a destination catalog cannot be loaded."""
