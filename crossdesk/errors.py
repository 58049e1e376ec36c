"""Exceptions raised by the crossover engine."""


__all__ = [
    "CrossdeskError",
    "InvalidInputError",
    "StoreUnavailableError",
]


class CrossdeskError(Exception):
    """Base class for all crossdesk errors."""
    pass


class InvalidInputError(CrossdeskError, ValueError):
    """Raised when a price series or candle batch cannot be computed over."""
    pass


class StoreUnavailableError(CrossdeskError):
    """
    Raised when the watermark store cannot be read or written.

    Callers may retry the whole processing cycle for the symbol; nothing
    from the failed cycle is considered committed.
    """

    retryable = True
