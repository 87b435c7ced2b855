"""Typed failures raised by record store clients."""


class StoreError(Exception):
    """Raised when a record store call fails.

    Covers transport failures, rejected requests, constraint violations
    and required lookups that found nothing.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class RecordNotFoundError(StoreError):
    """A required single-row lookup matched no row."""


class StoreTimeoutError(StoreError):
    """A store round-trip exceeded its deadline."""
