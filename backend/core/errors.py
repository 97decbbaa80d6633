"""
Error kinds raised by the analytics core and the result cache.

  - ProductValidationError: malformed product record, rejected at ingestion
  - ComputationError: reserved; validated input never produces one
  - StorageError: cache backend unreachable or write rejected
"""


class ShelfSignalError(Exception):
    """Base class for all ShelfSignal errors."""


class ProductValidationError(ShelfSignalError, ValueError):
    """A product record failed validation before any computation ran."""

    def __init__(self, field: str, message: str, sku: str | None = None):
        self.field = field
        self.sku = sku
        prefix = f"[{sku}] " if sku else ""
        super().__init__(f"{prefix}{field}: {message}")


class ComputationError(ShelfSignalError):
    """Raised if a metric cannot be derived from an already validated record."""


class StorageError(ShelfSignalError):
    """The cache backend could not complete an operation."""

    def __init__(self, operation: str, key: str | None = None, cause: Exception | None = None):
        self.operation = operation
        self.key = key
        self.cause = cause
        detail = f" ({cause})" if cause else ""
        target = f" for key '{key}'" if key else ""
        super().__init__(f"Cache {operation} failed{target}{detail}")
