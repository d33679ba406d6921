class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class StoreError(ServiceError):
    """Raised when the lead store cannot complete a request."""


class StoreReadError(StoreError):
    """Raised when a query against the store fails."""


class StoreWriteError(StoreError):
    """Raised when a write is rejected; nothing from it was committed."""


class SaveInProgressError(ServiceError):
    """Raised when a save for the same record is already in flight."""
