from typing import List, Optional


class StoreError(Exception):
    """Base class for errors that map onto the API error envelope."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(StoreError):
    status_code = 400


class ConflictError(StoreError):
    status_code = 400


class OutOfStockError(StoreError):
    status_code = 400


class InvalidStateError(StoreError):
    status_code = 400


class ForbiddenError(StoreError):
    status_code = 403


class NotFoundError(StoreError):
    status_code = 404
