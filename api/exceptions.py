"""Custom exceptions and error handling."""

from typing import Any

from fastapi import status


class InboundError(Exception):
    """Base exception for the audit service."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class BadRequestError(InboundError):
    """Request rejected before any work was done."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="bad_request",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": field} if field else None,
        )


class NotFoundError(InboundError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str | None = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            message=message,
            code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictError(InboundError):
    """Concurrent writers kept invalidating each other."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="conflict",
            status_code=status.HTTP_409_CONFLICT,
        )


class StorageError(InboundError):
    """The store rejected or failed a read or write."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Audit storage {operation} failed",
            code="storage_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation},
        )

