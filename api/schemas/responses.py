"""Error response envelope shared by every endpoint."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Field that caused the error")
    details: dict[str, Any] | None = Field(None, description="Additional error details")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""

    error: ErrorDetail


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing url or malformed audit id"},
    404: {"model": ErrorResponse, "description": "Audit not found"},
    409: {"model": ErrorResponse, "description": "Concurrent update could not be applied"},
    500: {"model": ErrorResponse, "description": "Storage or unexpected failure"},
}
