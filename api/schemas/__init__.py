"""Pydantic schemas package."""

from api.schemas.audit import AuditCreateRequest, RecapPatchRequest
from api.schemas.responses import ErrorDetail, ErrorResponse

__all__ = ["AuditCreateRequest", "RecapPatchRequest", "ErrorDetail", "ErrorResponse"]
