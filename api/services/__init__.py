"""Business logic services package."""

from api.services.audit_service import AuditService, validate_audit_id

__all__ = ["AuditService", "validate_audit_id"]
