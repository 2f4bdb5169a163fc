"""Persisted document models."""

from api.models.audit import RECAP_TABS, AuditDocument, AuditMeta, AuditSources, RecapTab

__all__ = [
    "RECAP_TABS",
    "AuditDocument",
    "AuditMeta",
    "AuditSources",
    "RecapTab",
]
