"""Audit request schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuditCreateRequest(BaseModel):
    """Body of ``POST /audits``.

    Accepts snake_case or camelCase keys. ``url`` is optional here so that a
    missing value is reported as a 400 by the orchestrator, not a 422.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str | None = None
    company_name: str | None = None
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    deep_scan_id: str | None = Field(
        default=None, description="Site audit project id enabling the deep technical scan"
    )


class RecapPatchRequest(BaseModel):
    """Body of ``PATCH /audits/{id}``; tabs are sanitized server-side."""

    recap: dict[str, Any] = Field(default_factory=dict)
