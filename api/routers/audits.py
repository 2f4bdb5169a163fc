"""Audit endpoints."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Query

from api.deps import AuditServiceDep
from api.schemas.audit import AuditCreateRequest, RecapPatchRequest
from api.schemas.responses import ERROR_RESPONSES

router = APIRouter(prefix="/audits", tags=["audits"], responses=ERROR_RESPONSES)


@router.post("", summary="Run a new audit")
async def create_audit(
    payload: AuditCreateRequest,
    service: AuditServiceDep,
    background_tasks: BackgroundTasks,
) -> dict[str, Any]:
    """
    Audit a website.

    - Calls every provider concurrently; failed or empty providers go pending
    - Persists the document before responding
    - Appends the audit to the spreadsheet log after the response is sent
    """
    doc = await service.create_audit(payload)
    background_tasks.add_task(service.audit_logger.log_audit, doc)
    return doc.to_public_dict()


@router.get("/{audit_id}", summary="Get an audit")
async def get_audit(
    audit_id: str,
    service: AuditServiceDep,
    refresh: bool = Query(False, description="Retry pending providers before responding"),
) -> dict[str, Any]:
    doc = await service.get_audit(audit_id, refresh=refresh)
    return doc.to_public_dict()


@router.patch("/{audit_id}", summary="Edit the report recap")
async def patch_recap(
    audit_id: str,
    payload: RecapPatchRequest,
    service: AuditServiceDep,
) -> dict[str, Any]:
    recap = await service.patch_recap(audit_id, payload.recap)
    return {"recap": {tab: value.model_dump() for tab, value in recap.items()}}
