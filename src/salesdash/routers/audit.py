from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_audit_repo, require_permission
from ..domain.auth import TokenClaims
from ..schemas.audit import AuditLogEntry, AuditLogResponse

router = APIRouter(prefix="/api/v1/admin/audit-logs", tags=["audit"])


@router.get("", response_model=AuditLogResponse)
async def list_audit_logs(
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    _user: TokenClaims = Depends(require_permission("view_audit_log")),
    audit_repo=Depends(get_audit_repo),
):
    rows = await audit_repo.list_events(entity=entity, entity_id=entity_id, limit=limit)
    return AuditLogResponse(logs=[AuditLogEntry(**r) for r in rows])
