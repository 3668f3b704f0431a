from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class PermissionResponse(BaseModel):
    """Response model for a single permission."""

    id: int
    slug: str
    name: str
    module: str
    description: Optional[str] = None
    is_system: bool = False
    role_count: int = 0
    created_at: Optional[datetime] = None


class PermissionCreateRequest(BaseModel):
    slug: str
    name: str
    module: str
    description: Optional[str] = ""


class PermissionUpdateRequest(BaseModel):
    slug: str
    name: str
    module: str
    description: Optional[str] = None


class GroupedPermissionsResponse(BaseModel):
    """Permissions keyed by module for the admin UI."""

    success: bool = True
    permissions: Dict[str, List[PermissionResponse]]


class PermissionEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    permission: PermissionResponse


def permission_to_response(p: Any) -> PermissionResponse:
    return PermissionResponse(
        id=int(p.id),
        slug=p.slug,
        name=p.name,
        module=str(p.module),
        description=p.description,
        is_system=bool(p.is_system),
        role_count=int(p.role_count),
        created_at=p.created_at,
    )
