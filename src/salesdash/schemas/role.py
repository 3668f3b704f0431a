from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class RolePermission(BaseModel):
    id: int
    slug: str
    name: str
    module: str


class RoleResponse(BaseModel):
    """Response model for a role with its permissions."""

    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = True
    is_system: bool = False
    user_count: int = 0
    permissions: List[RolePermission] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RoleCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    permission_ids: List[int] = Field(default_factory=list)


class RoleUpdateRequest(BaseModel):
    """Omitted fields are left unchanged; ``permission_ids`` replaces the whole set."""

    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None
    permission_ids: Optional[List[int]] = None


class RoleListResponse(BaseModel):
    success: bool = True
    roles: List[RoleResponse]


class RoleEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    role: RoleResponse


def role_to_response(r: Any) -> RoleResponse:
    return RoleResponse(
        id=int(r.id),
        name=r.name,
        description=r.description,
        is_active=bool(r.is_active),
        is_system=bool(r.is_system),
        user_count=int(r.user_count),
        permissions=[
            RolePermission(id=int(p.id), slug=p.slug, name=p.name, module=str(p.module))
            for p in r.permissions
        ],
        created_at=r.created_at,
        updated_at=r.updated_at,
    )
