from fastapi import APIRouter, Depends, Request

from ..deps import get_role_service, require_permission
from ..domain.auth import TokenClaims
from ..schemas.common import ActionResponse
from ..schemas.role import (
    RoleCreateRequest,
    RoleEnvelope,
    RoleListResponse,
    RoleUpdateRequest,
    role_to_response,
)
from ..services.role_service import RoleService

router = APIRouter(prefix="/api/v1/admin/roles", tags=["admin"])

manage_roles = require_permission("manage_roles")


@router.get("", response_model=RoleListResponse)
async def list_roles(
    _user: TokenClaims = Depends(manage_roles),
    svc: RoleService = Depends(get_role_service),
):
    """Roles with their permissions and user counts, system roles first."""
    roles = await svc.list_roles()
    return RoleListResponse(roles=[role_to_response(r) for r in roles])


@router.post("", response_model=RoleEnvelope, status_code=201)
async def create_role(
    req: RoleCreateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_roles),
    svc: RoleService = Depends(get_role_service),
):
    role = await svc.create_role(
        req.name,
        req.description,
        req.permission_ids,
        actor_id=user.user_id,
        request=request,
    )
    return RoleEnvelope(message="Role created", role=role_to_response(role))


@router.get("/{role_id}", response_model=RoleEnvelope)
async def get_role(
    role_id: int,
    _user: TokenClaims = Depends(manage_roles),
    svc: RoleService = Depends(get_role_service),
):
    return RoleEnvelope(role=role_to_response(await svc.get_role(role_id)))


@router.put("/{role_id}", response_model=RoleEnvelope)
async def update_role(
    role_id: int,
    req: RoleUpdateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_roles),
    svc: RoleService = Depends(get_role_service),
):
    role = await svc.update_role(
        role_id,
        name=req.name,
        description=req.description,
        is_active=req.is_active,
        permission_ids=req.permission_ids,
        actor_id=user.user_id,
        request=request,
    )
    return RoleEnvelope(message="Role updated", role=role_to_response(role))


@router.delete("/{role_id}", response_model=ActionResponse)
async def delete_role(
    role_id: int,
    request: Request,
    user: TokenClaims = Depends(manage_roles),
    svc: RoleService = Depends(get_role_service),
):
    await svc.delete_role(role_id, actor_id=user.user_id, request=request)
    return ActionResponse(message="Role deleted")
