from fastapi import APIRouter, Depends, Request

from ..deps import get_permission_service, require_permission
from ..domain.auth import TokenClaims
from ..schemas.common import ActionResponse
from ..schemas.permission import (
    GroupedPermissionsResponse,
    PermissionCreateRequest,
    PermissionEnvelope,
    PermissionUpdateRequest,
    permission_to_response,
)
from ..services.permission_service import PermissionService

router = APIRouter(prefix="/api/v1/admin/permissions", tags=["admin"])

manage_permissions = require_permission("manage_permissions")


@router.get("", response_model=GroupedPermissionsResponse)
async def list_permissions(
    _user: TokenClaims = Depends(manage_permissions),
    svc: PermissionService = Depends(get_permission_service),
):
    """All permissions grouped by module, each with its role count."""
    grouped = await svc.list_grouped()
    return GroupedPermissionsResponse(
        permissions={
            str(module): [permission_to_response(p) for p in perms]
            for module, perms in grouped.items()
        }
    )


@router.post("", response_model=PermissionEnvelope, status_code=201)
async def create_permission(
    req: PermissionCreateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_permissions),
    svc: PermissionService = Depends(get_permission_service),
):
    permission = await svc.create_permission(
        req.slug,
        req.name,
        req.module,
        description=req.description or "",
        actor_id=user.user_id,
        request=request,
    )
    return PermissionEnvelope(
        message="Permission created successfully", permission=permission_to_response(permission)
    )


@router.get("/{permission_id}", response_model=PermissionEnvelope)
async def get_permission(
    permission_id: int,
    _user: TokenClaims = Depends(manage_permissions),
    svc: PermissionService = Depends(get_permission_service),
):
    return PermissionEnvelope(
        permission=permission_to_response(await svc.get_permission(permission_id))
    )


@router.put("/{permission_id}", response_model=PermissionEnvelope)
async def update_permission(
    permission_id: int,
    req: PermissionUpdateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_permissions),
    svc: PermissionService = Depends(get_permission_service),
):
    permission = await svc.update_permission(
        permission_id,
        req.slug,
        req.name,
        req.module,
        description=req.description,
        actor_id=user.user_id,
        request=request,
    )
    return PermissionEnvelope(
        message="Permission updated successfully", permission=permission_to_response(permission)
    )


@router.delete("/{permission_id}", response_model=ActionResponse)
async def delete_permission(
    permission_id: int,
    request: Request,
    user: TokenClaims = Depends(manage_permissions),
    svc: PermissionService = Depends(get_permission_service),
):
    await svc.delete_permission(permission_id, actor_id=user.user_id, request=request)
    return ActionResponse(message="Permission deleted successfully")
