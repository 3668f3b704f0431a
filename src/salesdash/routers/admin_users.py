from fastapi import APIRouter, Depends, Request

from ..deps import get_user_service, require_permission
from ..domain.auth import TokenClaims
from ..schemas.common import ActionResponse
from ..schemas.user import (
    UserCreateRequest,
    UserEnvelope,
    UserListResponse,
    UserUpdateRequest,
    user_to_response,
)
from ..services.user_service import UserService

router = APIRouter(prefix="/api/v1/admin/users", tags=["admin"])

manage_users = require_permission("manage_users")


@router.get("", response_model=UserListResponse)
async def list_users(
    _user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    users = await svc.list_users()
    return UserListResponse(users=[user_to_response(u) for u in users])


@router.post("", response_model=UserEnvelope, status_code=201)
async def create_user(
    req: UserCreateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    created = await svc.create_user(
        req.email,
        req.name,
        req.password,
        req.role_ids,
        is_active=req.is_active,
        actor_id=user.user_id,
        request=request,
    )
    return UserEnvelope(message="User created successfully", user=user_to_response(created))


@router.get("/{user_id}", response_model=UserEnvelope)
async def get_user(
    user_id: int,
    _user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    return UserEnvelope(user=user_to_response(await svc.get_user(user_id)))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: int,
    req: UserUpdateRequest,
    request: Request,
    user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    updated = await svc.update_user(
        user_id,
        email=req.email,
        name=req.name,
        password=req.password,
        is_active=req.is_active,
        role_ids=req.requested_role_ids(),
        actor_id=user.user_id,
        request=request,
    )
    return UserEnvelope(message="User updated successfully", user=user_to_response(updated))


@router.delete("/{user_id}", response_model=ActionResponse)
async def delete_user(
    user_id: int,
    request: Request,
    user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    await svc.delete_user(user_id, actor_id=user.user_id, request=request)
    return ActionResponse(message="User deleted successfully")


@router.post("/{user_id}/roles/{role_id}", response_model=UserEnvelope)
async def assign_role(
    user_id: int,
    role_id: int,
    request: Request,
    user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    updated = await svc.assign_role(user_id, role_id, actor_id=user.user_id, request=request)
    return UserEnvelope(message="Role assigned", user=user_to_response(updated))


@router.delete("/{user_id}/roles/{role_id}", response_model=UserEnvelope)
async def revoke_role(
    user_id: int,
    role_id: int,
    request: Request,
    user: TokenClaims = Depends(manage_users),
    svc: UserService = Depends(get_user_service),
):
    updated = await svc.revoke_role(user_id, role_id, actor_id=user.user_id, request=request)
    return UserEnvelope(message="Role revoked", user=user_to_response(updated))
