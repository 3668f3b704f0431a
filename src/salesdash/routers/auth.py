from fastapi import APIRouter, Depends, Request, Response

from ..deps import (
    get_audit_repo,
    get_auth_service,
    get_authorization_guard,
    get_current_user,
    get_settings,
    get_user_repo,
    get_user_service,
)
from ..domain.audit import AuditAction, AuditEntity, log_audit_event
from ..domain.auth import TokenClaims
from ..domain.landing import resolve_landing_page
from ..exceptions import AuthenticationError, NotFoundError
from ..logging_config import get_logger
from ..schemas.auth import (
    LandingPageResponse,
    MeResponse,
    PermissionsResponse,
    TokenRequest,
    TokenResponse,
)
from ..schemas.common import ActionResponse
from ..services.auth_service import AuthService
from ..services.authorization import AuthorizationGuard
from ..services.user_service import UserService

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    req: TokenRequest,
    request: Request,
    response: Response,
    user_svc: UserService = Depends(get_user_service),
    audit_repo=Depends(get_audit_repo),
    auth_svc: AuthService = Depends(get_auth_service),
):
    user = await user_svc.authenticate(req.email, req.password)
    if not user:
        logger.info("login_failed", extra={"email": req.email})
        await log_audit_event(
            audit_repo,
            None,
            AuditAction.FAILED_LOGIN,
            AuditEntity.USER,
            new_value={"email": req.email},
            request=request,
        )
        raise AuthenticationError("Invalid email or password")

    issued = auth_svc.issue_tokens(user)
    settings = get_settings()
    # the cookie lets server-rendered pages (and their gates) see the session
    response.set_cookie(
        settings.auth_cookie_name,
        issued.access_token,
        max_age=issued.expires_in,
        httponly=True,
        samesite="lax",
    )
    logger.info("login_succeeded", extra={"user_id": user.id})
    await log_audit_event(
        audit_repo, user.id, AuditAction.LOGIN, AuditEntity.USER, entity_id=user.id, request=request
    )
    return TokenResponse(access_token=issued.access_token, expires_in=issued.expires_in)


@router.post("/logout", response_model=ActionResponse)
async def logout(response: Response):
    response.delete_cookie(get_settings().auth_cookie_name)
    return ActionResponse(message="Logout successful")


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: TokenClaims = Depends(get_current_user),
    user_repo=Depends(get_user_repo),
    guard: AuthorizationGuard = Depends(get_authorization_guard),
):
    user = await user_repo.get_by_id(current_user.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return MeResponse(
        id=int(user.id),
        email=user.email,
        name=user.name,
        roles=user.role_names,
        permissions=await guard.get_user_permissions(current_user.user_id),
    )


@router.get("/permissions", response_model=PermissionsResponse)
async def my_permissions(
    current_user: TokenClaims = Depends(get_current_user),
    guard: AuthorizationGuard = Depends(get_authorization_guard),
):
    """Effective permission slugs of the calling session."""
    return PermissionsResponse(permissions=await guard.get_user_permissions(current_user.user_id))


@router.get("/landing-page", response_model=LandingPageResponse)
async def landing_page(
    current_user: TokenClaims = Depends(get_current_user),
    guard: AuthorizationGuard = Depends(get_authorization_guard),
):
    permissions = await guard.get_user_permissions(current_user.user_id)
    return LandingPageResponse(
        landing_page=resolve_landing_page(permissions, get_settings().access_denied_url)
    )
