"""Idempotent seeding of the system permissions and roles."""

from typing import Dict, List, Optional, Tuple

from .domain.permission import PermissionModule
from .domain.user import User
from .logging_config import get_logger

logger = get_logger(__name__)

# slug, display name, module, description
SYSTEM_PERMISSIONS: List[Tuple[str, str, PermissionModule, str]] = [
    ("view_dashboard", "View Dashboard", PermissionModule.DASHBOARD, "Open the sales dashboard"),
    ("export_dashboard", "Export Dashboard", PermissionModule.EXPORT, "Export dashboard data"),
    ("manage_targets", "Manage Targets", PermissionModule.SETTINGS, "Edit sales targets"),
    ("upload_omzet", "Upload Omzet", PermissionModule.UPLOAD, "Upload sales (omzet) files"),
    ("upload_gross_margin", "Upload Gross Margin", PermissionModule.UPLOAD, "Upload gross margin files"),
    ("upload_retur", "Upload Retur", PermissionModule.UPLOAD, "Upload return files"),
    ("view_upload_history", "View Upload History", PermissionModule.UPLOAD, "See past uploads"),
    ("view_audit_log", "View Audit Log", PermissionModule.AUDIT, "Read the audit trail"),
    ("manage_users", "Manage Users", PermissionModule.SETTINGS, "Create, edit and delete users"),
    ("manage_roles", "Manage Roles", PermissionModule.SETTINGS, "Create, edit and delete roles"),
    ("manage_permissions", "Manage Permissions", PermissionModule.SETTINGS, "Edit custom permissions"),
    ("manage_locations", "Manage Locations", PermissionModule.SETTINGS, "Edit locations"),
    ("manage_categories", "Manage Categories", PermissionModule.SETTINGS, "Edit product categories"),
    ("manage_branches", "Manage Branches", PermissionModule.SETTINGS, "Edit branches"),
]

ALL = "*"

SYSTEM_ROLES: Dict[str, Tuple[str, List[str]]] = {
    "ADMINISTRATOR": ("Full access", [ALL]),
    "DIREKTUR": ("Read-only dashboard access", ["view_dashboard", "export_dashboard"]),
    "MANAGER": (
        "Dashboard and targets",
        ["view_dashboard", "export_dashboard", "manage_targets", "view_upload_history"],
    ),
    "UPLOADER": (
        "Data uploads",
        ["upload_omzet", "upload_gross_margin", "upload_retur", "view_upload_history"],
    ),
}


async def seed_access_control(
    store,
    user_repo=None,
    admin_email: Optional[str] = None,
    admin_password: Optional[str] = None,
    admin_name: str = "Administrator",
) -> None:
    """Create missing system permissions and roles; existing rows are left alone.

    When ``admin_email`` and ``admin_password`` are given and no such user
    exists, an administrator account holding the ADMINISTRATOR role is added.
    """
    try:
        slug_ids: Dict[str, int] = {}
        for slug, name, module, description in SYSTEM_PERMISSIONS:
            existing = await store.get_permission_by_slug(slug)
            if existing is None:
                existing = await store.create_permission(
                    slug, name, module, description=description, is_system=True
                )
            slug_ids[slug] = existing.id

        role_ids: Dict[str, int] = {}
        for role_name, (description, slugs) in SYSTEM_ROLES.items():
            role = await store.get_role_by_name(role_name)
            if role is None:
                role = await store.create_role(role_name, description, is_system=True)
                wanted = list(slug_ids) if slugs == [ALL] else slugs
                for slug in wanted:
                    await store.create_role_permission(role.id, slug_ids[slug])
            role_ids[role_name] = role.id

        if user_repo is not None and admin_email and admin_password:
            from .services.user_service import normalize_email, pwd_context

            email = normalize_email(admin_email)
            if await user_repo.get_by_email(email) is None:
                admin = await user_repo.create(
                    User(
                        id=None,
                        email=email,
                        name=admin_name,
                        hashed_password=pwd_context.hash(admin_password),
                    )
                )
                await store.create_user_role(admin.id, role_ids["ADMINISTRATOR"])
                logger.info("seed_admin_created", extra={"email": email})

        await store.commit()
    except Exception:
        await store.rollback()
        raise
    logger.info(
        "seed_completed",
        extra={"permissions": len(SYSTEM_PERMISSIONS), "roles": len(SYSTEM_ROLES)},
    )
