"""Server-rendered pages gated before any output is written.

The dashboard composition itself lives elsewhere; these routes only decide
between rendering and redirecting.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from ..gates.server import page_gate

router = APIRouter(tags=["pages"], include_in_schema=False)

UPLOAD_PERMISSIONS = ["upload_omzet", "upload_gross_margin", "upload_retur", "view_upload_history"]
ADMIN_PERMISSIONS = ["manage_roles", "manage_permissions", "manage_users"]


def _page(title: str) -> HTMLResponse:
    return HTMLResponse(f"<!doctype html><html><head><title>{title}</title></head><body><h1>{title}</h1></body></html>")


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(_user_id: Optional[int] = Depends(page_gate(permission="view_dashboard"))):
    return _page("Dashboard")


@router.get("/upload", response_class=HTMLResponse)
async def upload_page(
    _user_id: Optional[int] = Depends(page_gate(any_permissions=UPLOAD_PERMISSIONS)),
):
    return _page("Upload")


@router.get("/admin/roles", response_class=HTMLResponse)
async def admin_roles_page(
    _user_id: Optional[int] = Depends(page_gate(any_permissions=ADMIN_PERMISSIONS)),
):
    return _page("Roles")


@router.get("/access-denied", response_class=HTMLResponse)
async def access_denied_page():
    return HTMLResponse(
        "<!doctype html><html><head><title>Access denied</title></head>"
        "<body><h1>Access denied</h1><p>You do not have permission to open this page.</p></body></html>",
        status_code=403,
    )
