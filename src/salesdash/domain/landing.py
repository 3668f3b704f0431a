"""Post-login landing page selection."""

from typing import Iterable, Sequence, Tuple

# Checked in order; the first group the user holds any slug of wins.
LANDING_PAGES: Sequence[Tuple[str, Tuple[str, ...]]] = (
    ("/dashboard", ("view_dashboard",)),
    (
        "/upload",
        ("upload_omzet", "upload_gross_margin", "upload_retur", "view_upload_history"),
    ),
    ("/admin/roles", ("manage_roles", "manage_permissions", "manage_users")),
    ("/settings/branches", ("manage_branches", "manage_categories", "manage_targets")),
)


def resolve_landing_page(permissions: Iterable[str], fallback: str = "/access-denied") -> str:
    granted = set(permissions)
    for path, slugs in LANDING_PAGES:
        if any(s in granted for s in slugs):
            return path
    return fallback
