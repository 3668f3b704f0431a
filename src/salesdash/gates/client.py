"""Client-evaluated gate.

The client only learns its permissions after an asynchronous fetch of
``GET /api/v1/auth/permissions``, so the gate starts in ``LOADING`` and moves
once to ``ALLOWED`` or ``DENIED`` per mount. ``refetch()`` is the only way to
re-evaluate afterwards.
"""

from enum import StrEnum
from typing import Any, Callable, Iterable, List, Optional, Sequence

import httpx

from ..domain.permission import PermissionRequirement
from ..logging_config import get_logger

logger = get_logger(__name__)

PERMISSIONS_PATH = "/api/v1/auth/permissions"


class PermissionsClient:
    """Fetches the session's permission list and answers checks against it."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        token: Optional[str] = None,
        path: str = PERMISSIONS_PATH,
    ):
        self.http = http
        self.token = token
        self.path = path
        self.permissions: List[str] = []
        self.loading = False
        self.error: Optional[str] = None

    async def fetch(self) -> List[str]:
        self.loading = True
        self.error = None
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            resp = await self.http.get(self.path, headers=headers)
            resp.raise_for_status()
            body = resp.json()
            if not body.get("success"):
                raise ValueError(body.get("message") or "Failed to fetch permissions")
            self.permissions = [str(s) for s in body.get("permissions", [])]
        except (httpx.HTTPError, ValueError) as e:
            logger.debug("permissions_fetch_failed", extra={"error": str(e)})
            self.permissions = []
            self.error = str(e) or type(e).__name__
        finally:
            self.loading = False
        return self.permissions

    async def refetch(self) -> List[str]:
        return await self.fetch()

    def has_permission(self, slug: str) -> bool:
        return slug in self.permissions

    def has_any(self, slugs: Iterable[str]) -> bool:
        return any(s in self.permissions for s in slugs)

    def has_all(self, slugs: Iterable[str]) -> bool:
        return all(s in self.permissions for s in slugs)


class GateState(StrEnum):
    LOADING = "loading"
    DENIED = "denied"
    ALLOWED = "allowed"


class ClientPermissionGate:
    def __init__(
        self,
        client: PermissionsClient,
        permission: Optional[str] = None,
        any_permissions: Optional[Sequence[str]] = None,
        all_permissions: Optional[Sequence[str]] = None,
        fallback: Any = None,
        loading: Any = None,
    ):
        self.client = client
        self.requirement = PermissionRequirement.from_options(
            permission, any_permissions, all_permissions
        )
        self.fallback = fallback
        self.loading_placeholder = loading
        self.state = GateState.LOADING
        self._mounted = False

    def _settle(self) -> GateState:
        # a failed fetch leaves an empty permission list
        if self.requirement.is_satisfied_by(self.client.permissions):
            self.state = GateState.ALLOWED
        else:
            self.state = GateState.DENIED
        return self.state

    async def mount(self) -> GateState:
        """Resolve once; later calls keep the settled state."""
        if self._mounted:
            return self.state
        self._mounted = True
        await self.client.fetch()
        return self._settle()

    async def refetch(self) -> GateState:
        self.state = GateState.LOADING
        await self.client.refetch()
        return self._settle()

    def unmount(self) -> None:
        self._mounted = False
        self.state = GateState.LOADING

    def render(self, children: Callable[[], Any]) -> Any:
        if self.state is GateState.LOADING:
            return self.loading_placeholder
        if self.state is GateState.DENIED:
            return self.fallback
        return children()
