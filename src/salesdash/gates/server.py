"""Server-evaluated gate: decide before any output, then render or redirect."""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from fastapi import Depends, Request
from starlette.responses import RedirectResponse

from ..config import settings
from ..domain.permission import PermissionRequirement
from ..logging_config import get_logger

logger = get_logger(__name__)

Children = Callable[[], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    redirect_to: Optional[str] = None

    @classmethod
    def render(cls) -> "GateDecision":
        return cls(True)

    @classmethod
    def redirect(cls, location: str) -> "GateDecision":
        return cls(False, location)


class GateRedirect(Exception):
    """Raised from a page dependency; the app turns it into a redirect."""

    def __init__(self, location: str, status_code: int = 303):
        super().__init__(location)
        self.location = location
        self.status_code = status_code


class ServerPermissionGate:
    """Two outcomes only: render the children or redirect to ``redirect_to``.

    Missing identity and resolution errors both redirect; neither ever
    reaches the page as an exception.
    """

    def __init__(
        self,
        guard,
        requirement: PermissionRequirement,
        redirect_to: Optional[str] = None,
    ):
        self.guard = guard
        self.requirement = requirement
        self.redirect_to = redirect_to or settings.access_denied_url

    async def evaluate(self, user_id: Optional[int]) -> GateDecision:
        if self.requirement.is_pass_through:
            return GateDecision.render()
        if user_id is None:
            return GateDecision.redirect(self.redirect_to)
        # has_* style check: resolution failures come back as False
        if await self.guard.check(user_id, self.requirement):
            return GateDecision.render()
        logger.info(
            "gate_redirect",
            extra={"user_id": user_id, "mode": self.requirement.mode, "to": self.redirect_to},
        )
        return GateDecision.redirect(self.redirect_to)

    async def render(self, user_id: Optional[int], children: Children) -> Any:
        decision = await self.evaluate(user_id)
        if not decision.allowed:
            return RedirectResponse(decision.redirect_to, status_code=303)
        out = children()
        if inspect.isawaitable(out):
            out = await out
        return out


def page_gate(
    permission: Optional[str] = None,
    any_permissions: Optional[Sequence[str]] = None,
    all_permissions: Optional[Sequence[str]] = None,
    redirect_to: Optional[str] = None,
):
    """FastAPI dependency gating a page route.

    Unauthenticated requests go to the login page; denied ones to
    ``redirect_to`` (default: the access-denied page).
    """
    requirement = PermissionRequirement.from_options(permission, any_permissions, all_permissions)

    from ..deps.injection import get_authorization_guard

    async def _gate(request: Request, guard=Depends(get_authorization_guard)) -> Optional[int]:
        claims = getattr(request.state, "current_user", None)
        if claims is None and not requirement.is_pass_through:
            raise GateRedirect(settings.login_url)
        user_id = claims.user_id if claims is not None else None
        gate = ServerPermissionGate(guard, requirement, redirect_to)
        decision = await gate.evaluate(user_id)
        if not decision.allowed:
            raise GateRedirect(decision.redirect_to)
        return user_id

    return _gate
