"""Declarative permission gates for pages (server) and interactive clients."""

from .client import ClientPermissionGate, GateState, PermissionsClient
from .server import GateDecision, GateRedirect, ServerPermissionGate, page_gate

__all__ = [
    "ClientPermissionGate",
    "GateDecision",
    "GateRedirect",
    "GateState",
    "PermissionsClient",
    "ServerPermissionGate",
    "page_gate",
]
