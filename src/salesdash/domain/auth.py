"""Authentication domain models and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass(slots=True)
class AuthTokens:
    """Bundle of issued tokens returned to clients."""

    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


@dataclass(slots=True)
class TokenClaims:
    """Structured representation of JWT claims."""

    subject: str
    email: Optional[str] = None
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> int:
        return int(self.subject)

    @staticmethod
    def _coerce_datetime(value: Any) -> Optional[datetime]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (TypeError, ValueError):
            try:
                return datetime.fromisoformat(str(value))
            except ValueError:
                return None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"sub": self.subject}
        if self.email is not None:
            payload["email"] = self.email
        payload.update(self.extra)
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TokenClaims":
        data = dict(payload)
        subject = str(data.pop("sub"))
        email = data.pop("email", None)
        issued_at = cls._coerce_datetime(data.pop("iat", None))
        expires_at = cls._coerce_datetime(data.pop("exp", None))
        return cls(
            subject=subject,
            email=email,
            issued_at=issued_at,
            expires_at=expires_at,
            extra=data,
        )


__all__ = ["AuthTokens", "TokenClaims"]
