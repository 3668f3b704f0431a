from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator


class UserRole(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    is_active: bool
    roles: List[UserRole] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserCreateRequest(BaseModel):
    email: str
    name: str
    password: str
    # a single role_id (admin form) or several role_ids
    role_id: Optional[int] = None
    role_ids: List[int] = Field(default_factory=list)
    is_active: bool = True

    @model_validator(mode="after")
    def _merge_role_id(self):
        if self.role_id is not None and self.role_id not in self.role_ids:
            self.role_ids = [self.role_id, *self.role_ids]
        return self


class UserUpdateRequest(BaseModel):
    """Omitted fields are left unchanged; a role list replaces every assignment."""

    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None
    role_id: Optional[int] = None
    role_ids: Optional[List[int]] = None

    def requested_role_ids(self) -> Optional[List[int]]:
        if self.role_ids is not None:
            return self.role_ids
        if self.role_id is not None:
            return [self.role_id]
        return None


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserResponse]


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


def user_to_response(u: Any) -> UserResponse:
    """Convert a domain user to a UserResponse; the password hash never leaves."""
    return UserResponse(
        id=int(u.id),
        email=u.email,
        name=u.name,
        is_active=bool(u.is_active),
        roles=[UserRole(id=int(r.id), name=r.name, description=r.description) for r in u.roles],
        created_at=u.created_at,
        updated_at=u.updated_at,
    )
