from typing import List, Optional

from pydantic import BaseModel, EmailStr


class TokenRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class MeResponse(BaseModel):
    success: bool = True
    id: int
    email: str
    name: str
    roles: List[str]
    permissions: List[str]


class PermissionsResponse(BaseModel):
    """Current session's permission slugs; consumed by client-side gates."""

    success: bool = True
    permissions: List[str]


class LandingPageResponse(BaseModel):
    success: bool = True
    landing_page: str
