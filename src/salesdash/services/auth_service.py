import datetime
from typing import Optional, Union

from jose import JWTError, jwt

from ..domain.auth import AuthTokens, TokenClaims
from ..domain.user import User
from ..exceptions import AuthenticationError

ALGORITHM = "HS256"


class AuthService:
    def __init__(self, jwt_secret: str, access_token_ttl_seconds: int = 86400):
        self.jwt_secret = jwt_secret
        self.access_token_ttl_seconds = access_token_ttl_seconds

    def create_access_token(
        self,
        data: Union[dict, TokenClaims],
        expires_delta: Optional[datetime.timedelta] = None,
    ) -> str:
        if isinstance(data, TokenClaims):
            claims = data
        else:
            claims = TokenClaims.from_payload(data)

        payload = claims.to_payload()

        now = datetime.datetime.now(datetime.timezone.utc)
        if expires_delta is not None:
            expire = now + expires_delta
        elif claims.expires_at is not None:
            expire = claims.expires_at
        else:
            expire = now + datetime.timedelta(seconds=self.access_token_ttl_seconds)

        payload["exp"] = expire
        if claims.issued_at is not None:
            payload.setdefault("iat", int(claims.issued_at.timestamp()))
        else:
            payload.setdefault("iat", int(now.timestamp()))

        encoded: str = jwt.encode(payload, self.jwt_secret, algorithm=ALGORITHM)
        return encoded

    def verify_token(self, token: str) -> TokenClaims:
        """Verify signature and expiry; raise ``AuthenticationError`` otherwise."""
        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=[ALGORITHM])
        except JWTError as e:
            raise AuthenticationError("Invalid token") from e
        if "sub" not in payload:
            raise AuthenticationError("Invalid token")
        return TokenClaims.from_payload(payload)

    def issue_tokens(self, user: User) -> AuthTokens:
        """Issue the session token for a freshly authenticated user."""
        claims = TokenClaims(
            subject=str(user.id),
            email=user.email,
            extra={"name": user.name, "roles": user.role_names},
        )
        return AuthTokens(
            access_token=self.create_access_token(claims),
            expires_in=self.access_token_ttl_seconds,
        )

