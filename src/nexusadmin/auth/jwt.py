"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. Nothing is
stored server-side: a token is valid iff its signature checks out and
"exp" has not passed. That is why the authorization gate re-reads the
user on every request: deactivation has to win over an unexpired token.

Claims: {"userId", "role", "iat", "exp"}. Default lifetime is 7 days.
Rotating the secret invalidates every outstanding token.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from nexusadmin.db.models import UserRole

EXPIRED_MESSAGE = "Token has expired. Please log in again."
INVALID_MESSAGE = "Invalid token. Please log in again."


class TokenError(Exception):
    """Raised when token verification fails."""


class TokenExpiredError(TokenError):
    def __init__(self, message: str = EXPIRED_MESSAGE):
        super().__init__(message)


class TokenInvalidError(TokenError):
    def __init__(self, message: str = INVALID_MESSAGE):
        super().__init__(message)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: UserRole


class TokenCodec:
    """Signs and verifies session tokens with a process-wide secret."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings) -> "TokenCodec":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.access_token_expire_minutes,
        )

    def issue(
        self,
        user_id: str,
        role: UserRole,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed token for user_id/role."""
        issued = now or datetime.now(timezone.utc)
        payload = {
            "userId": str(user_id),
            "role": UserRole(role).value,
            "iat": issued,
            "exp": issued + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Returns the claims on success.
        Raises TokenExpiredError or TokenInvalidError on failure.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise TokenInvalidError()

        user_id = payload.get("userId")
        role = payload.get("role")
        if not isinstance(user_id, str) or not user_id:
            raise TokenInvalidError()
        try:
            return TokenClaims(user_id=user_id, role=UserRole(role))
        except ValueError:
            raise TokenInvalidError()
