"""Identity provider: verifies bearer tokens issued by the auth service."""
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel


class AuthenticatedUser(BaseModel):
    """Verified caller identity."""

    id: str
    username: Optional[str] = None
    email: Optional[str] = None


class InvalidCredentials(Exception):
    """Raised when a token cannot be verified."""


class JwtIdentityProvider:
    """Decodes HS256 (or configured) JWTs and extracts the user id claim."""

    def __init__(self, secret: str, algorithm: str = "HS256", user_claim: str = "id"):
        self.secret = secret
        self.algorithm = algorithm
        self.user_claim = user_claim

    def verify(self, token: str) -> AuthenticatedUser:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidCredentials(str(e)) from e

        user_id = payload.get(self.user_claim) or payload.get("sub")
        if not user_id:
            raise InvalidCredentials(f"Token has no '{self.user_claim}' claim")
        return AuthenticatedUser(
            id=str(user_id),
            username=payload.get("username"),
            email=payload.get("email"),
        )
