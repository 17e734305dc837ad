"""
Bearer Token Authentication

Identity is delegated to an external provider that issues signed tokens.
This module only verifies a token and turns it into an AuthenticatedUser;
the rest of the service trusts the resulting user id.

Token claims:
- uid (or sub): the user id
- email: optional
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from qr_redirect.core.exceptions import UnauthorizedError
from qr_redirect.core.setting import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    uid: str
    email: Optional[str] = None


class TokenVerifier:
    """Verifies HS256 (or configured algorithm) bearer tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def verify(self, token: str) -> AuthenticatedUser:
        """
        Decode a bearer token.

        Raises:
            UnauthorizedError: If the token is malformed, expired, badly
                signed or carries no user id
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            raise UnauthorizedError(f"Unauthorized: Invalid token ({e})")

        uid = claims.get("uid") or claims.get("sub")
        if not uid:
            raise UnauthorizedError("Unauthorized: Token has no user id")

        return AuthenticatedUser(uid=str(uid), email=claims.get("email"))

    def issue(self, uid: str, email: Optional[str] = None, **claims) -> str:
        """Sign a token for uid. Used by tests and local tooling."""
        payload = {"uid": uid, **claims}
        if email:
            payload["email"] = email
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)


def get_token_verifier() -> TokenVerifier:
    return TokenVerifier(settings.AUTH_SECRET_KEY, settings.AUTH_ALGORITHM)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> AuthenticatedUser:
    """
    FastAPI dependency resolving the caller's identity.

    Raises:
        HTTPException 401: If the bearer token is missing or invalid
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return verifier.verify(credentials.credentials)
    except UnauthorizedError as e:
        logger.warning(f"Authentication error: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
