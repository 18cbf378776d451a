"""Auth helpers for FastAPI endpoints.

Provides:
- `User` Pydantic model for the JWT subject issued by the BaaS auth service
- `verify_jwt` to decode/validate HS256 session JWTs
- `get_current_user` / `get_optional_user` FastAPI dependencies using HTTP Bearer auth
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt
from pydantic import BaseModel
from .config import get_settings

security = HTTPBearer(auto_error=False)


class User(BaseModel):
    """Authenticated user extracted from a validated JWT."""
    sub: str
    email: str | None = None
    display_name: str | None = None
    roles: list[str] = []
    access_token: str = ""


def verify_jwt(token: str) -> User:
    """Decode and validate a JWT and return a `User`.

    Validates signature (HS256 with the BaaS JWT secret), audience, and
    expiration using settings. Raises HTTP 401 on any validation failure.

    Args:
        token: Bearer token string (JWT).

    Returns:
        User: Parsed user info from token claims.
    """
    s = get_settings()
    try:
        payload = jwt.decode(
            token,
            s.BAAS_JWT_SECRET,
            algorithms=["HS256"],
            audience=s.OIDC_AUDIENCE,
            options={"verify_exp": True},
        )
    except jwt.PyJWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )
    roles = payload.get("roles") or ([payload["role"]] if payload.get("role") else [])
    metadata = payload.get("user_metadata") or {}
    return User(
        sub=payload["sub"],
        email=payload.get("email"),
        display_name=metadata.get("display_name"),
        roles=roles,
        access_token=token,
    )


def get_current_user(creds: HTTPAuthorizationCredentials = Depends(security)) -> User:
    """FastAPI dependency to extract the current user from Authorization header.

    Raises:
        HTTPException: 401 if credentials are missing or token is invalid.
    """
    if not creds:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing credentials",
        )
    return verify_jwt(creds.credentials)


def get_optional_user(creds: HTTPAuthorizationCredentials = Depends(security)) -> User | None:
    """Like `get_current_user`, but anonymous callers yield None instead of 401."""
    if not creds:
        return None
    return verify_jwt(creds.credentials)
