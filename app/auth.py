"""
Caller identity from bearer tokens issued by the external auth provider.

Tokens are only verified here, never issued. The `sub` claim is the identity
stored as the owner of posts, comments and likes.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import get_settings
from .logging_config import auth_logger
from .responses import unauthorized

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """An authenticated caller."""
    id: str
    role: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify an identity token and return its claims, or None if it is not acceptable."""
    settings = get_settings()
    options = {"verify_aud": settings.auth_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.verification_key,
            algorithms=[settings.auth_jwt_algorithm],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options=options,
        )
    except JWTError as e:
        auth_logger.info("Rejected identity token", reason=str(e))
        return None


def caller_from_claims(claims: Dict[str, Any]) -> Optional[Caller]:
    subject = claims.get("sub")
    if not subject or not isinstance(subject, str):
        return None

    role = claims.get("role")
    metadata = claims.get("metadata")
    if isinstance(metadata, dict) and metadata.get("role"):
        role = metadata["role"]

    return Caller(id=subject, role=role if isinstance(role, str) else None, claims=claims)


def get_current_caller(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Caller]:
    """Get the caller from the bearer token (optional auth)."""
    if not credentials or not credentials.credentials:
        return None

    claims = verify_token(credentials.credentials)
    if claims is None:
        return None

    caller = caller_from_claims(claims)
    if caller is not None:
        request.state.caller_id = caller.id
    return caller


def get_required_caller(
    current_caller: Optional[Caller] = Depends(get_current_caller),
) -> Caller:
    """Get the caller, raising 401 if not authenticated."""
    if current_caller is None:
        unauthorized()
    return current_caller
