"""Bearer-token authentication — extracts the caller's principal from a JWT."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from mfa_callbacks.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, bearerFormat="JWT")


@dataclass
class Principal:
    """The authenticated caller, as described by the token's claims."""

    subject: str
    username: str | None = None
    roles: set[str] = field(default_factory=set)


def decode_token(token: str) -> dict:
    """Verify *token* against the configured key and return its claims.

    Raises ``JWTError`` if the signature, expiry, audience or issuer
    does not check out.
    """
    options = {"verify_aud": settings.jwt_audience is not None}
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options=options,
    )


def principal_from_claims(claims: dict) -> Principal:
    subject = claims.get("sub")
    if not subject or not str(subject).strip():
        raise ValueError("Token has no subject")

    raw_roles = claims.get("roles") or []
    if isinstance(raw_roles, str):
        raw_roles = [raw_roles]
    roles = {f"ROLE_{str(role).upper()}" for role in raw_roles}

    return Principal(
        subject=str(subject),
        username=claims.get("preferred_username"),
        roles=roles,
    )


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """FastAPI dependency: the authenticated principal, or 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = decode_token(credentials.credentials)
        return principal_from_claims(claims)
    except (JWTError, ValueError) as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
