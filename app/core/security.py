"""
Access Tokens

Tokens are issued by the identity service with python-jose. This API only
verifies them and reads the caller's id, permission codes and system-role flag.
`create_access_token` exists for local tooling and tests.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from jose import JWTError, jwt

from app.core.config import settings

TOKEN_TYPE_ACCESS = "access"


def create_access_token(
    subject: Any,
    permissions: Optional[Iterable[str]] = None,
    system_role: bool = False,
    expires_delta: Optional[timedelta] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(subject),
        "type": TOKEN_TYPE_ACCESS,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": str(uuid.uuid4()),
        "permissions": list(permissions or []),
        "system_role": system_role,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, token_type: str = TOKEN_TYPE_ACCESS) -> Optional[Dict[str, Any]]:
    """Signature-, expiry- and type-checked payload, or None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Claims in the shape `CurrentUser.from_claims` takes, or None when the
    token is invalid, expired or has no subject.
    """
    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return None

    permissions = payload.get("permissions")
    if not isinstance(permissions, list):
        permissions = []

    return {
        "sub": payload["sub"],
        "permissions": [str(p) for p in permissions],
        "system_role": bool(payload.get("system_role", False)),
    }
