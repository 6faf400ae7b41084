"""
Bearer token verification.

Sign-up, sign-in and refresh live with the identity provider. This module only
checks the tokens it issues and pulls out the claims the API needs.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, HTTPException, status

from expense_tracker.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: str = "unknown"


def decode_access_token(token: str, settings: Settings) -> Dict[str, Any]:
    options = {"require": ["sub"], "verify_aud": settings.JWT_AUDIENCE is not None}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected token: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_current_identity(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Identity:
    """Extract the caller's identity from the Authorization header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token required")

    token = authorization.replace("Bearer ", "", 1)
    payload = decode_access_token(token, settings)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return Identity(user_id=user_id, email=payload.get("email") or "unknown")
