"""Member check against Supabase Auth."""

import logging
from typing import Any, Optional

from fastapi import Header

from deals.errors import Unauthorized

from .db import get_supabase

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_member(authorization: Optional[str] = Header(None)) -> Any:
    """FastAPI dependency: the signed-in Supabase user, or 401."""
    token = _bearer_token(authorization)
    client = get_supabase()
    if token is None or client is None:
        raise Unauthorized("Unauthorized")

    try:
        response = client.auth.get_user(token)
    except Exception as exc:
        logger.info("Rejected session token: %s", exc)
        raise Unauthorized("Unauthorized") from exc

    user = getattr(response, "user", None)
    if user is None:
        raise Unauthorized("Unauthorized")
    return user
