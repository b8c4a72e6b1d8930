import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException

from portfolio.core.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_ROLES = {"ADMIN", "USER"}


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str
    email: Optional[str] = None


def _extract_role(payload: dict) -> Optional[str]:
    # Tokens minted by the admin login carry a top-level "role"; hosted auth
    # providers put it under app_metadata. Either is accepted, nothing else.
    raw = payload.get("role")
    if raw is None:
        raw = (payload.get("app_metadata") or {}).get("role")
    if raw is None:
        return None
    role = str(raw).strip().upper()
    if role not in ALLOWED_ROLES:
        return None
    return role


def _decode_token(token: str, secret: str, audience: str) -> Optional[dict]:
    decode_kwargs = {}
    options = {"verify_aud": bool(audience)}
    if audience:
        decode_kwargs["audience"] = audience
    try:
        return jwt.decode(token, secret, algorithms=["HS256"], options=options, **decode_kwargs)
    except jwt.InvalidTokenError as exc:
        logger.debug("jwt rejected: %s", exc)
        return None


def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> CurrentUser:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(401, "Access denied. No token provided.")

    token = authorization.split(" ", 1)[1].strip()
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(500, "JWT_SECRET is not configured")

    payload = _decode_token(token, settings.jwt_secret, (settings.jwt_audience or "").strip())
    if payload is None:
        raise HTTPException(401, "Invalid token.")

    user_id = payload.get("sub") or payload.get("email")
    if not user_id:
        raise HTTPException(401, "Invalid token.")

    role = _extract_role(payload)
    if not role:
        raise HTTPException(403, "Missing role")

    return CurrentUser(id=str(user_id), role=role, email=payload.get("email"))


def require_roles(*roles: str):
    def _dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(403, "Forbidden")
        return user

    return _dependency
