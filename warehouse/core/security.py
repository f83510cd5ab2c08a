from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import HTTPException, status

from warehouse.config import get_settings

SYSTEM_ACTOR_NAME = "system"


@dataclass(frozen=True)
class Actor:
    """Who is performing a write; threaded explicitly into services."""

    name: str
    auth_type: str = "anonymous"


SYSTEM_ACTOR = Actor(name=SYSTEM_ACTOR_NAME, auth_type="system")


def _load_api_keys() -> set[str]:
    settings = get_settings()
    keys = set()
    if settings.API_KEYS:
        for value in settings.API_KEYS.split(","):
            value = value.strip()
            if value:
                keys.add(value)
    return keys


def _get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_jwt(token: str) -> dict:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT auth is not configured",
        )

    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid JWT",
        ) from exc


def _clean_actor_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text[:100] or None


def authenticate_request(
    api_key: Optional[str],
    authorization: Optional[str],
    *,
    actor_name: Optional[str] = None,
    require_auth: bool = False,
) -> Actor:
    settings = get_settings()
    keys = _load_api_keys()

    if settings.JWT_REQUIRED:
        require_auth = True

    if api_key and api_key in keys and not settings.JWT_REQUIRED:
        return Actor(name=_clean_actor_name(actor_name) or SYSTEM_ACTOR_NAME, auth_type="api_key")

    token = _get_bearer_token(authorization)
    if token:
        try:
            payload = _decode_jwt(token)
        except HTTPException:
            if settings.JWT_REQUIRED or keys:
                raise
        else:
            name = _clean_actor_name(payload.get("name")) or _clean_actor_name(payload.get("sub"))
            return Actor(name=name or SYSTEM_ACTOR_NAME, auth_type="jwt")

    if (require_auth or keys or settings.JWT_REQUIRED) and (
        keys or settings.JWT_SECRET or settings.JWT_REQUIRED
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return Actor(name=_clean_actor_name(actor_name) or SYSTEM_ACTOR_NAME)


__all__ = ["Actor", "SYSTEM_ACTOR", "authenticate_request"]
