import re
import uuid
from typing import Optional

from fastapi import Response
from loguru import logger
from pydantic import BaseModel

# Also keeps keys valid as ArangoDB document keys.
SESSION_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{8,128}$")


class SessionIdentity(BaseModel):
    key: str
    is_new: bool = False


def mint_session_key() -> str:
    return str(uuid.uuid4())


def resolve_identity(cookie_value: Optional[str]) -> SessionIdentity:
    """
    Reuse the key carried by the request, or mint a new one.
    A value that could not have been issued by us is treated as absent.
    """
    if cookie_value and SESSION_KEY_PATTERN.match(cookie_value):
        return SessionIdentity(key=cookie_value)

    key = mint_session_key()
    logger.info(f"Minted session key {key[:8]}...")
    return SessionIdentity(key=key, is_new=True)


def attach_identity_cookie(response: Response, identity: SessionIdentity, settings) -> Response:
    if identity.is_new:
        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=identity.key,
            max_age=settings.SESSION_COOKIE_MAX_AGE,
            path="/",
            httponly=True,
            secure=settings.SESSION_COOKIE_SECURE,
            samesite="lax",
        )
    return response
