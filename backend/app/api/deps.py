from functools import lru_cache

from fastapi import Request

from backend.app.core.config import settings
from backend.app.core.identity import SessionIdentity, resolve_identity
from backend.app.db.base import build_store
from backend.app.services.llm import get_llm
from backend.app.services.session_manager import SessionManager


@lru_cache
def get_session_manager() -> SessionManager:
    return SessionManager(
        store=build_store(settings),
        config=settings.relay_config(),
        upstream=get_llm(),
        serialize=settings.SERIALIZE_SESSION_REQUESTS,
    )


def get_identity(request: Request) -> SessionIdentity:
    return resolve_identity(request.cookies.get(settings.SESSION_COOKIE_NAME))
