from fastapi import APIRouter, Depends

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.endpoints import session, chat, conversations, settings, redeem, restore
from backend.app.api.responses import render_error
from backend.app.core.identity import SessionIdentity
from backend.app.services.session_manager import SessionManager

api_router = APIRouter()
api_router.include_router(session.router, tags=["session"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(conversations.router, prefix="/conversations", tags=["conversations"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(redeem.router, prefix="/redeem", tags=["redeem"])
api_router.include_router(restore.router, prefix="/restore", tags=["restore"])


# Must stay last: anything else under the prefix is an unknown operation.
@api_router.api_route("/{endpoint:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def unknown_endpoint(
    endpoint: str,
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    result = await manager.unknown_operation(identity.key, endpoint)
    return render_error(identity, result)
