from fastapi import APIRouter, Depends

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.responses import render, render_error
from backend.app.core.identity import SessionIdentity
from backend.app.models.session import ChatRequest
from backend.app.services.session_manager import SessionManager

router = APIRouter()


@router.post("")
async def send_chat_turn(
    request: ChatRequest,
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Forward one chat turn upstream.
    On success the upstream body is returned as-is and both turns are stored
    in the active conversation.
    """
    result = await manager.send_chat(identity.key, request)
    if not result.ok:
        return render_error(identity, result)
    return render(identity, result.data)
