from fastapi import APIRouter, Depends

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.responses import render, status_for
from backend.app.core.identity import SessionIdentity
from backend.app.models.session import ConversationRequest
from backend.app.services.session_manager import SessionManager

router = APIRouter()


@router.post("")
async def conversation_action(
    request: ConversationRequest,
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    create / delete / rename / switch. Actions on unknown ids are no-ops;
    the refreshed record is returned either way.
    A blank rename title is rejected with 400.
    """
    result = await manager.conversation_action(identity.key, request)
    return render(identity, result.record.to_document(), status_for(result))
