import time

from fastapi import APIRouter, Depends

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.responses import render
from backend.app.core.identity import SessionIdentity
from backend.app.services.session_manager import SessionManager

router = APIRouter()


@router.get("/state")
async def read_state(
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Returns the full session record, creating it on first contact.
    """
    result = await manager.read_state(identity.key)
    return render(identity, result.record.to_document())


@router.get("/export")
async def export_state(
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Same document as /state, served as a downloadable backup
    that /restore accepts back.
    """
    result = await manager.read_state(identity.key)
    filename = f"gemini-chat-data-{int(time.time() * 1000)}.json"
    return render(
        identity,
        result.record.to_document(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
