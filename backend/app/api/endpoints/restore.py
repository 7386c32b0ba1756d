from fastapi import APIRouter, Depends, Request

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.responses import render, status_for
from backend.app.core.identity import SessionIdentity
from backend.app.services.session_manager import SessionManager

router = APIRouter()


@router.post("")
async def restore_snapshot(
    request: Request,
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Replaces the whole stored record with the uploaded snapshot.
    """
    try:
        snapshot = await request.json()
    except ValueError:
        snapshot = None

    result = await manager.restore(identity.key, snapshot)
    body = {"success": result.ok}
    if not result.ok:
        body["message"] = result.message
    return render(identity, body, status_for(result))
