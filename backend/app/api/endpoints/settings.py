from fastapi import APIRouter, Depends

from backend.app.api.deps import get_identity, get_session_manager
from backend.app.api.responses import render_outcome
from backend.app.core.identity import SessionIdentity
from backend.app.models.session import SettingsUpdate
from backend.app.services.session_manager import SessionManager

router = APIRouter()


@router.post("")
async def update_settings(
    update: SettingsUpdate,
    identity: SessionIdentity = Depends(get_identity),
    manager: SessionManager = Depends(get_session_manager),
):
    result = await manager.update_settings(identity.key, update)
    return render_outcome(identity, result)
