from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from backend.app.core.config import settings
from backend.app.core.errors import ErrorKind, HTTP_STATUS
from backend.app.core.identity import SessionIdentity, attach_identity_cookie
from backend.app.models.results import OperationResult


def status_for(result: OperationResult) -> int:
    if result.ok:
        return 200
    if result.error == ErrorKind.UPSTREAM and result.status_code:
        return result.status_code
    return HTTP_STATUS[result.error]


def render(identity: SessionIdentity, content: Any, status_code: int = 200,
           headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    response = JSONResponse(content=content, status_code=status_code, headers=headers)
    return attach_identity_cookie(response, identity, settings)


def render_error(identity: SessionIdentity, result: OperationResult) -> JSONResponse:
    return render(identity, {"error": result.message}, status_for(result))


def render_outcome(identity: SessionIdentity, result: OperationResult, **extra) -> JSONResponse:
    """{success, message, newState} body used by settings and redeem."""
    body = {"success": result.ok, "message": result.message, **extra}
    if result.record is not None:
        body["newState"] = result.record.to_document()
    return render(identity, body, status_for(result))
