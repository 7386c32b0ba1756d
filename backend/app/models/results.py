from pydantic import BaseModel
from typing import Optional, Dict, Any

from backend.app.core.errors import ErrorKind
from backend.app.models.session import SessionRecord


class OperationResult(BaseModel):
    """
    Outcome of one core operation. The boundary decides how to render it.
    """
    ok: bool
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    status_code: Optional[int] = None  # upstream status, when relevant
    record: Optional[SessionRecord] = None
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def success(cls, record: Optional[SessionRecord] = None, message: Optional[str] = None,
                data: Optional[Dict[str, Any]] = None) -> "OperationResult":
        return cls(ok=True, record=record, message=message, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, record: Optional[SessionRecord] = None,
                status_code: Optional[int] = None) -> "OperationResult":
        return cls(ok=False, error=kind, message=message, record=record, status_code=status_code)
