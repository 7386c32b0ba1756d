from backend.app.core.config import UNLIMITED
from backend.app.models.session import SessionRecord


def is_unlimited(record: SessionRecord) -> bool:
    return record.quota == UNLIMITED


def can_spend(record: SessionRecord) -> bool:
    """A caller with their own credential is never metered."""
    return bool(record.credential) or is_unlimited(record) or record.quota > 0


def debit(record: SessionRecord) -> bool:
    """
    Consume one turn. Only call after can_spend() passed in the same request.
    Returns True when quota was actually decremented.
    """
    if record.credential or is_unlimited(record):
        return False
    if record.quota <= 0:
        raise ValueError("debit() called on an exhausted quota")
    record.quota -= 1
    return True
