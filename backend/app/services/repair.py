"""
Decode-and-repair step at the store boundary.

Stored records carry no schema version, so drift is detected structurally:
every rule below looks at one field, coerces it if it is not valid for the
current schema, and records what it changed. Rules are independent and
idempotent, and repair never raises.
"""
import re
import time
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ValidationError

from backend.app.core.config import RelayConfig, UNLIMITED
from backend.app.models.session import Conversation, SessionRecord, Theme, Turn

_ID_TIMESTAMP = re.compile(r"_(\d+)$")

DEFAULT_TITLE = "New chat"


class RepairReport(BaseModel):
    record: SessionRecord
    fixes: List[str] = []

    @property
    def repaired(self) -> bool:
        return bool(self.fixes)


def now_ms() -> int:
    return int(time.time() * 1000)


def is_valid_quota(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value >= 0 or value == UNLIMITED


def conversation_title(index: int) -> str:
    return f"{DEFAULT_TITLE} {index}"


def new_record(config: RelayConfig, created_at: Optional[int] = None) -> SessionRecord:
    """A fresh record: default settings, trial quota, one empty active conversation."""
    created_at = created_at if created_at is not None else now_ms()
    conv_id = f"conv_{created_at}"
    return SessionRecord(
        theme=Theme.LIGHT,
        model=config.default_model,
        credential=None,
        quota=config.default_quota,
        redeemed_codes=[],
        conversations={conv_id: Conversation(id=conv_id, title=conversation_title(1), created_at=created_at)},
        active_conversation_id=conv_id,
    )


def _timestamp_from_id(conv_id: str) -> int:
    match = _ID_TIMESTAMP.search(conv_id)
    return int(match.group(1)) if match else 0


def _repair_turns(raw_history: Any, fixes: List[str], conv_id: str) -> List[Turn]:
    if not isinstance(raw_history, list):
        fixes.append(f"conversations.{conv_id}.history")
        return []
    turns = []
    for raw_turn in raw_history:
        try:
            turns.append(Turn.model_validate(raw_turn))
        except ValidationError:
            fixes.append(f"conversations.{conv_id}.history[dropped]")
    return turns


def _repair_conversation(conv_id: Any, raw: Any, fixes: List[str]) -> Optional[Conversation]:
    if not isinstance(conv_id, str) or not conv_id or not isinstance(raw, dict):
        fixes.append(f"conversations.{conv_id}[dropped]")
        return None

    title = raw.get("title")
    if not isinstance(title, str):
        fixes.append(f"conversations.{conv_id}.title")
        title = DEFAULT_TITLE

    if raw.get("id") != conv_id:
        fixes.append(f"conversations.{conv_id}.id")

    created_at = raw.get("createdAt")
    if isinstance(created_at, bool) or not isinstance(created_at, int) or created_at < 0:
        fixes.append(f"conversations.{conv_id}.createdAt")
        created_at = _timestamp_from_id(conv_id)

    history = _repair_turns(raw.get("history"), fixes, conv_id)
    return Conversation(id=conv_id, title=title, history=history, created_at=created_at)


def _repair_conversations(raw: Any, fixes: List[str]) -> Dict[str, Conversation]:
    if not isinstance(raw, dict):
        fixes.append("conversations")
        return {}
    conversations = {}
    for conv_id, raw_conv in raw.items():
        conversation = _repair_conversation(conv_id, raw_conv, fixes)
        if conversation is not None:
            conversations[conv_id] = conversation
    return conversations


def _repair_codes(raw: Any, fixes: List[str]) -> List[str]:
    if not isinstance(raw, list):
        fixes.append("redeemedCodes")
        return []
    codes = []
    for code in raw:
        if isinstance(code, str) and code not in codes:
            codes.append(code)
    if len(codes) != len(raw):
        fixes.append("redeemedCodes[deduplicated]")
    return codes


def most_recent_conversation_id(conversations: Dict[str, Conversation]) -> Optional[str]:
    if not conversations:
        return None
    return max(conversations.values(), key=lambda conv: (conv.created_at, conv.id)).id


def repair_record(raw: Any, config: RelayConfig) -> RepairReport:
    """
    Coerce a decoded blob into a valid SessionRecord.
    A missing record is not repaired here; callers synthesize one with new_record().
    """
    if not isinstance(raw, dict):
        logger.warning(f"Stored record is not an object ({type(raw).__name__}); replacing it")
        return RepairReport(record=new_record(config), fixes=["record"])

    fixes: List[str] = []

    theme = raw.get("theme")
    if theme not in (Theme.LIGHT.value, Theme.DARK.value):
        fixes.append("theme")
        theme = Theme.LIGHT.value

    model = raw.get("model")
    if model not in config.supported_models:
        fixes.append("model")
        model = config.default_model

    credential = raw.get("apiKey")
    if "apiKey" not in raw:
        fixes.append("apiKey")
    if not isinstance(credential, str) or not credential.strip():
        if credential is not None:
            fixes.append("apiKey")
        credential = None

    # A corrupt quota also voids the redemptions made against it.
    quota = raw.get("trialCount")
    if is_valid_quota(quota):
        redeemed_codes = _repair_codes(raw.get("redeemedCodes"), fixes)
    else:
        fixes.append("trialCount")
        quota = config.default_quota
        redeemed_codes = []
        if raw.get("redeemedCodes"):
            fixes.append("redeemedCodes")

    conversations = _repair_conversations(raw.get("conversations"), fixes)

    active_id = raw.get("activeConversationId")
    if active_id is not None and (not isinstance(active_id, str) or active_id not in conversations):
        fixes.append("activeConversationId")
        active_id = most_recent_conversation_id(conversations)

    record = SessionRecord(
        theme=theme,
        model=model,
        credential=credential,
        quota=quota,
        redeemed_codes=redeemed_codes,
        conversations=conversations,
        active_conversation_id=active_id,
    )
    if fixes:
        logger.warning(f"Repaired stored record: {', '.join(dict.fromkeys(fixes))}")
    return RepairReport(record=record, fixes=list(dict.fromkeys(fixes)))


def load_record(raw: Any, config: RelayConfig) -> Tuple[SessionRecord, bool, bool]:
    """Returns (record, created, repaired)."""
    if raw is None:
        return new_record(config), True, False
    report = repair_record(raw, config)
    return report.record, False, report.repaired
