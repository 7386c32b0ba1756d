from typing import Optional

from backend.app.models.session import Conversation, ConversationAction, SessionRecord
from backend.app.services.repair import conversation_title, most_recent_conversation_id, now_ms


def create(record: SessionRecord, created_at: Optional[int] = None) -> Conversation:
    """Add an empty conversation that sorts after every existing one and make it active."""
    created_at = created_at if created_at is not None else now_ms()
    newest = max((conv.created_at for conv in record.conversations.values()), default=-1)
    created_at = max(created_at, newest + 1)

    conv_id = f"conv_{created_at}"
    while conv_id in record.conversations:
        created_at += 1
        conv_id = f"conv_{created_at}"

    conversation = Conversation(
        id=conv_id,
        title=conversation_title(len(record.conversations) + 1),
        created_at=created_at,
    )
    record.conversations[conv_id] = conversation
    record.active_conversation_id = conv_id
    return conversation


def delete(record: SessionRecord, conv_id: Optional[str]) -> bool:
    if conv_id not in record.conversations:
        return False
    del record.conversations[conv_id]
    if record.active_conversation_id == conv_id:
        record.active_conversation_id = most_recent_conversation_id(record.conversations)
    return True


def rename(record: SessionRecord, conv_id: Optional[str], title: Optional[str]) -> bool:
    title = (title or "").strip()
    if conv_id not in record.conversations or not title:
        return False
    record.conversations[conv_id].title = title
    return True


def switch(record: SessionRecord, conv_id: Optional[str]) -> bool:
    if conv_id not in record.conversations:
        return False
    record.active_conversation_id = conv_id
    return True


def apply_action(record: SessionRecord, action: ConversationAction, conv_id: Optional[str] = None,
                 title: Optional[str] = None) -> bool:
    """Dispatch one conversation action. Returns True if the record changed."""
    if action == ConversationAction.CREATE:
        create(record)
        return True
    if action == ConversationAction.DELETE:
        return delete(record, conv_id)
    if action == ConversationAction.RENAME:
        return rename(record, conv_id, title)
    if action == ConversationAction.SWITCH:
        return switch(record, conv_id)
    raise ValueError(f"Unknown conversation action: {action!r}")
