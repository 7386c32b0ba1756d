from typing import Any, Optional, Tuple

from loguru import logger

from backend.app.core.config import RelayConfig
from backend.app.core.errors import ErrorKind
from backend.app.core.locks import KeyedLock, NullLock
from backend.app.models.results import OperationResult
from backend.app.models.session import (
    ChatRequest, ConversationAction, ConversationRequest, SessionRecord, SettingsUpdate, Theme,
)
from backend.app.services import conversations
from backend.app.services.chat import ChatOrchestrator
from backend.app.services.redemption import redeem
from backend.app.services.repair import load_record

INVALID_SNAPSHOT = "Snapshot format is invalid."
UNKNOWN_OPERATION = "API endpoint not found."
EMPTY_TITLE = "Conversation title cannot be empty."


def is_valid_snapshot(raw: Any) -> bool:
    if not isinstance(raw, dict) or not isinstance(raw.get("conversations"), dict):
        return False
    quota = raw.get("trialCount")
    return isinstance(quota, (int, float)) and not isinstance(quota, bool)


class SessionManager:
    """
    Owns every mutation of a session record.

    Each operation loads the record (repairing or synthesizing it), applies
    exactly one command, and writes the full document back at most once.
    """

    def __init__(self, store, config: RelayConfig, upstream=None, serialize: bool = True):
        self.store = store
        self.config = config
        self.chat = ChatOrchestrator(config, upstream)
        self.locks = KeyedLock() if serialize else NullLock()

    async def _load(self, key: str) -> Tuple[SessionRecord, bool]:
        """Returns the record and whether it must be written back even if unchanged."""
        raw = await self.store.get(key)
        record, created, repaired = load_record(raw, self.config)
        if created:
            logger.info(f"New session record for {key[:8]}...")
        return record, created or repaired

    async def _save(self, key: str, record: SessionRecord) -> None:
        await self.store.put(key, record.to_document())

    async def read_state(self, key: str) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)
            if dirty:
                await self._save(key, record)
            return OperationResult.success(record=record)

    async def send_chat(self, key: str, request: ChatRequest) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)
            result = await self.chat.run(record, request)
            admitted = result.ok or result.error == ErrorKind.UPSTREAM
            if admitted or dirty:
                await self._save(key, record)
            return result

    async def conversation_action(self, key: str, request: ConversationRequest) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)
            if request.action == ConversationAction.RENAME and not (request.new_title or "").strip():
                return await self._reject(key, record, dirty, EMPTY_TITLE)
            changed = conversations.apply_action(record, request.action, request.conv_id, request.new_title)
            if changed or dirty:
                await self._save(key, record)
            return OperationResult.success(record=record)

    async def update_settings(self, key: str, update: SettingsUpdate) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)

            theme = update.theme or None
            if theme is not None and theme not in (Theme.LIGHT.value, Theme.DARK.value):
                return await self._reject(key, record, dirty, f"Unknown theme: {update.theme}")
            model = update.model or None
            if model is not None and model not in self.config.supported_models:
                return await self._reject(key, record, dirty, f"Unsupported model: {update.model}")

            if theme is not None:
                record.theme = Theme(theme)
            if model is not None:
                record.model = model
            if update.api_key is not None:
                record.credential = update.api_key.strip() or None

            await self._save(key, record)
            return OperationResult.success(record=record)

    async def redeem(self, key: str, code: Optional[str]) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)
            result = redeem(record, code, self.config)
            if result.ok or dirty:
                await self._save(key, record)
            if not result.ok:
                result.record = record
            return result

    async def restore(self, key: str, raw: Any) -> OperationResult:
        """Replace the stored record verbatim. Repair runs on the next read."""
        if not is_valid_snapshot(raw):
            logger.info(f"Rejected restore snapshot for {key[:8]}...")
            return OperationResult.failure(ErrorKind.VALIDATION, INVALID_SNAPSHOT)
        async with self.locks.hold(key):
            await self.store.put(key, raw)
        logger.info(f"Restored snapshot for {key[:8]}... ({len(raw['conversations'])} conversations)")
        return OperationResult.success()

    async def unknown_operation(self, key: str, name: str) -> OperationResult:
        async with self.locks.hold(key):
            record, dirty = await self._load(key)
            if dirty:
                await self._save(key, record)
        logger.info(f"Unknown operation {name!r}")
        return OperationResult.failure(ErrorKind.NOT_FOUND, UNKNOWN_OPERATION, record=record)

    async def _reject(self, key: str, record: SessionRecord, dirty: bool, message: str) -> OperationResult:
        if dirty:
            await self._save(key, record)
        return OperationResult.failure(ErrorKind.VALIDATION, message, record=record)
