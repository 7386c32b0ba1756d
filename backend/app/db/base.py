from typing import Any, Dict, Optional, Protocol, runtime_checkable

from backend.app.core.config import Settings


@runtime_checkable
class RecordStore(Protocol):
    """get/put by session key; last write wins."""

    def initialize(self): ...

    async def get(self, key: str) -> Optional[Any]: ...

    async def put(self, key: str, record: Dict[str, Any]) -> None: ...


def build_store(settings: Settings) -> RecordStore:
    if settings.STORE_BACKEND == "memory":
        from backend.app.db.memory import InMemoryRecordStore
        return InMemoryRecordStore()
    if settings.STORE_BACKEND == "arango":
        from backend.app.db.arango import ArangoRecordStore
        return ArangoRecordStore(collection=settings.ARANGO_COLLECTION)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND!r}")
