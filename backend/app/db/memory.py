import copy
from typing import Any, Dict, Optional


class InMemoryRecordStore:
    """Process-local record store. Values are deep-copied in and out like a real blob store."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._records: Dict[str, Any] = copy.deepcopy(initial or {})
        self.writes = 0

    def initialize(self):
        return None

    async def get(self, key: str) -> Optional[Any]:
        if key not in self._records:
            return None
        return copy.deepcopy(self._records[key])

    async def put(self, key: str, record: Any) -> None:
        self._records[key] = copy.deepcopy(record)
        self.writes += 1

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
