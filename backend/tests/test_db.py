import pytest
from unittest.mock import MagicMock

from arango.exceptions import ArangoClientError

from backend.app.core.config import Settings
from backend.app.core.errors import StoreError
from backend.app.db.arango import ArangoRecordStore
from backend.app.db.base import RecordStore, build_store
from backend.app.db.memory import InMemoryRecordStore


def arango_store():
    database = MagicMock()
    collection = database.get_db.return_value.collection.return_value
    return ArangoRecordStore(database=database, collection="ChatData"), collection


@pytest.mark.asyncio
async def test_arango_get_unwraps_record():
    store, collection = arango_store()
    collection.get.return_value = {"_key": "abc", "_id": "ChatData/abc", "_rev": "1", "record": {"theme": "dark"}}

    assert await store.get("abc") == {"theme": "dark"}
    collection.get.assert_called_once_with("abc")


@pytest.mark.asyncio
async def test_arango_get_missing_is_none():
    store, collection = arango_store()
    collection.get.return_value = None
    assert await store.get("abc") is None


@pytest.mark.asyncio
async def test_arango_put_overwrites_whole_document():
    store, collection = arango_store()
    await store.put("abc", {"trialCount": 1})

    args, kwargs = collection.insert.call_args
    assert args[0] == {"_key": "abc", "record": {"trialCount": 1}}
    assert kwargs["overwrite"] is True


@pytest.mark.asyncio
async def test_arango_errors_become_store_errors():
    store, collection = arango_store()
    collection.get.side_effect = ArangoClientError("connection refused")
    collection.insert.side_effect = ArangoClientError("connection refused")

    with pytest.raises(StoreError):
        await store.get("abc")
    with pytest.raises(StoreError):
        await store.put("abc", {})


@pytest.mark.asyncio
async def test_memory_store_copies_values():
    store = InMemoryRecordStore()
    record = {"conversations": {"a": {"history": []}}}
    await store.put("k", record)
    record["conversations"]["a"]["history"].append("mutated")

    loaded = await store.get("k")
    assert loaded == {"conversations": {"a": {"history": []}}}
    loaded["conversations"].clear()
    assert (await store.get("k"))["conversations"] != {}


def test_build_store_selects_backend():
    assert isinstance(build_store(Settings(STORE_BACKEND="memory")), InMemoryRecordStore)
    assert isinstance(build_store(Settings(STORE_BACKEND="arango")), ArangoRecordStore)
    assert isinstance(build_store(Settings(STORE_BACKEND="memory")), RecordStore)
    with pytest.raises(ValueError):
        build_store(Settings(STORE_BACKEND="redis"))
