import asyncio
import copy
from typing import Any, Dict, Optional

from arango import ArangoClient
from arango.exceptions import ArangoError
from loguru import logger

from backend.app.core.config import settings
from backend.app.core.errors import StoreError


class ArangoDB:
    def __init__(self, host: str = None, username: str = None, password: str = None, db_name: str = None):
        self.host = host or settings.ARANGO_HOST
        self.username = username or settings.ARANGO_USERNAME
        self.password = password or settings.ARANGO_PASSWORD
        self.db_name = db_name or settings.ARANGO_DB_NAME
        self.client = None
        self.db = None

    def initialize(self, collections=(settings.ARANGO_COLLECTION,)):
        try:
            self.client = ArangoClient(hosts=self.host)
            sys_db = self.client.db('_system', username=self.username, password=self.password)
            if not sys_db.has_database(self.db_name):
                sys_db.create_database(self.db_name)

            self.db = self.client.db(self.db_name, username=self.username, password=self.password)

            for col in collections:
                if not self.db.has_collection(col):
                    self.db.create_collection(col)

            logger.info(f"Connected to ArangoDB: {self.db_name}")
            return self.db
        except ArangoError as e:
            logger.error(f"Failed to connect to ArangoDB: {e}")
            raise StoreError(f"Cannot initialize ArangoDB '{self.db_name}'") from e

    def get_db(self):
        if not self.db:
            self.initialize()
        return self.db


class ArangoRecordStore:
    """
    One document per session key: {"_key": <session key>, "record": <JSON blob>}.
    The blob is kept verbatim; no conditional writes, last write wins.
    """

    def __init__(self, database: ArangoDB = None, collection: str = None):
        self.database = database or ArangoDB()
        self.collection_name = collection or settings.ARANGO_COLLECTION

    def initialize(self):
        self.database.initialize(collections=(self.collection_name,))

    def _collection(self):
        return self.database.get_db().collection(self.collection_name)

    def _get(self, key: str) -> Optional[Any]:
        doc = self._collection().get(key)
        if doc is None:
            return None
        return doc.get("record")

    def _put(self, key: str, record: Dict[str, Any]) -> None:
        self._collection().insert({"_key": key, "record": record}, overwrite=True, silent=True)

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await asyncio.to_thread(self._get, key)
        except ArangoError as e:
            logger.error(f"Record read failed for {key[:8]}...: {e}")
            raise StoreError("Record store read failed") from e

    async def put(self, key: str, record: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(self._put, key, copy.deepcopy(record))
        except ArangoError as e:
            logger.error(f"Record write failed for {key[:8]}...: {e}")
            raise StoreError("Record store write failed") from e
