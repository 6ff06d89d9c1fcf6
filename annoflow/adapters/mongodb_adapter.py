"""
MongoDB adapter for the AnnoFlow system.

This adapter implements the DataStorageProvider interface for MongoDB.
Driver failures are re-raised as StorageError so callers see one
infrastructure error type regardless of the driver.
"""
import logging
import uuid
from contextlib import contextmanager
from typing import Dict, List, Tuple, Optional

from pymongo import MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from annoflow.exceptions import StorageError
from annoflow.interfaces.providers.data_storage import DataStorageProvider

logger = logging.getLogger(__name__)


class MongoDBAdapter(DataStorageProvider):
    """MongoDB implementation of DataStorageProvider."""

    def __init__(self, connection_string: str, database_name: str):
        self.client = MongoClient(connection_string)
        self.db = self.client[database_name]

    @contextmanager
    def _guard(self, operation: str, collection: str):
        try:
            yield
        except PyMongoError as e:
            logger.error(f"MongoDB {operation} on '{collection}' failed: {e}")
            raise StorageError(f"Datastore {operation} failed on {collection}: {e}") from e

    def create_collection(self, name: str) -> None:
        with self._guard("create_collection", name):
            if name not in self.db.list_collection_names():
                self.db.create_collection(name)

    def collection_exists(self, name: str) -> bool:
        with self._guard("list_collection_names", name):
            return name in self.db.list_collection_names()

    def insert_one(self, collection: str, document: Dict) -> str:
        if "_id" not in document:
            document["_id"] = document.get("id") or str(uuid.uuid4())
        with self._guard("insert_one", collection):
            self.db[collection].insert_one(document)
        return document["_id"]

    def find_one(self, collection: str, query: Dict) -> Optional[Dict]:
        with self._guard("find_one", collection):
            return self.db[collection].find_one(query)

    def find(
        self,
        collection: str,
        query: Dict,
        sort: Optional[List[Tuple]] = None,
        limit: int = 0,
        skip: int = 0
    ) -> List[Dict]:
        with self._guard("find", collection):
            cursor = self.db[collection].find(query)
            if sort:
                cursor = cursor.sort(sort)
            if skip > 0:
                cursor = cursor.skip(skip)
            if limit > 0:
                cursor = cursor.limit(limit)
            return list(cursor)

    def update_one(self, collection: str, query: Dict, update: Dict, upsert: bool = False) -> bool:
        with self._guard("update_one", collection):
            result = self.db[collection].update_one(query, update, upsert=upsert)
        return result.matched_count > 0 or (upsert and result.upserted_id is not None)

    def update_many(self, collection: str, query: Dict, update: Dict) -> int:
        with self._guard("update_many", collection):
            result = self.db[collection].update_many(query, update)
        return result.matched_count

    def find_one_and_update(self, collection: str, query: Dict, update: Dict) -> Optional[Dict]:
        with self._guard("find_one_and_update", collection):
            return self.db[collection].find_one_and_update(
                query, update, return_document=ReturnDocument.AFTER
            )

    def delete_one(self, collection: str, query: Dict) -> bool:
        with self._guard("delete_one", collection):
            result = self.db[collection].delete_one(query)
        return result.deleted_count == 1

    def delete_many(self, collection: str, query: Dict) -> int:
        with self._guard("delete_many", collection):
            result = self.db[collection].delete_many(query)
        return result.deleted_count

    def count_documents(self, collection: str, query: Dict) -> int:
        with self._guard("count_documents", collection):
            return self.db[collection].count_documents(query)

    def create_index(self, collection: str, keys: List[Tuple], **kwargs) -> None:
        with self._guard("create_index", collection):
            self.db[collection].create_index(keys, **kwargs)
