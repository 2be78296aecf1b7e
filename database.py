"""
MongoDB access.

The connection is configured from the environment (a local ``.env`` file is
honoured):

- DATABASE_URL: MongoDB connection string
- DATABASE_NAME: database holding the ``hotel`` and ``room`` collections
"""

import logging
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from dotenv import load_dotenv
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from errors import PersistenceError

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "hotel_booking")

logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_client_lock = threading.Lock()


def get_db() -> Database:
    """Return the application database, connecting on first use."""
    global _client
    with _client_lock:
        if _client is None:
            _client = MongoClient(DATABASE_URL)
    return _client[DATABASE_NAME]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a document id; None when it can't be a valid id."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    doc = dict(doc)
    doc["_id"] = str(doc["_id"])
    return doc


@contextmanager
def driver_errors(action: str, collection: str):
    try:
        yield
    except PyMongoError as e:
        logger.error("%s on '%s' failed: %s", action, collection, e)
        raise PersistenceError(f"Database error during {action}") from e


class DocumentStore:
    """
    Id-addressed access to one collection.

    Every method returns plain dicts with ``_id`` rendered as a string and
    turns driver failures into PersistenceError.
    """

    def __init__(self, database: Database, collection_name: str):
        self.name = collection_name
        self.collection = database[collection_name]

    def find_by_id(self, id: Any) -> Optional[Dict[str, Any]]:
        _id = to_object_id(id)
        if _id is None:
            return None
        with driver_errors("find", self.name):
            return serialize(self.collection.find_one({"_id": _id}))

    def find_by_ids(self, ids: Iterable[Any]) -> Dict[str, Dict[str, Any]]:
        """Fetch several documents at once, keyed by their string id."""
        object_ids = [oid for oid in map(to_object_id, ids) if oid is not None]
        if not object_ids:
            return {}
        with driver_errors("find", self.name):
            docs = list(self.collection.find({"_id": {"$in": object_ids}}))
        return {str(d["_id"]): serialize(d) for d in docs}

    def find_many(self, filter: Dict[str, Any], limit: int = 0) -> List[Dict[str, Any]]:
        with driver_errors("find", self.name):
            cursor = self.collection.find(filter)
            if limit:
                cursor = cursor.limit(limit)
            return [serialize(d) for d in cursor]

    def count(self, filter: Dict[str, Any]) -> int:
        with driver_errors("count", self.name):
            return self.collection.count_documents(filter)

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        doc = {**data, "createdAt": now, "updatedAt": now}
        with driver_errors("insert", self.name):
            result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize(doc)

    def update_by_id(self, id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set the given fields; None when no document has that id."""
        _id = to_object_id(id)
        if _id is None:
            return None
        update = {"$set": {**fields, "updatedAt": datetime.now(timezone.utc)}}
        with driver_errors("update", self.name):
            doc = self.collection.find_one_and_update(
                {"_id": _id}, update, return_document=ReturnDocument.AFTER
            )
        return serialize(doc)

    def delete_by_id(self, id: Any) -> bool:
        _id = to_object_id(id)
        if _id is None:
            return False
        with driver_errors("delete", self.name):
            return self.collection.delete_one({"_id": _id}).deleted_count == 1

    def add_to_set(self, id: Any, field: str, value: Any) -> bool:
        """Atomically append ``value`` to an array field unless already there."""
        return self._array_update(id, "$addToSet", field, value)

    def pull(self, id: Any, field: str, value: Any) -> bool:
        """Atomically remove every occurrence of ``value`` from an array field."""
        return self._array_update(id, "$pull", field, value)

    def _array_update(self, id: Any, op: str, field: str, value: Any) -> bool:
        _id = to_object_id(id)
        if _id is None:
            return False
        with driver_errors("update", self.name):
            result = self.collection.update_one({"_id": _id}, {op: {field: value}})
        return result.matched_count == 1
