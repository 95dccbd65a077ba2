"""
Storage for the store backend.

Handlers receive a `Store` through FastAPI dependencies instead of importing
a global database handle. `MongoStore` is used when DATABASE_URL is set,
otherwise everything lives in a `MemoryStore` for the life of the process.

Documents are plain dicts with an integer `id` and `created_at` /
`updated_at` timestamps.
"""
import copy
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument

from logger import get_logger

logger = get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "jewelry_store")
SESSION_LOCK_STRIPES = int(os.getenv("SESSION_LOCK_STRIPES", "64"))

Document = Dict[str, Any]


def _now():
    return datetime.now(timezone.utc)


def _as_dict(data: Union[BaseModel, Document]) -> Document:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return copy.deepcopy(dict(data))


class Store(ABC):
    def __init__(self, lock_stripes: int = SESSION_LOCK_STRIPES):
        self._locks = [threading.Lock() for _ in range(lock_stripes)]

    def session_lock(self, collection: str, session_id: str) -> threading.Lock:
        """
        Lock held across a read-modify-write of one session document.

        Sessions share a fixed pool of locks, so a session always maps to the
        same lock and the pool never grows with the number of session ids.
        """
        return self._locks[hash((collection, session_id)) % len(self._locks)]

    @abstractmethod
    def insert(self, collection: str, data: Union[BaseModel, Document]) -> Document: ...

    @abstractmethod
    def find(self, collection: str, filters: Optional[Document] = None, newest_first: bool = False) -> List[Document]: ...

    @abstractmethod
    def get_by(self, collection: str, field: str, value: Any) -> Optional[Document]: ...

    @abstractmethod
    def update(self, collection: str, doc_id: int, fields: Document) -> Optional[Document]: ...

    @abstractmethod
    def upsert_by(self, collection: str, field: str, value: Any, fields: Document) -> Document: ...

    @abstractmethod
    def delete(self, collection: str, doc_id: int) -> bool: ...

    @abstractmethod
    def status(self) -> Document: ...

    def get(self, collection: str, doc_id: int) -> Optional[Document]:
        return self.get_by(collection, "id", doc_id)


class MemoryStore(Store):
    def __init__(self):
        super().__init__()
        self._data: Dict[str, Dict[int, Document]] = {}
        self._ids: Dict[str, int] = {}
        self._guard = threading.RLock()

    def _table(self, collection: str) -> Dict[int, Document]:
        return self._data.setdefault(collection, {})

    def _next_id(self, collection: str) -> int:
        self._ids[collection] = self._ids.get(collection, 0) + 1
        return self._ids[collection]

    def insert(self, collection, data):
        doc = _as_dict(data)
        with self._guard:
            if doc.get("id") is None:
                doc["id"] = self._next_id(collection)
            else:
                self._ids[collection] = max(self._ids.get(collection, 0), doc["id"])
            ts = _now()
            doc.setdefault("created_at", ts)
            doc["updated_at"] = ts
            self._table(collection)[doc["id"]] = doc
            return copy.deepcopy(doc)

    def find(self, collection, filters=None, newest_first=False):
        filters = filters or {}
        with self._guard:
            docs = [
                copy.deepcopy(d)
                for d in self._table(collection).values()
                if all(d.get(k) == v for k, v in filters.items())
            ]
        return sorted(docs, key=lambda d: d["id"], reverse=newest_first)

    def get_by(self, collection, field, value):
        with self._guard:
            for d in self._table(collection).values():
                if d.get(field) == value:
                    return copy.deepcopy(d)
        return None

    def update(self, collection, doc_id, fields):
        with self._guard:
            doc = self._table(collection).get(doc_id)
            if doc is None:
                return None
            doc.update(copy.deepcopy(fields))
            doc["updated_at"] = _now()
            return copy.deepcopy(doc)

    def upsert_by(self, collection, field, value, fields):
        with self._guard:
            existing = self.get_by(collection, field, value)
            if existing is None:
                return self.insert(collection, {**fields, field: value})
            return self.update(collection, existing["id"], fields)

    def delete(self, collection, doc_id):
        with self._guard:
            return self._table(collection).pop(doc_id, None) is not None

    def status(self):
        with self._guard:
            return {"db": "memory", "collections": sorted(self._data)}


class MongoStore(Store):
    def __init__(self, url: str, name: str = DATABASE_NAME):
        super().__init__()
        self.client = MongoClient(url)
        self.db = self.client[name]

    @staticmethod
    def _clean(doc: Optional[Document]) -> Optional[Document]:
        if doc is not None:
            doc.pop("_id", None)
        return doc

    def _next_id(self, collection: str) -> int:
        counter = self.db["counters"].find_one_and_update(
            {"_id": collection},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return counter["seq"]

    def insert(self, collection, data):
        doc = _as_dict(data)
        if doc.get("id") is None:
            doc["id"] = self._next_id(collection)
        else:
            self.db["counters"].update_one({"_id": collection}, {"$max": {"seq": doc["id"]}}, upsert=True)
        ts = _now()
        doc.setdefault("created_at", ts)
        doc["updated_at"] = ts
        self.db[collection].insert_one(doc)
        return self._clean(doc)

    def find(self, collection, filters=None, newest_first=False):
        cursor = self.db[collection].find(filters or {}).sort("id", DESCENDING if newest_first else ASCENDING)
        return [self._clean(d) for d in cursor]

    def get_by(self, collection, field, value):
        return self._clean(self.db[collection].find_one({field: value}))

    def update(self, collection, doc_id, fields):
        doc = self.db[collection].find_one_and_update(
            {"id": doc_id},
            {"$set": {**fields, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._clean(doc)

    def upsert_by(self, collection, field, value, fields):
        existing = self.get_by(collection, field, value)
        if existing is None:
            return self.insert(collection, {**fields, field: value})
        return self.update(collection, existing["id"], fields)

    def delete(self, collection, doc_id):
        return self.db[collection].delete_one({"id": doc_id}).deleted_count > 0

    def status(self):
        try:
            return {"db": "ok", "collections": self.db.list_collection_names()}
        except Exception as e:
            return {"db": f"error: {str(e)[:80]}"}


def build_store() -> Store:
    if DATABASE_URL:
        logger.info("Using MongoDB store (database=%s)", DATABASE_NAME)
        return MongoStore(DATABASE_URL, DATABASE_NAME)
    logger.info("DATABASE_URL not set, using in-memory store")
    return MemoryStore()
