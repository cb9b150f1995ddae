"""
Database helpers

MongoDB access shared by every route. One collection per content table.
Documents are stamped with created_at / updated_at on write and handed back
with a string `id` in place of the raw `_id`.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument

logger = logging.getLogger("portfolio.database")

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "portfolio")

db = None
if DATABASE_URL:
    _client = MongoClient(DATABASE_URL, serverSelectionTimeoutMS=5000)
    db = _client[DATABASE_NAME]
else:
    logger.warning("DATABASE_URL not set, running without a database")


class DatabaseUnavailable(RuntimeError):
    """Raised when the store is touched with no database configured."""


Sort = Sequence[Tuple[str, int]]


def now() -> datetime:
    return datetime.now(timezone.utc)


def collection(name: str):
    if db is None:
        raise DatabaseUnavailable(name)
    return db[name]


def parse_id(value: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise ValueError("Invalid id")
    return ObjectId(value)


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Swap Mongo's `_id` for a string `id`."""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    return out


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return dict(data)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document and return it serialized."""
    doc = _as_dict(data)
    doc.pop("id", None)
    stamp = now()
    doc["created_at"] = stamp
    doc["updated_at"] = stamp
    result = collection(collection_name).insert_one(doc)
    doc["_id"] = result.inserted_id
    return serialize(doc)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[Sort] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = collection(collection_name).find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if limit:
        cursor = cursor.limit(limit)
    return [serialize(d) for d in cursor]


def get_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    return serialize(collection(collection_name).find_one({"_id": parse_id(doc_id)}))


def find_one(collection_name: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return serialize(collection(collection_name).find_one(filter_dict))


def count_documents(collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> int:
    return collection(collection_name).count_documents(filter_dict or {})


def update_document(
    collection_name: str, doc_id: str, changes: Union[BaseModel, Dict[str, Any]]
) -> Optional[Dict[str, Any]]:
    """Apply `changes` and return the updated document, or None if missing."""
    fields = _as_dict(changes)
    for key in ("id", "_id", "created_at"):
        fields.pop(key, None)
    fields["updated_at"] = now()
    res = collection(collection_name).find_one_and_update(
        {"_id": parse_id(doc_id)},
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    return serialize(res)


def delete_document(collection_name: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Remove a document and return what was deleted, or None if missing."""
    return serialize(collection(collection_name).find_one_and_delete({"_id": parse_id(doc_id)}))


def upsert_single(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Write the one-row tables (about, contact, social links, info app)."""
    fields = _as_dict(data)
    fields.pop("id", None)
    stamp = now()
    fields["updated_at"] = stamp
    res = collection(collection_name).find_one_and_update(
        {},
        {"$set": fields, "$setOnInsert": {"created_at": stamp}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return serialize(res)


def get_setting(key: str) -> Optional[Any]:
    doc = collection("app_settings").find_one({"key": key})
    return doc.get("value") if doc else None


def upsert_setting(key: str, value: Dict[str, Any]) -> Dict[str, Any]:
    stamp = now()
    res = collection("app_settings").find_one_and_update(
        {"key": key},
        {"$set": {"value": value, "updated_at": stamp}, "$setOnInsert": {"created_at": stamp}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return serialize(res)
