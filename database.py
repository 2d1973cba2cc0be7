"""
MongoDB access helpers.

The client is created lazily by pymongo (no connection until first use), so
importing this module never blocks. Request handlers receive the database
through ``get_db`` so tests can swap in another handle.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_URL

client = MongoClient(DATABASE_URL)
db = client[DATABASE_NAME]

COLLECTIONS = [
    "user",
    "address",
    "product",
    "category",
    "order",
    "blog",
    "banner",
    "service",
]


def get_db() -> Database:
    return db


def utcnow() -> datetime:
    """Naive UTC timestamp, the shape MongoDB hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def create_document(database: Database, collection_name: str, data) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict.setdefault("created_at", now)
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    skip: int = 0,
    limit: int = 0,
    projection: Optional[Dict[str, int]] = None,
) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Make a Mongo document JSON friendly: ``_id`` -> ``id``, ObjectIds -> str."""
    if not doc:
        return doc
    return {("id" if k == "_id" else k): _serialize_value(v) for k, v in doc.items()}


def _serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def ensure_indexes(database: Database) -> None:
    database["user"].create_index("email", unique=True)
    database["product"].create_index("slug", unique=True)
    database["product"].create_index("title", unique=True)
    database["product"].create_index([("category", ASCENDING)])
    database["product"].create_index([("price", ASCENDING)])
    database["product"].create_index([("rating", DESCENDING)])
    database["product"].create_index([("created_at", DESCENDING)])
    database["category"].create_index("name", unique=True)
    database["order"].create_index("order_number", unique=True)
    database["order"].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    database["blog"].create_index("slug", unique=True)
    database["blog"].create_index([("is_published", ASCENDING), ("created_at", DESCENDING)])
    database["service"].create_index([("position", ASCENDING), ("is_active", ASCENDING)])
