"""
MongoDB access for the Sustainable Farming Network API.

`db` stays None when DATABASE_URL is not configured; every helper then
answers with a 500 so the API still boots for schema introspection.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING, MongoClient

import config
from logger import get_logger

logger = get_logger(__name__)

db = None
if config.DATABASE_URL:
    _client = MongoClient(config.DATABASE_URL)
    db = _client[config.DATABASE_NAME]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # pymongo hands back naive datetimes that are already UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_collection(name: str):
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db[name]


def to_oid(val):
    try:
        return ObjectId(str(val))
    except Exception:
        return None


def id_query(id_str: str, extra: Optional[dict] = None) -> dict:
    oid = to_oid(id_str)
    q = {"$or": ([{"_id": oid}] if oid else []) + [{"id": id_str}]}
    if extra:
        q = {"$and": [q, extra]}
    return q


def insert_with_id(collection: str, doc: dict) -> str:
    col = get_collection(collection)
    res = col.insert_one(doc)
    oid = str(res.inserted_id)
    col.update_one({"_id": res.inserted_id}, {"$set": {"id": oid}})
    doc["id"] = oid
    return oid


def get_by_id(collection: str, id_str: str, extra: Optional[dict] = None):
    return get_collection(collection).find_one(id_query(id_str, extra))


def serialize(doc: Optional[dict]):
    if not doc:
        return doc
    oid = doc.pop("_id", None)
    if not doc.get("id") and oid is not None:
        doc["id"] = str(oid)
    for k, v in list(doc.items()):
        if isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc


def list_many(collection: str, query: dict = None, sort: Optional[list] = None,
              limit: Optional[int] = None, skip: Optional[int] = None, projection: Optional[dict] = None):
    cursor = get_collection(collection).find(query or {}, projection)
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize(d) for d in cursor]


def paginate(collection: str, query: dict, page: int, limit: int, sort: Optional[list] = None):
    """Return one page of documents plus the pagination block clients render."""
    total = get_collection(collection).count_documents(query)
    items = list_many(collection, query, sort=sort, limit=limit, skip=(page - 1) * limit)
    pagination = {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }
    return items, pagination


def flatten_updates(updates: dict, prefix: str = "") -> dict:
    """Turn nested partial updates into dotted $set paths so siblings survive."""
    flat = {}
    for key, value in updates.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(flatten_updates(value, prefix=f"{path}."))
        else:
            flat[path] = value
    return flat


def ensure_indexes():
    if db is None:
        logger.warning("indexes_skipped", reason="database not configured")
        return
    db["farmer"].create_index("email", unique=True)
    db["advisory"].create_index([("farmerId", ASCENDING), ("createdAt", DESCENDING)])
    db["advisory"].create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
    db["advisory"].create_index([("category", ASCENDING), ("createdAt", DESCENDING)])
    db["practice"].create_index("category")
    db["gamification"].create_index("farmerId", unique=True)
    db["adoption"].create_index([("farmerId", ASCENDING), ("practiceId", ASCENDING)], unique=True)
    db["message"].create_index([("farmerId", ASCENDING), ("createdAt", DESCENDING)])
    db["simulation"].create_index([("farmerId", ASCENDING), ("createdAt", DESCENDING)])
    logger.info("indexes_ensured", database=db.name)
