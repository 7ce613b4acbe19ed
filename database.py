"""
MongoDB access

The connection is opened from DATABASE_URL at import. Collections are looked up
through `collection()` so tests and scripts can swap the database with
`use_database()`.
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient, ReturnDocument

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "ecommerce")

client: Optional[MongoClient] = None
db = None

if DATABASE_URL:
    client = MongoClient(DATABASE_URL, serverSelectionTimeoutMS=5000)
    db = client[DATABASE_NAME]


def use_database(database) -> None:
    global db
    db = database


def collection(name: str):
    if db is None:
        raise RuntimeError("Database is not configured; set DATABASE_URL")
    return db[name]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    """Insert a document stamped with `date` and return it with its `_id`."""
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    doc.setdefault("date", utcnow())
    result = collection(collection_name).insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


def next_sequence(name: str) -> int:
    """Atomically bump and return the named counter."""
    counter = collection("counter").find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["seq"])


def ensure_indexes() -> None:
    collection("user").create_index([("email", ASCENDING)], unique=True)
    collection("product").create_index([("id", ASCENDING)], unique=True)

    # Seed the product counter from existing data so ids are never reused.
    last = collection("product").find_one(sort=[("id", -1)])
    if last is not None:
        collection("counter").update_one(
            {"_id": "product"}, {"$max": {"seq": int(last["id"])}}, upsert=True
        )
    logger.info("Indexes ensured on %s", getattr(db, "name", "?"))
