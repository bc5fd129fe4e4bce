"""
Database access

MongoDB connection plus the small helpers every route shares.
The connection is opened once per process from DATABASE_URL / DATABASE_NAME.
"""
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from bson.errors import InvalidId
from bson.objectid import ObjectId
from dotenv import load_dotenv
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database

from errors import InternalError, ValidationError

load_dotenv()

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")

if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]


def get_db() -> Database:
    if db is None:
        raise InternalError("Database not available. Check DATABASE_URL and DATABASE_NAME environment variables.")
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(database: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a single document with created_at/updated_at stamps, return its id"""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    now = utcnow()
    data_dict["created_at"] = now
    data_dict["updated_at"] = now
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(
    database: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    return list(cursor)


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid id: {value}")


def normalize_email(value: str) -> str:
    """Normalize an email the same way EmailStr does before it is stored"""
    try:
        return validate_email((value or "").strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}")


def serialize_doc(doc):
    if not doc:
        return doc
    doc = dict(doc)
    _id = doc.get("_id")
    if isinstance(_id, ObjectId):
        doc["id"] = str(_id)
        del doc["_id"]
    # convert datetimes
    for k, v in list(doc.items()):
        if isinstance(v, datetime):
            doc[k] = v.isoformat()
    return doc
