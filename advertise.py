"""
Advertisement requests

Sellers submit requests to have a medicine featured in the home page slider;
admins move them through pending -> approved / active / rejected. A request
is shown while it is approved or active and today falls inside its
[start_date, end_date] window. Dates are stored as YYYY-MM-DD strings so the
window check is a plain string comparison in the query.
"""
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, get_args

from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, get_documents, normalize_email, parse_object_id, serialize_doc, utcnow
from errors import NotFoundError, ValidationError
from schemas import AdvertiseRequest, AdvertiseStatus

COLLECTION = "advertiserequest"
STATUSES = get_args(AdvertiseStatus)
LIVE_STATUSES = ["approved", "active"]
DATE_FIELDS = ("start_date", "end_date")


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def _date_string(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value)[:10]).isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def get(db: Database, request_id: str) -> dict:
    doc = db[COLLECTION].find_one({"_id": parse_object_id(request_id)})
    if not doc:
        raise NotFoundError("Advertise request not found")
    return serialize_doc(doc)


def create(db: Database, payload: AdvertiseRequest) -> dict:
    data = payload.model_dump(mode="json")
    data.update(status="pending", clicks=0, impressions=0, conversions=0, admin_note=None)
    data["submitted_at"] = utcnow()
    request_id = create_document(db, COLLECTION, data)
    return get(db, request_id)


def list_by_seller(db: Database, email: str) -> List[dict]:
    docs = get_documents(db, COLLECTION, {"seller_email": normalize_email(email)}, sort=[("submitted_at", DESCENDING)])
    return [serialize_doc(d) for d in docs]


def list_all(db: Database) -> List[dict]:
    return [serialize_doc(d) for d in get_documents(db, COLLECTION)]


def update(db: Database, request_id: str, changes: Dict[str, Any]) -> dict:
    oid = parse_object_id(request_id)
    update_data = {k: v for k, v in changes.items() if k not in ("_id", "id")}
    if not update_data:
        raise ValidationError("No changes provided")
    if "status" in update_data and update_data["status"] not in STATUSES:
        raise ValidationError(f"Invalid status: {update_data['status']}")
    for field in DATE_FIELDS:
        if field in update_data:
            update_data[field] = _date_string(update_data[field])
    update_data["updated_at"] = utcnow()

    res = db[COLLECTION].update_one({"_id": oid}, {"$set": update_data})
    if res.matched_count == 0:
        raise NotFoundError("Advertise request not found")
    return get(db, request_id)


def delete(db: Database, request_id: str) -> None:
    res = db[COLLECTION].delete_one({"_id": parse_object_id(request_id)})
    if res.deleted_count == 0:
        raise NotFoundError("Advertise request not found")


def update_status(db: Database, request_id: str, status: str, admin_note: Optional[str] = None) -> dict:
    if status not in STATUSES:
        raise ValidationError(f"Invalid status: {status}")
    now = utcnow()
    res = db[COLLECTION].update_one(
        {"_id": parse_object_id(request_id)},
        {"$set": {"status": status, "admin_note": admin_note, "reviewed_at": now, "updated_at": now}},
    )
    if res.matched_count == 0:
        raise NotFoundError("Advertise request not found")
    return get(db, request_id)


def active_slider(db: Database, on: Optional[str] = None) -> List[dict]:
    on = on or today()
    filt = {
        "status": {"$in": LIVE_STATUSES},
        "start_date": {"$lte": on},
        "end_date": {"$gte": on},
    }
    return [serialize_doc(d) for d in get_documents(db, COLLECTION, filt)]
