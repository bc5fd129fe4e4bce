"""
Medicine catalog

discount_price and in_stock are derived fields: they are rewritten from
price_per_unit, discount and stock_quantity on every create and update.
"""
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from database import create_document, get_documents, normalize_email, parse_object_id, serialize_doc, utcnow
from errors import NotFoundError, ValidationError
from schemas import Medicine

DERIVED_FROM = {"price_per_unit", "discount", "stock_quantity"}


def discount_price(price: float, discount: float) -> float:
    return price * (1 - discount / 100)


def apply_derived_fields(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc["discount_price"] = discount_price(doc.get("price_per_unit", 0), doc.get("discount", 0) or 0)
    doc["in_stock"] = (doc.get("stock_quantity") or 0) > 0
    return doc


def create_medicine(db: Database, medicine: Medicine) -> dict:
    data = apply_derived_fields(medicine.model_dump())
    medicine_id = create_document(db, "medicine", data)
    return get_medicine(db, medicine_id)


def get_medicine(db: Database, medicine_id: str) -> dict:
    doc = db["medicine"].find_one({"_id": parse_object_id(medicine_id)})
    if not doc:
        raise NotFoundError("Medicine not found")
    return serialize_doc(doc)


def list_medicines(
    db: Database,
    category: Optional[str] = None,
    seller_email: Optional[str] = None,
    banner: Optional[bool] = None,
) -> List[dict]:
    filt: Dict[str, Any] = {}
    if category:
        filt["category"] = category
    if seller_email:
        filt["seller.email"] = normalize_email(seller_email)
    if banner is not None:
        filt["is_banner"] = banner
    return [serialize_doc(d) for d in get_documents(db, "medicine", filt)]


def update_medicine(db: Database, medicine_id: str, changes: Dict[str, Any]) -> dict:
    if not changes:
        raise ValidationError("No changes provided")
    oid = parse_object_id(medicine_id)
    current = db["medicine"].find_one({"_id": oid})
    if not current:
        raise NotFoundError("Medicine not found")

    update = {k: v for k, v in changes.items() if k not in ("discount_price", "in_stock")}
    if DERIVED_FROM & update.keys():
        merged = apply_derived_fields({**current, **update})
        update["discount_price"] = merged["discount_price"]
        update["in_stock"] = merged["in_stock"]
    update["updated_at"] = utcnow()
    db["medicine"].update_one({"_id": oid}, {"$set": update})
    return get_medicine(db, medicine_id)


def delete_medicine(db: Database, medicine_id: str) -> None:
    res = db["medicine"].delete_one({"_id": parse_object_id(medicine_id)})
    if res.deleted_count == 0:
        raise NotFoundError("Medicine not found")
