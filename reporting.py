"""
Seller payment reporting

Orders are matched against a seller's medicines line by line. The platform
keeps a fixed commission on each seller's gross amount.

Note the two views classify differently: payment_history reports
completed / failed / pending, while payment_stats counts everything that is
not paid as pending, cancelled and failed orders included.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from pymongo import DESCENDING
from pymongo.database import Database

from database import get_documents, normalize_email
from errors import ValidationError

COMMISSION_RATE = 0.10


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


def _require_email(email: str) -> str:
    if not email or not email.strip():
        raise ValidationError("Seller email is required")
    return normalize_email(email)


def seller_medicine_ids(db: Database, email: str) -> Set[str]:
    cursor = db["medicine"].find({"seller.email": email}, {"_id": 1})
    return {str(d["_id"]) for d in cursor}


def line_item_medicine_id(item: Dict[str, Any]) -> Optional[str]:
    ref = item.get("medicine_id") or item.get("_id")
    return str(ref) if ref is not None else None


def seller_items(order: Dict[str, Any], medicine_ids: Set[str]) -> List[Dict[str, Any]]:
    matched = []
    for item in order.get("items") or []:
        ref = line_item_medicine_id(item)
        if ref in medicine_ids:
            row = {k: v for k, v in item.items() if k != "_id"}
            row["medicine_id"] = ref
            matched.append(row)
    return matched


def gross_amount(items: List[Dict[str, Any]]) -> float:
    return sum(float(i.get("price") or 0) * int(i.get("quantity") or 0) for i in items)


def classify_payment(order: Dict[str, Any]) -> str:
    if order.get("payment_status") == "paid":
        return "completed"
    if order.get("order_status") in ("cancelled", "failed"):
        return "failed"
    return "pending"


def _seller_orders(db: Database, email: str):
    """Yield (order, matching items) for every order touching the seller's medicines"""
    medicine_ids = seller_medicine_ids(db, email)
    if not medicine_ids:
        return
    for order in get_documents(db, "order", sort=[("created_at", DESCENDING)]):
        items = seller_items(order, medicine_ids)
        if items:
            yield order, items


def payment_history(db: Database, email: str) -> List[dict]:
    email = _require_email(email)
    rows = []
    for order, items in _seller_orders(db, email):
        gross = gross_amount(items)
        commission = gross * COMMISSION_RATE
        customer = order.get("customer_info") or {}
        rows.append({
            "order_id": str(order["_id"]),
            "payment_intent_id": order.get("payment_intent_id"),
            "customer_email": customer.get("email"),
            "customer_name": customer.get("full_name"),
            "items": items,
            "gross_amount": round(gross, 2),
            "commission": round(commission, 2),
            "net_amount": round(gross - commission, 2),
            "payment_status": classify_payment(order),
            "order_status": order.get("order_status"),
            "created_at": _iso(order.get("created_at")),
        })
    return rows


def payment_stats(db: Database, email: str) -> dict:
    email = _require_email(email)
    total_earnings = 0.0
    total_commissions = 0.0
    completed = 0
    pending = 0
    for order, items in _seller_orders(db, email):
        if order.get("payment_status") == "paid":
            gross = gross_amount(items)
            commission = gross * COMMISSION_RATE
            total_earnings += gross - commission
            total_commissions += commission
            completed += 1
        else:
            pending += 1
    return {
        "total_earnings": round(total_earnings, 2),
        "total_commissions": round(total_commissions, 2),
        "completed_payments": completed,
        "pending_payments": pending,
        "total_payments": completed + pending,
    }
