"""
Checkout and orders

A payment intent is created up front for the cart total; once the client has
completed it, confirm_payment records the order and takes the purchased
quantities out of stock.
"""
import logging
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, get_documents, normalize_email, parse_object_id, serialize_doc, utcnow
from errors import GatewayUnavailable, PaymentNotCompleted, ValidationError
from payments import PaymentGateway, to_minor_units
from schemas import CustomerInfo, LineItem, Order

logger = logging.getLogger(__name__)


class CheckoutWorkflow:
    def __init__(self, db: Database, gateway: Optional[PaymentGateway]):
        self.db = db
        self.gateway = gateway

    def _require_gateway(self) -> PaymentGateway:
        if self.gateway is None:
            raise GatewayUnavailable()
        return self.gateway

    def create_payment_intent(
        self,
        amount: float,
        currency: str = "usd",
        customer_info: Optional[CustomerInfo] = None,
        cart_items: Optional[List[LineItem]] = None,
    ) -> dict:
        gateway = self._require_gateway()
        if amount is None or amount <= 0:
            raise ValidationError("Valid amount is required")

        metadata = {
            "customer_email": customer_info.email if customer_info else "",
            "customer_name": (customer_info.full_name or "") if customer_info else "",
            "item_count": str(len(cart_items or [])),
            "order_type": "medicine_purchase",
        }
        authorization = gateway.authorize(to_minor_units(amount), currency, metadata)
        logger.info("Created payment intent %s for %s %s", authorization.id, amount, currency)
        return {"client_secret": authorization.client_secret, "payment_intent_id": authorization.id}

    def confirm_payment(
        self,
        payment_intent_id: str,
        customer_info: CustomerInfo,
        cart_items: List[LineItem],
        order_total: float,
    ) -> dict:
        gateway = self._require_gateway()
        if not cart_items:
            raise ValidationError("cart_items must not be empty")

        authorization = gateway.retrieve(payment_intent_id)
        if authorization.status != "succeeded":
            logger.warning("Payment intent %s not completed (status=%s)", payment_intent_id, authorization.status)
            raise PaymentNotCompleted()

        order = Order(
            payment_intent_id=payment_intent_id,
            customer_info=customer_info,
            items=cart_items,
            order_total=order_total,
            payment_status="paid",
            order_status="confirmed",
        )
        order_id = create_document(self.db, "order", order)

        # Each decrement is its own write; a failure part way through leaves
        # the order and the earlier decrements in place.
        for item in cart_items:
            self._take_from_stock(item)

        logger.info("Order %s confirmed for %s (%d items)", order_id, customer_info.email, len(cart_items))
        stored = self.db["order"].find_one({"_id": parse_object_id(order_id)})
        return {"order_id": order_id, "order": serialize_doc(stored)}

    def _take_from_stock(self, item: LineItem) -> None:
        medicines = self.db["medicine"]
        medicine_id = parse_object_id(item.medicine_id)
        medicines.update_one(
            {"_id": medicine_id},
            {
                "$inc": {"stock_quantity": -item.quantity},
                "$set": {"in_stock": True, "updated_at": utcnow()},
            },
        )
        updated = medicines.find_one({"_id": medicine_id})
        if updated and updated.get("stock_quantity", 0) <= 0:
            medicines.update_one({"_id": medicine_id}, {"$set": {"stock_quantity": 0, "in_stock": False}})
            logger.info("Medicine %s is out of stock", item.medicine_id)


def orders_for_customer(db: Database, email: str) -> List[dict]:
    docs = get_documents(db, "order", {"customer_info.email": normalize_email(email)}, sort=[("created_at", DESCENDING)])
    return [serialize_doc(d) for d in docs]


def all_orders(db: Database) -> List[dict]:
    docs = get_documents(db, "order", sort=[("created_at", DESCENDING)])
    return [serialize_doc(d) for d in docs]
