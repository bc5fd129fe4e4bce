from datetime import datetime, timedelta, timezone

import pytest

import reporting
from errors import ValidationError

SELLER = "seller@medishop.com"


@pytest.fixture
def medicines(mongo):
    mine = mongo["medicine"].insert_many([
        {"name": "Napa", "seller": {"email": SELLER}},
        {"name": "Seclo", "seller": {"email": SELLER}},
    ]).inserted_ids
    theirs = mongo["medicine"].insert_one({"name": "Fexo", "seller": {"email": "other@medishop.com"}}).inserted_id
    return [str(m) for m in mine], str(theirs)


def add_order(mongo, items, payment_status="paid", order_status="confirmed", age_days=0):
    return mongo["order"].insert_one({
        "payment_intent_id": "pi_x",
        "customer_info": {"email": "buyer@medishop.com", "full_name": "Buyer"},
        "items": items,
        "payment_status": payment_status,
        "order_status": order_status,
        "created_at": datetime.now(timezone.utc) - timedelta(days=age_days),
    }).inserted_id


def test_classify_payment():
    assert reporting.classify_payment({"payment_status": "paid", "order_status": "cancelled"}) == "completed"
    assert reporting.classify_payment({"payment_status": "pending", "order_status": "cancelled"}) == "failed"
    assert reporting.classify_payment({"payment_status": "failed", "order_status": "failed"}) == "failed"
    assert reporting.classify_payment({"payment_status": "pending", "order_status": "confirmed"}) == "pending"


def test_line_item_reference_falls_back_to_underscore_id():
    assert reporting.line_item_medicine_id({"medicine_id": "abc"}) == "abc"
    assert reporting.line_item_medicine_id({"_id": "def"}) == "def"
    assert reporting.line_item_medicine_id({"name": "x"}) is None


def test_history_only_counts_seller_items(mongo, medicines):
    (napa, seclo), fexo = medicines
    order_id = add_order(mongo, [
        {"medicine_id": napa, "price": 20.0, "quantity": 3},
        {"_id": seclo, "price": 40.0, "quantity": 1},
        {"medicine_id": fexo, "price": 999.0, "quantity": 1},
    ])
    add_order(mongo, [{"medicine_id": fexo, "price": 10.0, "quantity": 1}])

    rows = reporting.payment_history(mongo, SELLER)

    assert len(rows) == 1
    row = rows[0]
    assert row["order_id"] == str(order_id)
    assert row["gross_amount"] == 100.0
    assert row["commission"] == 10.0
    assert row["net_amount"] == 90.0
    assert row["payment_status"] == "completed"
    assert {i["medicine_id"] for i in row["items"]} == {napa, seclo}


def test_history_newest_first_with_three_way_status(mongo, medicines):
    (napa, _), _ = medicines
    item = [{"medicine_id": napa, "price": 10.0, "quantity": 1}]
    add_order(mongo, item, payment_status="pending", order_status="cancelled", age_days=3)
    add_order(mongo, item, payment_status="pending", order_status="confirmed", age_days=2)
    add_order(mongo, item, payment_status="paid", age_days=1)

    statuses = [r["payment_status"] for r in reporting.payment_history(mongo, SELLER)]
    assert statuses == ["completed", "pending", "failed"]


def test_stats_paid_and_pending(mongo, medicines):
    (napa, _), _ = medicines
    add_order(mongo, [{"medicine_id": napa, "price": 50.0, "quantity": 2}], payment_status="paid")
    add_order(mongo, [{"medicine_id": napa, "price": 30.0, "quantity": 1}], payment_status="pending")

    stats = reporting.payment_stats(mongo, SELLER)

    assert stats == {
        "total_earnings": 90.0,
        "total_commissions": 10.0,
        "completed_payments": 1,
        "pending_payments": 1,
        "total_payments": 2,
    }


def test_stats_count_cancelled_as_pending(mongo, medicines):
    (napa, _), _ = medicines
    add_order(mongo, [{"medicine_id": napa, "price": 10.0, "quantity": 1}], payment_status="failed", order_status="cancelled")

    stats = reporting.payment_stats(mongo, SELLER)
    assert stats["pending_payments"] == 1
    assert stats["completed_payments"] == 0
    assert stats["total_earnings"] == 0


def test_stats_round_to_cents(mongo, medicines):
    (napa, _), _ = medicines
    add_order(mongo, [{"medicine_id": napa, "price": 3.33, "quantity": 3}])

    stats = reporting.payment_stats(mongo, SELLER)
    assert stats["total_earnings"] == 8.99
    assert stats["total_commissions"] == 1.0


def test_seller_without_medicines_has_empty_report(mongo):
    assert reporting.payment_history(mongo, "nobody@medishop.com") == []
    assert reporting.payment_stats(mongo, "nobody@medishop.com")["total_payments"] == 0


def test_blank_email_rejected(mongo):
    with pytest.raises(ValidationError):
        reporting.payment_history(mongo, "  ")


def test_seller_routes(client, mongo, medicines):
    (napa, _), _ = medicines
    add_order(mongo, [{"medicine_id": napa, "price": 100.0, "quantity": 1}])

    rows = client.get(f"/seller/payments/{SELLER}").json()
    assert rows[0]["net_amount"] == 90.0
    stats = client.get(f"/seller/payment-stats/{SELLER}").json()
    assert stats["completed_payments"] == 1
    assert client.get("/seller/payments/%20").status_code == 400


def test_report_matches_mixed_case_seller_email(client, mongo):
    medicine = client.post(
        "/medicines",
        json={"name": "Napa", "price_per_unit": 50.0, "seller": {"email": "Seller@MediShop.COM"}},
    ).json()
    add_order(mongo, [{"medicine_id": medicine["id"], "price": 50.0, "quantity": 2}])

    rows = client.get("/seller/payments/Seller@MediShop.COM").json()
    assert [r["net_amount"] for r in rows] == [90.0]
    stats = client.get("/seller/payment-stats/Seller@MediShop.COM").json()
    assert stats["completed_payments"] == 1
    assert len(client.get("/medicines/seller/Seller@MediShop.COM").json()) == 1
