import logging
import os
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field, field_validator
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

import advertise
import catalog
import database
import reporting
from database import create_document, get_db, get_documents, normalize_email, parse_object_id, serialize_doc
from errors import ConflictError, NotFoundError, ServiceError
from orders import CheckoutWorkflow, all_orders, orders_for_customer
from payments import PaymentGateway, get_gateway
from schemas import (
    AdvertiseRequest as AdvertiseRequestSchema,
    AdvertiseStatus,
    Category as CategorySchema,
    Company as CompanySchema,
    CustomerInfo,
    HealthBlog as HealthBlogSchema,
    LineItem,
    Medicine as MedicineSchema,
    User as UserSchema,
    check_object_id,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Medicine Shop Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------- Errors -----------------------
@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("%s %s database error", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": f"Database error: {exc}"})


def get_checkout(
    db: Database = Depends(get_db),
    gateway: Optional[PaymentGateway] = Depends(get_gateway),
) -> CheckoutWorkflow:
    return CheckoutWorkflow(db, gateway)


# ----------------------- Models -----------------------
class MedicineUpdateBody(BaseModel):
    name: Optional[str] = None
    generic_name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    company: Optional[str] = None
    price_per_unit: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    stock_quantity: Optional[int] = Field(None, ge=0)
    is_banner: Optional[bool] = None


class PaymentIntentBody(BaseModel):
    amount: float
    currency: str = "usd"
    customer_info: Optional[CustomerInfo] = None
    cart_items: Optional[List[LineItem]] = None


class ConfirmPaymentBody(BaseModel):
    payment_intent_id: str
    customer_info: CustomerInfo
    cart_items: List[LineItem] = Field(..., min_length=1)
    order_total: float = Field(..., ge=0)


class AdvertiseRequestUpdateBody(BaseModel):
    medicine_id: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1)
    seller_email: Optional[EmailStr] = None
    description: Optional[str] = None
    image: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    cost: Optional[float] = Field(None, ge=0)
    status: Optional[AdvertiseStatus] = None
    clicks: Optional[int] = Field(None, ge=0)
    impressions: Optional[int] = Field(None, ge=0)
    conversions: Optional[int] = Field(None, ge=0)
    admin_note: Optional[str] = None

    @field_validator("medicine_id")
    @classmethod
    def check_medicine_id(cls, value: Optional[str]) -> Optional[str]:
        return check_object_id(value) if value is not None else value


class AdvertiseStatusBody(BaseModel):
    status: AdvertiseStatus
    admin_note: Optional[str] = None


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"message": "Medicine Shop API running"}


@app.get("/test")
def test_database(gateway: Optional[PaymentGateway] = Depends(get_gateway)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
        "payment_gateway": "✅ Configured" if gateway is not None else "❌ Not Configured",
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        if database.db is not None:
            response["collections"] = database.db.list_collection_names()[:10]
            response["database"] = "✅ Connected & Working"
            response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"❌ Error: {str(e)[:80]}"
    return response


# ----------------------- Users -----------------------
@app.post("/users", status_code=201)
def create_user(body: UserSchema, db: Database = Depends(get_db)):
    if db["user"].find_one({"email": body.email}):
        raise ConflictError("User already exists")
    user_id = create_document(db, "user", body)
    return serialize_doc(db["user"].find_one({"_id": parse_object_id(user_id)}))


@app.get("/users")
def list_users(db: Database = Depends(get_db)):
    return [serialize_doc(u) for u in get_documents(db, "user")]


@app.get("/users/{email}")
def get_user(email: str, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": normalize_email(email)})
    if not user:
        raise NotFoundError("User not found")
    return serialize_doc(user)


# ----------------------- Medicines -----------------------
@app.get("/medicines")
def list_medicines(
    category: Optional[str] = None,
    seller_email: Optional[str] = None,
    banner: Optional[bool] = None,
    db: Database = Depends(get_db),
):
    return catalog.list_medicines(db, category=category, seller_email=seller_email, banner=banner)


@app.get("/medicines/seller/{email}")
def list_seller_medicines(email: str, db: Database = Depends(get_db)):
    return catalog.list_medicines(db, seller_email=email)


@app.get("/medicines/{medicine_id}")
def get_medicine(medicine_id: str, db: Database = Depends(get_db)):
    return catalog.get_medicine(db, medicine_id)


@app.post("/medicines", status_code=201)
def create_medicine(body: MedicineSchema, db: Database = Depends(get_db)):
    return catalog.create_medicine(db, body)


@app.put("/medicines/{medicine_id}")
def update_medicine(medicine_id: str, body: MedicineUpdateBody, db: Database = Depends(get_db)):
    return catalog.update_medicine(db, medicine_id, body.model_dump(exclude_none=True))


@app.delete("/medicines/{medicine_id}")
def delete_medicine(medicine_id: str, db: Database = Depends(get_db)):
    catalog.delete_medicine(db, medicine_id)
    return {"ok": True}


# ----------------------- Categories & content -----------------------
@app.get("/categories")
def list_categories(db: Database = Depends(get_db)):
    return [serialize_doc(c) for c in get_documents(db, "category")]


@app.post("/categories", status_code=201)
def create_category(body: CategorySchema, db: Database = Depends(get_db)):
    cid = create_document(db, "category", body)
    return {"id": cid, **body.model_dump()}


@app.get("/health-blogs")
def list_health_blogs(db: Database = Depends(get_db)):
    blogs = get_documents(db, "healthblog", sort=[("created_at", DESCENDING)])
    return [serialize_doc(b) for b in blogs]


@app.get("/companies")
def list_companies(db: Database = Depends(get_db)):
    return [serialize_doc(c) for c in get_documents(db, "company")]


# ----------------------- Payments -----------------------
@app.post("/payment-intent")
def create_payment_intent(body: PaymentIntentBody, checkout: CheckoutWorkflow = Depends(get_checkout)):
    return checkout.create_payment_intent(
        amount=body.amount,
        currency=body.currency,
        customer_info=body.customer_info,
        cart_items=body.cart_items,
    )


@app.post("/confirm-payment", status_code=201)
def confirm_payment(body: ConfirmPaymentBody, checkout: CheckoutWorkflow = Depends(get_checkout)):
    return checkout.confirm_payment(
        payment_intent_id=body.payment_intent_id,
        customer_info=body.customer_info,
        cart_items=body.cart_items,
        order_total=body.order_total,
    )


# ----------------------- Orders -----------------------
@app.get("/orders")
def list_orders(db: Database = Depends(get_db)):
    return all_orders(db)


@app.get("/orders/{email}")
def list_customer_orders(email: str, db: Database = Depends(get_db)):
    return orders_for_customer(db, email)


# ----------------------- Seller -----------------------
@app.get("/seller/payments/{email}")
def seller_payments(email: str, db: Database = Depends(get_db)):
    return reporting.payment_history(db, email)


@app.get("/seller/payment-stats/{email}")
def seller_payment_stats(email: str, db: Database = Depends(get_db)):
    return reporting.payment_stats(db, email)


# ----------------------- Advertise requests -----------------------
@app.get("/advertise-requests/active/slider")
def active_advertise_requests(db: Database = Depends(get_db)):
    return advertise.active_slider(db)


@app.get("/advertise-requests/seller/{email}")
def seller_advertise_requests(email: str, db: Database = Depends(get_db)):
    return advertise.list_by_seller(db, email)


@app.get("/advertise-requests")
def list_advertise_requests(db: Database = Depends(get_db)):
    return advertise.list_all(db)


@app.get("/advertise-requests/{request_id}")
def get_advertise_request(request_id: str, db: Database = Depends(get_db)):
    return advertise.get(db, request_id)


@app.post("/advertise-requests", status_code=201)
def create_advertise_request(body: AdvertiseRequestSchema, db: Database = Depends(get_db)):
    return advertise.create(db, body)


@app.put("/advertise-requests/{request_id}")
def update_advertise_request(request_id: str, body: AdvertiseRequestUpdateBody, db: Database = Depends(get_db)):
    return advertise.update(db, request_id, body.model_dump(mode="json", exclude_none=True))


@app.delete("/advertise-requests/{request_id}")
def delete_advertise_request(request_id: str, db: Database = Depends(get_db)):
    advertise.delete(db, request_id)
    return {"ok": True}


@app.patch("/advertise-requests/{request_id}/status")
def update_advertise_status(request_id: str, body: AdvertiseStatusBody, db: Database = Depends(get_db)):
    return advertise.update_status(db, request_id, body.status, body.admin_note)


# ----------------------- Seed Demo Data -----------------------
DEMO_CATEGORIES = [
    {"name": "Tablet", "description": "Pressed solid doses"},
    {"name": "Syrup", "description": "Oral liquid medicines"},
    {"name": "Capsule", "description": "Encapsulated doses"},
    {"name": "Injection", "description": "Single-use injectables"},
]

DEMO_MEDICINES = [
    {
        "name": "Napa Extra",
        "generic_name": "Paracetamol + Caffeine",
        "category": "Tablet",
        "company": "Beximco",
        "price_per_unit": 2.5,
        "discount": 10,
        "stock_quantity": 500,
        "seller": {"email": "seller@medishop.com", "name": "Demo Seller"},
        "is_banner": True,
    },
    {
        "name": "Seclo 20",
        "generic_name": "Omeprazole",
        "category": "Capsule",
        "company": "Square",
        "price_per_unit": 6,
        "stock_quantity": 200,
        "seller": {"email": "seller@medishop.com", "name": "Demo Seller"},
    },
    {
        "name": "Tusca Plus",
        "generic_name": "Dextromethorphan",
        "category": "Syrup",
        "company": "Incepta",
        "price_per_unit": 85,
        "discount": 5,
        "stock_quantity": 40,
        "seller": {"email": "seller@medishop.com", "name": "Demo Seller"},
    },
]

DEMO_BLOGS = [
    {
        "title": "Taking antibiotics the right way",
        "content": "Finish the full course even when you feel better, and never share a prescription.",
        "author": "MediShop Pharmacist",
    },
]

DEMO_COMPANIES = [
    {"name": "Beximco", "website": "https://www.beximcopharma.com"},
    {"name": "Square", "website": "https://www.squarepharma.com.bd"},
]


@app.post("/seed")
def seed(db: Database = Depends(get_db)):
    if db["medicine"].count_documents({}) > 0:
        return {"seeded": False, "message": "Medicines already exist"}
    for c in DEMO_CATEGORIES:
        create_document(db, "category", CategorySchema(**c))
    for m in DEMO_MEDICINES:
        catalog.create_medicine(db, MedicineSchema(**m))
    for b in DEMO_BLOGS:
        create_document(db, "healthblog", HealthBlogSchema(**b))
    for c in DEMO_COMPANIES:
        create_document(db, "company", CompanySchema(**c))
    # create admin user if none
    if db["user"].count_documents({"role": "admin"}) == 0:
        create_document(db, "user", UserSchema(name="Admin", email="admin@medishop.com", role="admin"))
    return {"seeded": True, "medicines": db["medicine"].count_documents({})}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
