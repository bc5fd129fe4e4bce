"""
Database Schemas for the Medicine Shop

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name:
- Medicine -> "medicine"
- AdvertiseRequest -> "advertiserequest"
- HealthBlog -> "healthblog"
"""
from datetime import date
from typing import List, Literal, Optional

from bson.objectid import ObjectId
from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

Role = Literal["customer", "seller", "admin"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled", "failed"]
AdvertiseStatus = Literal["pending", "approved", "active", "rejected"]


def check_object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError(f"invalid id: {value}")
    return value


class User(BaseModel):
    name: Optional[str] = Field(None, description="Display name")
    email: EmailStr
    photo_url: Optional[str] = None
    role: Role = "customer"


class SellerInfo(BaseModel):
    email: EmailStr
    name: Optional[str] = None


class Medicine(BaseModel):
    name: str
    generic_name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    company: Optional[str] = None
    price_per_unit: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    discount_price: float = Field(0, ge=0, description="Derived from price_per_unit and discount")
    stock_quantity: int = Field(0, ge=0)
    in_stock: bool = Field(False, description="Derived: stock_quantity > 0")
    seller: Optional[SellerInfo] = None
    is_banner: bool = False
    rating: float = Field(0, ge=0, le=5)
    review_count: int = Field(0, ge=0)


class Category(BaseModel):
    name: str
    image: Optional[str] = None
    description: Optional[str] = None


class HealthBlog(BaseModel):
    title: str
    content: str
    author: Optional[str] = None
    image: Optional[str] = None


class Company(BaseModel):
    name: str
    logo: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None


class CustomerInfo(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class LineItem(BaseModel):
    """One cart line; client cart snapshots may carry the medicine id as _id"""

    medicine_id: str = Field(
        ...,
        validation_alias=AliasChoices("medicine_id", "_id"),
        description="Referenced medicine id as string",
    )
    name: Optional[str] = Field(None, description="Snapshot of medicine name")
    price: float = Field(..., ge=0, description="Unit price paid")
    quantity: int = Field(..., ge=1)

    @field_validator("medicine_id")
    @classmethod
    def check_medicine_id(cls, value: str) -> str:
        return check_object_id(value)


class Order(BaseModel):
    payment_intent_id: str
    customer_info: CustomerInfo
    items: List[LineItem]
    order_total: float = Field(..., ge=0)
    payment_status: PaymentStatus = "pending"
    order_status: OrderStatus = "pending"


class AdvertiseRequest(BaseModel):
    medicine_id: str
    title: str = Field(..., min_length=1)
    seller_email: EmailStr
    description: Optional[str] = None
    image: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    cost: float = Field(0, ge=0)
    status: AdvertiseStatus = "pending"
    clicks: int = 0
    impressions: int = 0
    conversions: int = 0
    admin_note: Optional[str] = None

    @field_validator("medicine_id")
    @classmethod
    def check_medicine_id(cls, value: str) -> str:
        return check_object_id(value)
