# supplyshop/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


# ---------------------------------------------------------------- cart
class CartItemIn(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1, description="Quantity to add (>= 1)")


class QuantityDeltaIn(BaseModel):
    delta: int


class CartLineOut(BaseModel):
    product_id: str
    name: str
    price: Decimal
    quantity: int
    image_url: Optional[str] = None


class CartOut(BaseModel):
    cart_id: str
    items: List[CartLineOut]
    count: int
    total: Decimal


# ---------------------------------------------------------------- checkout
class CheckoutLineIn(BaseModel):
    id: str = Field(..., min_length=1, description="product id")
    quantity: int = Field(..., ge=1)


class CheckoutIn(BaseModel):
    cart: List[CheckoutLineIn] = Field(default_factory=list)


class CheckoutOut(BaseModel):
    ok: bool = True
    orderId: str
    total: float


class OrderLineOut(BaseModel):
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: str
    user_id: str
    total: Decimal
    created_at: datetime
    items: List[OrderLineOut] = Field(default_factory=list)


class AdminOrderOut(OrderOut):
    customer_name: str


# ---------------------------------------------------------------- catalog
class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1)
    parent_id: Optional[str] = None
    slug: Optional[str] = None

    @field_validator("parent_id", "slug", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class CategoryOut(BaseModel):
    id: str
    name: str
    parent_id: Optional[str] = None
    slug: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryNode(CategoryOut):
    children: List["CategoryNode"] = Field(default_factory=list)


class SupplierIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SupplierOut(BaseModel):
    id: str
    name: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    supplier_id: str = Field(..., min_length=1)
    category_id: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("category_id", "image_url", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ProductOut(BaseModel):
    id: str
    name: str
    price: Decimal
    category_id: Optional[str] = None
    supplier_id: str
    image_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminProductOut(ProductOut):
    category_path: str
    supplier_name: Optional[str] = None


class ImageUploadOut(BaseModel):
    url: str


# ---------------------------------------------------------------- profiles / auth
Role = Literal["admin", "customer", "gabai"]


class ProfileIn(BaseModel):
    full_name: Optional[str] = None
    responsible_name: Optional[str] = None
    responsible_phone: Optional[str] = None
    institution_name: Optional[str] = None
    institution_address: Optional[str] = None


class ProfileOut(ProfileIn):
    id: str
    role: str

    model_config = ConfigDict(from_attributes=True)


class RoleIn(BaseModel):
    role: str = Field(..., min_length=1)


class SignupIn(ProfileIn):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: str = "customer"


class LoginIn(BaseModel):
    email: EmailStr
    password: str
    redirectTo: Optional[str] = None


class AuthSessionIn(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class AuthEventIn(BaseModel):
    event: str
    session: Optional[AuthSessionIn] = None


class EmailChangeIn(BaseModel):
    email: EmailStr
    redirect_base: Optional[str] = None
