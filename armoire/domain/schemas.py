# armoire/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime
from enum import Enum


class UserCreate(BaseModel):
    """Schema for creating a user."""

    name: str = Field(..., min_length=1, max_length=100)
    phone: str | None = Field(None, max_length=17)
    email: str | None = None
    role: str = Field("USER", pattern="^(USER|ADMIN)$")


class UserRead(BaseModel):
    id: int
    name: str
    phone: str | None = None
    email: str | None = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class AddressIn(BaseModel):
    street_address: str | None = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    is_default: bool = False


class AddressOut(AddressIn):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)


class VariantIn(BaseModel):
    size: str
    color: str
    sku: str
    stock_quantity: int = Field(0, ge=0)
    additional_price: Decimal = Field(Decimal("0"), ge=0)


class ProductCreate(BaseModel):
    """Schema for the admin product form (product + its variants)."""

    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    base_price: Decimal = Field(..., gt=0)
    variants: List[VariantIn] = Field(default_factory=list)


class VariantOut(VariantIn):
    id: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    name: str
    slug: str
    base_price: Decimal
    is_active: bool
    variants: List[VariantOut]

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    """Schema for adding a variant to the cart."""

    variant_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class QuantityIn(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemOut(BaseModel):
    product_id: int
    variant_id: int
    quantity: int
    unit_price: Decimal


class CartOut(BaseModel):
    cart_id: int | None
    user_id: int
    status: str
    items: List[CartItemOut]
    subtotal: Decimal


class CheckoutIn(BaseModel):
    shipping_address_id: int = Field(..., gt=0)


class OrderItemOut(BaseModel):
    product_id: int
    variant_id: int
    quantity: int
    unit_price_at_purchase: Decimal

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema for an order (response)."""

    id: int
    order_number: str
    user_id: int
    status: str
    payment_status: str
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total: Decimal
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    """Everything the client needs to open the gateway's payment UI."""

    order: OrderOut
    gateway_order_id: str
    gateway_key_id: str
    amount: int
    currency: str


class PaymentVerifyIn(BaseModel):
    order_number: str
    gateway_order_id: str
    gateway_payment_id: str
    signature: str


class CancelIn(BaseModel):
    reason: str | None = Field(None, max_length=500)


class OrderSort(str, Enum):
    CREATED_AT_DESC = "CREATED_AT_DESC"
    CREATED_AT_ASC = "CREATED_AT_ASC"
    ORDER_NUMBER_DESC = "ORDER_NUMBER_DESC"
    ORDER_NUMBER_ASC = "ORDER_NUMBER_ASC"
    STATUS_DESC = "STATUS_DESC"
    STATUS_ASC = "STATUS_ASC"
    PAYMENT_STATUS_DESC = "PAYMENT_STATUS_DESC"
    PAYMENT_STATUS_ASC = "PAYMENT_STATUS_ASC"
    TOTAL_AMOUNT_DESC = "TOTAL_AMOUNT_DESC"
    TOTAL_AMOUNT_ASC = "TOTAL_AMOUNT_ASC"


class OrderPage(BaseModel):
    data: List[OrderOut]
    page: int
    size: int
    total_elements: int
    total_pages: int


class SendOtpIn(BaseModel):
    phone: str = Field(..., min_length=10)


class VerifyOtpIn(BaseModel):
    phone: str = Field(..., min_length=10)
    otp: str = Field(..., pattern=r"^\d{6}$")


class OtpOut(BaseModel):
    success: bool
    message: str


class LowStockOut(BaseModel):
    variant_id: int
    product_id: int
    product_name: str
    sku: str
    stock_quantity: int


class DashboardOut(BaseModel):
    """Admin panel: zamowienia wg statusow, przychod, niskie stany."""

    total_orders: int
    orders_by_status: dict[str, int]
    payments_by_status: dict[str, int]
    revenue: Decimal
    low_stock: List[LowStockOut]
