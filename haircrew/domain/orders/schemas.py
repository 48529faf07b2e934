"""Order domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import (
    validate_indian_phone,
    validate_person_name,
    validate_pincode,
    validate_street_address,
)


class ShippingInfo(BaseModel):
    name: str
    phone: str
    address: str
    city: str
    state: str
    pincode: str
    country: str = "India"

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_person_name(v, "Name")

    @field_validator("city")
    @classmethod
    def validate_city(cls, v):
        return validate_person_name(v, "City")

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        return validate_person_name(v, "State")

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_indian_phone(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        return validate_street_address(v)

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v):
        return validate_pincode(v)


class OrderItemInput(BaseModel):
    """Cart line; name and price sent by the storefront are ignored in favour of the catalog"""

    id: str
    quantity: int
    name: Optional[str] = None
    price: Optional[float] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if not v:
            raise ValueError("Product ID is required")
        return v

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("Quantity must be a positive integer")
        return v


class OrderCreate(BaseModel):
    """Schema for placing an order"""

    method: str
    status: Literal["pending", "payment_pending_confirmation"] = "pending"
    items: list[OrderItemInput]
    shipping: ShippingInfo
    createdAt: Optional[datetime] = None

    @field_validator("method")
    @classmethod
    def validate_method(cls, v):
        if v not in ("COD", "UPI", "CARD"):
            raise ValueError("Please select a valid payment method")
        return v

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v


class OrderStatusRequest(BaseModel):
    orderId: Optional[str] = None
    newStatus: Optional[str] = None


class OrderItemResponse(BaseModel):
    id: str
    productId: str
    quantity: int
    price: float


class OrderResponse(BaseModel):
    """Schema for order response"""

    id: str
    orderNumber: str
    userId: Optional[str]
    status: str
    paymentStatus: str
    paymentMethod: Optional[str]
    subtotal: float
    shipping: float
    total: float
    currency: str
    shippingAddress: Optional[dict[str, Any]]
    orderItems: list[OrderItemResponse] = []
    createdAt: Optional[datetime]
    updatedAt: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_model(cls, order) -> "OrderResponse":
        return cls(
            id=order.id,
            orderNumber=order.order_number,
            userId=order.user_id,
            status=order.status,
            paymentStatus=order.payment_status,
            paymentMethod=order.payment_method,
            subtotal=order.subtotal,
            shipping=order.shipping,
            total=order.total,
            currency=order.currency,
            shippingAddress=order.shipping_address,
            orderItems=[
                OrderItemResponse(id=i.id, productId=i.product_id, quantity=i.quantity, price=i.price)
                for i in order.items
            ],
            createdAt=order.created_at,
            updatedAt=order.updated_at,
        )


class OrderSummary(BaseModel):
    id: str
    orderNumber: str
    total: float
    status: str
    createdAt: Optional[datetime]


class OrderHistoryResponse(BaseModel):
    orders: list[OrderSummary]
    total: int


class AdminOrderRow(OrderSummary):
    paymentStatus: str
    paymentMethod: Optional[str]
    customerName: Optional[str]
    customerEmail: Optional[str]
    itemCount: int


class AdminOrderListResponse(BaseModel):
    orders: list[AdminOrderRow]
    total: int
    page: int
    pageSize: int
    totalPages: int
