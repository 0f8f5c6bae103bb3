from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional
from datetime import datetime


# Frozen cart line stored on an order
class OrderItemOut(BaseModel):
    name: str
    price: float
    image: Optional[str] = None
    quantity: int


class ShippingAddressIn(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)


class ShippingAddressOut(BaseModel):
    street: str
    city: str
    state: str
    zip: str


# Outcome of the payment step; "paid" carries the gateway references and signature
class PaymentOutcomeIn(BaseModel):
    kind: Literal["paid", "manual"]
    gateway_order_ref: Optional[str] = None
    gateway_payment_ref: Optional[str] = None
    signature: Optional[str] = None

    @model_validator(mode="after")
    def _paid_needs_refs(self):
        if self.kind == "paid" and not (self.gateway_order_ref and self.gateway_payment_ref and self.signature):
            raise ValueError("paid outcome requires gateway_order_ref, gateway_payment_ref and signature")
        return self


# Input schema for placing an order from the current cart
class OrderCreatePayload(BaseModel):
    address: ShippingAddressIn
    payment: PaymentOutcomeIn


class OrderPlaced(BaseModel):
    success: bool = True
    order_id: str


class TrackingEventOut(BaseModel):
    status: str
    timestamp: Optional[datetime] = None


# Output schema representing the full order details
class OrderResponse(BaseModel):
    order_id: str
    payment_id: str
    items: List[OrderItemOut]
    total_amount: float
    status: str
    tracking_status: str
    shipping_address: ShippingAddressOut
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tracking_history: List[TrackingEventOut]


# Schema for updating order tracking status
class TrackingPatch(BaseModel):
    status: str = Field(min_length=1, max_length=50)
