from pydantic import BaseModel
from typing import Optional


# Gateway order as returned to the client; amount is in minor units
class PaymentIntentOut(BaseModel):
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    intent: PaymentIntentOut
    total: float
    key_id: str


# Fields the gateway's checkout hands back after a successful payment
class PaymentVerifyPayload(BaseModel):
    order_ref: str
    payment_ref: str
    signature: str


class PaymentVerifyResponse(BaseModel):
    success: bool
    verified: bool
