# storefront/routes/payment.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.database import get_db
from storefront.dependencies import get_current_user, get_gateway, get_settings
from storefront.errors import InvalidSignature, StorefrontError
from storefront.models.users import User
from storefront.schemas.payment import (
    PaymentIntentResponse, PaymentVerifyPayload, PaymentVerifyResponse
)
from storefront.services.payment import PaymentSession
from storefront.utils.audit import client_ip, write_log

router = APIRouter(prefix="/payment", tags=["Payment"])


# Open a gateway order for the server-side cart total; the client never supplies the amount
@router.post("/create-intent", response_model=PaymentIntentResponse)
async def create_intent(
    request: Request,
    db: Session = Depends(get_db),
    gateway=Depends(get_gateway),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user)
):
    session = PaymentSession(db, gateway, settings)
    try:
        result = await session.create_intent(current_user.id)
    except StorefrontError as e:
        write_log(db, user_id=current_user.id, action="PAYMENT_INTENT", resource="payment", status="FAIL",
                  ip=client_ip(request), meta={"reason": e.kind})
        raise

    write_log(
        db, user_id=current_user.id, action="PAYMENT_INTENT", resource="payment",
        ip=client_ip(request),
        meta={"intent_id": result["intent"].get("id"), "total": float(result["total"])},
    )
    return result


# Check the signature returned by the gateway checkout
@router.post("/verify", response_model=PaymentVerifyResponse)
def verify_payment(
    payload: PaymentVerifyPayload,
    request: Request,
    db: Session = Depends(get_db),
    gateway=Depends(get_gateway),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user)
):
    session = PaymentSession(db, gateway, settings)
    verified = session.verify_signature(payload.order_ref, payload.payment_ref, payload.signature)

    write_log(
        db, user_id=current_user.id, action="PAYMENT_VERIFY", resource="payment",
        status="SUCCESS" if verified else "FAIL", ip=client_ip(request),
        meta={"order_ref": payload.order_ref, "payment_ref": payload.payment_ref},
    )
    if not verified:
        raise InvalidSignature("Invalid signature")
    return {"success": True, "verified": True}
