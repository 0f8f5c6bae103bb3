# storefront/routes/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.database import get_db
from storefront.dependencies import admin_required, get_access_guard, get_current_user, get_settings
from storefront.errors import InvalidSignature
from storefront.models.users import User
from storefront.schemas.order import OrderCreatePayload, OrderPlaced, OrderResponse, TrackingPatch
from storefront.services.access import AccessGuard
from storefront.services.identity import IdentityResolver
from storefront.services.ledger import Manual, OrderLedger, Paid, ShippingAddress
from storefront.services.payment import verify_signature
from storefront.utils.audit import client_ip, write_log

router = APIRouter(prefix="/orders", tags=["Orders"])


# Place an order from the caller's cart
@router.post("", response_model=OrderPlaced, status_code=status.HTTP_201_CREATED)
def place_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: User = Depends(get_current_user)
):
    pay = payload.payment
    if pay.kind == "paid":
        # Never trust client-reported payment: the gateway signature has to check out first
        if not verify_signature(settings.RAZORPAY_KEY_SECRET, pay.gateway_order_ref, pay.gateway_payment_ref, pay.signature):
            write_log(db, user_id=current_user.id, action="ORDER_PLACE", resource="orders", status="FAIL",
                      ip=client_ip(request), meta={"reason": InvalidSignature.kind, "order_ref": pay.gateway_order_ref})
            raise InvalidSignature("Invalid signature")
        outcome = Paid(gateway_order_ref=pay.gateway_order_ref, gateway_payment_ref=pay.gateway_payment_ref)
    else:
        outcome = Manual()

    address = ShippingAddress(**payload.address.model_dump())
    order_id = OrderLedger(db).place_order(current_user.id, address, outcome)

    write_log(db, user_id=current_user.id, action="ORDER_PLACE", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "payment": pay.kind})
    return {"order_id": order_id}


# List orders newest-first with their tracking history; admins may look up another user
@router.get("", response_model=List[OrderResponse])
def list_orders(
    email: Optional[str] = Query(None, description="Admin only: list this user's orders"),
    db: Session = Depends(get_db),
    guard: AccessGuard = Depends(get_access_guard),
    current_user: User = Depends(get_current_user)
):
    user_id = current_user.id
    if email and email.strip().lower() != current_user.email:
        guard.require_admin(current_user.email)
        user_id = IdentityResolver(db).resolve(email)
    return OrderLedger(db).list_orders(user_id)


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return OrderLedger(db).get_order(current_user, order_id)


# Update tracking status (Admin only)
@router.patch("/{order_id}/tracking", response_model=OrderResponse)
def update_tracking(
    order_id: str,
    payload: TrackingPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required)
):
    ledger = OrderLedger(db)
    order = ledger.update_tracking(current_user.id, order_id, payload.status)

    write_log(db, user_id=current_user.id, action="ORDER_TRACKING_UPDATE", resource="orders",
              ip=client_ip(request), meta={"order_id": order_id, "status": order.tracking_status})
    return ledger.get_order(current_user, order_id)
