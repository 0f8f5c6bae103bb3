# storefront/services/ledger.py
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.errors import EmptyCart, InvalidInput, NotFound, PermissionDenied, StorageFailure
from storefront.models.order import Order, PaymentIntent, PaymentStatus, TrackingEvent
from storefront.models.users import User
from storefront.services.cart_store import CartStore, to_money
from storefront.services.payment import to_minor_units

logger = logging.getLogger(__name__)

INITIAL_TRACKING_STATUS = "pending"
MAX_TRACKING_STATUS_LENGTH = 50


@dataclass(frozen=True)
class ShippingAddress:
    street: str
    city: str
    state: str
    zip: str

    def validate(self) -> None:
        missing = [k for k in ("street", "city", "state", "zip") if not (getattr(self, k) or "").strip()]
        if missing:
            raise InvalidInput(f"Shipping address incomplete (missing: {', '.join(missing)})")


@dataclass(frozen=True)
class Paid:
    gateway_order_ref: str
    gateway_payment_ref: str


@dataclass(frozen=True)
class Manual:
    pass


PaymentOutcome = Union[Paid, Manual]


def new_manual_ids() -> Tuple[str, str]:
    token = uuid.uuid4().hex
    return f"order_{token}", f"pay_{token}"


class OrderLedger:
    """
    Turns a cart into an order and keeps the tracking history of orders.

    place_order writes the order, its first tracking event and (for paid
    orders) the cart wipe in one transaction. update_tracking changes the
    current status and appends the matching event in one transaction.
    A paid order is only recorded when the cart still totals what the
    gateway intent charged.
    Tracking statuses are free-form: no transition rules are enforced.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cart = CartStore(db)

    def place_order(self, user_id: int, address: ShippingAddress, outcome: PaymentOutcome) -> str:
        address.validate()

        if isinstance(outcome, Paid):
            if not (outcome.gateway_order_ref or "").strip() or not (outcome.gateway_payment_ref or "").strip():
                raise InvalidInput("Gateway order and payment references are required")
            existing = self._existing_paid_order(user_id, outcome.gateway_order_ref)
            if existing is not None:
                logger.info("Order %s already recorded for user_id=%s, returning it", existing, user_id)
                return existing
            order_id, payment_id, status = outcome.gateway_order_ref, outcome.gateway_payment_ref, PaymentStatus.PAID
        elif isinstance(outcome, Manual):
            order_id, payment_id = new_manual_ids()
            status = PaymentStatus.PENDING
        else:
            raise InvalidInput("Unknown payment outcome")

        items = self.cart.snapshot(user_id)
        if not items:
            raise EmptyCart("Cannot place an order from an empty cart")
        total = sum((to_money(i["price"]) * i["quantity"] for i in items), Decimal("0.00"))
        if isinstance(outcome, Paid):
            self._check_paid_amount(user_id, outcome.gateway_order_ref, total)

        order = Order(
            user_id=user_id,
            order_id=order_id,
            payment_id=payment_id,
            items=items,
            total_amount=total,
            status=status.value,
            tracking_status=INITIAL_TRACKING_STATUS,
            shipping_street=address.street.strip(),
            shipping_city=address.city.strip(),
            shipping_state=address.state.strip(),
            shipping_zip=address.zip.strip(),
        )

        try:
            self.db.add(order)
            self.db.add(TrackingEvent(order_id=order_id, status=INITIAL_TRACKING_STATUS))
            # A manual order has not spent the cart yet
            if status is PaymentStatus.PAID:
                self.cart.clear(user_id, commit=False)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if isinstance(outcome, Paid):
                # A concurrent request recorded the same gateway order first
                existing = self._existing_paid_order(user_id, order_id)
                if existing is not None:
                    return existing
                raise InvalidInput("Gateway order reference already used")
            logger.exception("Failed to record order for user_id=%s", user_id)
            raise StorageFailure("Could not record the order")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record order for user_id=%s", user_id)
            raise StorageFailure("Could not record the order")

        logger.info(
            "Order %s placed user_id=%s status=%s total=%s items=%s",
            order_id, user_id, status.value, total, len(items),
        )
        return order_id

    def _check_paid_amount(self, user_id: int, order_ref: str, total: Decimal) -> None:
        intent = self.db.query(PaymentIntent).filter(PaymentIntent.gateway_order_ref == order_ref).first()
        if intent is None or intent.user_id != user_id:
            raise InvalidInput("Unknown payment reference")
        if to_minor_units(total) != intent.amount:
            logger.warning(
                "Cart of user_id=%s changed since payment %s: charged=%s cart=%s",
                user_id, order_ref, intent.amount, to_minor_units(total),
            )
            raise InvalidInput("Cart changed since the payment was made")

    def _existing_paid_order(self, user_id: int, order_ref: str) -> Optional[str]:
        existing = self.db.query(Order).filter(Order.order_id == order_ref).first()
        if existing is None:
            return None
        if existing.user_id != user_id:
            raise InvalidInput("Gateway order reference already used")
        return existing.order_id

    def update_tracking(self, actor_id: int, order_id: str, new_status: str) -> Order:
        actor = self.db.get(User, actor_id)
        if actor is None or not actor.is_admin:
            raise PermissionDenied("Only administrators can update tracking status")

        new_status = (new_status or "").strip()
        if not new_status:
            raise InvalidInput("Tracking status is required")
        if len(new_status) > MAX_TRACKING_STATUS_LENGTH:
            raise InvalidInput(f"Tracking status longer than {MAX_TRACKING_STATUS_LENGTH} characters")

        order = self.db.query(Order).filter(Order.order_id == order_id).first()
        if order is None:
            raise NotFound("Order not found")

        old_status = order.tracking_status
        try:
            order.tracking_status = new_status
            self.db.add(TrackingEvent(order_id=order.order_id, status=new_status))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update tracking for order %s", order_id)
            raise StorageFailure("Could not update tracking status")

        logger.info("Order %s tracking %r -> %r by user_id=%s", order_id, old_status, new_status, actor_id)
        self.db.refresh(order)
        return order

    def history(self, order_ids: List[str]) -> dict:
        events = defaultdict(list)
        if not order_ids:
            return events
        rows = (
            self.db.query(TrackingEvent)
            .filter(TrackingEvent.order_id.in_(order_ids))
            .order_by(TrackingEvent.created_at.asc(), TrackingEvent.id.asc())
            .all()
        )
        for ev in rows:
            events[ev.order_id].append({"status": ev.status, "timestamp": ev.created_at})
        return events

    def list_orders(self, user_id: int) -> List[dict]:
        orders = (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )
        events = self.history([o.order_id for o in orders])
        return [order_to_dict(o, events.get(o.order_id, [])) for o in orders]

    def get_order(self, viewer: User, order_id: str) -> dict:
        order = self.db.query(Order).filter(Order.order_id == order_id).first()
        # Other users' orders are indistinguishable from missing ones
        if order is None or (order.user_id != viewer.id and not viewer.is_admin):
            raise NotFound("Order not found")
        return order_to_dict(order, self.history([order.order_id]).get(order.order_id, []))


def order_to_dict(order: Order, history: List[dict]) -> dict:
    return {
        "order_id": order.order_id,
        "payment_id": order.payment_id,
        "user_id": order.user_id,
        "items": order.items,
        "total_amount": order.total_amount,
        "status": order.status,
        "tracking_status": order.tracking_status,
        "shipping_address": {
            "street": order.shipping_street,
            "city": order.shipping_city,
            "state": order.shipping_state,
            "zip": order.shipping_zip,
        },
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "tracking_history": history,
    }
