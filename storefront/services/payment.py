# storefront/services/payment.py
import hashlib
import hmac
import logging
import uuid
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.errors import EmptyCart, GatewayFailure
from storefront.models.order import PaymentIntent
from storefront.services.cart_store import CartStore

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_signature(secret: str, order_ref: str, payment_ref: str) -> str:
    message = f"{order_ref}|{payment_ref}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(secret: str, order_ref: str, payment_ref: str, signature: str) -> bool:
    if not order_ref or not payment_ref or not signature:
        return False
    expected = compute_signature(secret, order_ref, payment_ref)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


class PaymentSession:
    """Opens gateway payment intents sized from the server-side cart and checks
    the signature the gateway hands back after a successful payment."""

    def __init__(self, db: Session, gateway, settings: Settings):
        self.db = db
        self.cart = CartStore(db)
        self.gateway = gateway
        self.settings = settings

    async def create_intent(self, user_id: int) -> dict:
        total = self.cart.total_value(user_id)
        if total <= 0:
            raise EmptyCart("Cart is empty")

        amount = to_minor_units(total)
        receipt = f"rcpt_{uuid.uuid4().hex}"
        intent = await self.gateway.create_order(
            amount=amount,
            currency=self.settings.PAYMENT_CURRENCY,
            receipt=receipt,
            notes={"user_id": str(user_id)},
        )
        if not isinstance(intent, dict) or not intent.get("id"):
            raise GatewayFailure("Payment gateway returned an invalid response")

        # Remembered so a paid order can be checked against what was charged
        self.db.add(PaymentIntent(
            user_id=user_id,
            gateway_order_ref=intent["id"],
            amount=amount,
            currency=self.settings.PAYMENT_CURRENCY,
            receipt=receipt,
        ))
        self.db.commit()
        logger.info("Payment intent %s opened for user_id=%s total=%s", intent.get("id"), user_id, total)
        return {"intent": intent, "total": total, "key_id": self.settings.RAZORPAY_KEY_ID}

    def verify_signature(self, order_ref: str, payment_ref: str, signature: str) -> bool:
        verified = verify_signature(self.settings.RAZORPAY_KEY_SECRET, order_ref, payment_ref, signature)
        if not verified:
            logger.warning("Payment signature mismatch for order_ref=%s payment_ref=%s", order_ref, payment_ref)
        return verified
