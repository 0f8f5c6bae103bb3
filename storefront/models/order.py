# storefront/models/order.py
import enum

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, JSON, func
from storefront.database import Base


class PaymentStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    # Externally visible ids: gateway-issued for paid orders, generated for manual ones
    order_id = Column(String, unique=True, nullable=False, index=True)
    payment_id = Column(String, nullable=False)

    # Frozen copy of the cart: [{name, price, image, quantity}, ...]
    items = Column(JSON, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Payment and tracking are independent axes
    status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    tracking_status = Column(String, nullable=False, default="pending")

    # Shipping address
    shipping_street = Column(String, nullable=False)
    shipping_city = Column(String, nullable=False)
    shipping_state = Column(String, nullable=False)
    shipping_zip = Column(String, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# Append-only history of tracking statuses, keyed by the order's external id
class TrackingEvent(Base):
    __tablename__ = "tracking_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String, index=True, nullable=False)
    status = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


# Gateway orders opened for checkout, with the amount the customer is charged
class PaymentIntent(Base):
    __tablename__ = "payment_intents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    gateway_order_ref = Column(String, unique=True, nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False)
    receipt = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
