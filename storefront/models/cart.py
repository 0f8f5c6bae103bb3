# storefront/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, UniqueConstraint, CheckConstraint, func
from storefront.database import Base


# One line of a user's cart; the item name is the item's identity
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # Unit price stored on first add
    image = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # Repeat adds of the same name merge into this row
        UniqueConstraint("user_id", "name", name="uq_cartitem_user_name"),
        CheckConstraint("quantity > 0", name="ck_cartitem_quantity_positive"),
    )
