# storefront/services/cart_store.py
import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import delete, func, update
from sqlalchemy.orm import Session

from storefront.errors import InvalidInput, NotFound
from storefront.models.cart import CartItem

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput("Price must be a number")
    if not amount.is_finite():
        raise InvalidInput("Price must be a number")
    return amount.quantize(CENT)


class CartStore:
    """
    Per-user cart keyed by item name.

    Writes are single statements so two requests touching the same row
    cannot lose an update: adds are an upsert-with-increment, removals a
    conditional decrement followed by a conditional delete.
    """

    def __init__(self, db: Session):
        self.db = db

    # queries
    def list(self, user_id: int) -> List[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.id)
            .all()
        )

    def get(self, user_id: int, name: str) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.name == name)
            .first()
        )

    def total_value(self, user_id: int) -> Decimal:
        return sum((i.price * i.quantity for i in self.list(user_id)), Decimal("0.00"))

    def snapshot(self, user_id: int) -> List[dict]:
        # Plain JSON-ready copy of the cart, used as an order's frozen items
        return [
            {
                "name": i.name,
                "price": float(i.price),
                "image": i.image,
                "quantity": i.quantity,
            }
            for i in self.list(user_id)
        ]

    # commands
    def add_item(self, user_id: int, name: str, price, image: Optional[str], quantity: int) -> CartItem:
        name = (name or "").strip()
        if not name:
            raise InvalidInput("Item name is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidInput("Quantity must be a positive integer")
        unit_price = to_money(price)
        if unit_price <= 0:
            raise InvalidInput("Price must be positive")

        dialect = self.db.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            self._upsert(dialect, user_id, name, unit_price, image, quantity)
        else:
            self._locked_add(user_id, name, unit_price, image, quantity)
        self.db.commit()

        item = self.get(user_id, name)
        logger.info("Cart add user_id=%s item=%r qty=+%s now=%s", user_id, name, quantity, item.quantity)
        return item

    def _upsert(self, dialect: str, user_id: int, name: str, price: Decimal, image, quantity: int) -> None:
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        stmt = insert(CartItem).values(
            user_id=user_id,
            name=name,
            price=price,
            image=image,
            quantity=quantity,
        )
        # Existing row keeps its stored price and image; only the quantity grows
        stmt = stmt.on_conflict_do_update(
            index_elements=[CartItem.user_id, CartItem.name],
            set_={
                "quantity": CartItem.quantity + stmt.excluded.quantity,
                "updated_at": func.now(),
            },
        )
        self.db.execute(stmt)

    def _locked_add(self, user_id: int, name: str, price: Decimal, image, quantity: int) -> None:
        existing = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.name == name)
            .with_for_update()
            .first()
        )
        if existing:
            existing.quantity = CartItem.quantity + quantity
        else:
            self.db.add(CartItem(user_id=user_id, name=name, price=price, image=image, quantity=quantity))

    def remove_one(self, user_id: int, name: str) -> None:
        while True:
            decremented = self.db.execute(
                update(CartItem)
                .where(CartItem.user_id == user_id, CartItem.name == name, CartItem.quantity > 1)
                .values(quantity=CartItem.quantity - 1, updated_at=func.now())
                .execution_options(synchronize_session=False)
            ).rowcount
            if decremented:
                self.db.commit()
                logger.info("Cart remove one user_id=%s item=%r", user_id, name)
                return

            # Last unit: the row goes away instead of reaching zero
            deleted = self.db.execute(
                delete(CartItem)
                .where(CartItem.user_id == user_id, CartItem.name == name, CartItem.quantity <= 1)
                .execution_options(synchronize_session=False)
            ).rowcount
            if deleted:
                self.db.commit()
                logger.info("Cart remove last unit user_id=%s item=%r", user_id, name)
                return

            # Neither matched: the row is gone, or an add raised its quantity in between
            if self.get(user_id, name) is None:
                self.db.rollback()
                raise NotFound(f"Item '{name}' is not in the cart")
            logger.info("Cart remove one retried after concurrent add user_id=%s item=%r", user_id, name)

    def remove_all(self, user_id: int, name: str) -> None:
        deleted = self.db.execute(
            delete(CartItem)
            .where(CartItem.user_id == user_id, CartItem.name == name)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not deleted:
            self.db.rollback()
            raise NotFound(f"Item '{name}' is not in the cart")
        self.db.commit()
        logger.info("Cart remove all user_id=%s item=%r", user_id, name)

    def clear(self, user_id: int, commit: bool = True) -> int:
        deleted = self.db.execute(
            delete(CartItem)
            .where(CartItem.user_id == user_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if commit:
            self.db.commit()
        logger.info("Cart cleared user_id=%s rows=%s", user_id, deleted)
        return deleted
