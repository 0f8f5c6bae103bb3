# storefront/routes/cart.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.dependencies import get_current_user
from storefront.models.users import User
from storefront.schemas.cart import CartAddItem, CartItemRef, CartOut, CartItemOut
from storefront.services.cart_store import CartStore
from storefront.utils.audit import client_ip, write_log

router = APIRouter(prefix="/cart", tags=["Cart"])


def _cart_to_out(store: CartStore, user_id: int) -> CartOut:
    items = store.list(user_id)
    items_out = [
        CartItemOut(
            name=it.name,
            price=float(it.price),
            image=it.image,
            quantity=it.quantity,
            line_total=float(it.price * it.quantity),
        )
        for it in items
    ]
    total = store.total_value(user_id)
    return CartOut(items=items_out, total=float(total), item_count=sum(it.quantity for it in items))


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _cart_to_out(CartStore(db), current_user.id)


@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    store = CartStore(db)
    item = store.add_item(current_user.id, payload.name, payload.price, payload.image, payload.quantity)
    out = _cart_to_out(store, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        ip=client_ip(request),
        meta={"name": item.name, "qty": payload.quantity, "cart_items": len(out.items), "total": out.total},
    )
    return out


@router.post("/remove-one", response_model=CartOut)
def remove_one_from_cart(
    payload: CartItemRef,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    store = CartStore(db)
    store.remove_one(current_user.id, payload.name)
    out = _cart_to_out(store, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_REMOVE_ONE",
        resource="cart",
        ip=client_ip(request),
        meta={"name": payload.name, "total": out.total},
    )
    return out


@router.delete("/items/{name}", response_model=CartOut)
def remove_all_from_cart(
    name: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    store = CartStore(db)
    store.remove_all(current_user.id, name)
    out = _cart_to_out(store, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_REMOVE_ALL",
        resource="cart",
        ip=client_ip(request),
        meta={"name": name, "cart_items": len(out.items), "total": out.total},
    )
    return out
