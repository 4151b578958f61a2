# supplyshop/api/routers/cart.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplyshop.api.deps import require_session
from supplyshop.data.database import get_db
from supplyshop.domain.schemas import CartItemIn, CartOut, QuantityDeltaIn
from supplyshop.domain.session import SessionContext
from supplyshop.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    return get_service(db).get_cart_view(session.user_id)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.get_or_create_cart(session.user_id)
    svc.add_item(cart_id, payload.product_id, payload.quantity)
    return svc.get_cart_view(session.user_id)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_quantity(
    product_id: str,
    payload: QuantityDeltaIn,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.get_or_create_cart(session.user_id)
    svc.update_quantity(cart_id, product_id, payload.delta)
    return svc.get_cart_view(session.user_id)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_item(
    product_id: str,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    cart_id = svc.get_or_create_cart(session.user_id)
    svc.remove_item(cart_id, product_id)
    return svc.get_cart_view(session.user_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    svc.clear_cart(svc.get_or_create_cart(session.user_id))
    return svc.get_cart_view(session.user_id)
