# supplyshop/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplyshop.api.deps import get_lock_service, require_session
from supplyshop.data.database import get_db
from supplyshop.domain.schemas import CheckoutIn, CheckoutOut, OrderOut
from supplyshop.domain.session import SessionContext
from supplyshop.services.lock_service import LockService
from supplyshop.services.order_service import OrderService

router = APIRouter(tags=["orders"])


@router.post("/api/orders/checkout", response_model=CheckoutOut, status_code=201)
def checkout(
    payload: Optional[CheckoutIn] = None,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
):
    """
    Creates an order from the submitted lines, or from the caller's stored
    cart when no lines are sent. The user id always comes from the session.
    """
    lines = [(line.id, line.quantity) for line in (payload.cart if payload else [])]
    result = OrderService(db, lock_service=lock_service).checkout(session.user_id, lines)
    return {**result, "total": float(result["total"])}


@router.get("/orders", response_model=List[OrderOut])
def list_my_orders(
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_orders(session.user_id)


@router.get("/orders/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    return OrderService(db).get_order(order_id, session.user_id)
