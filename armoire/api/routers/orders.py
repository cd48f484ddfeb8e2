# armoire/api/routers/orders.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from armoire.api.deps import get_request_context, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError
from armoire.domain.schemas import CancelIn, OrderOut, OrderPage
from armoire.services.order_service import OrderService, serialize_order

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderPage)
def list_orders(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=100),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Historia zamowien uzytkownika, od najnowszych.
    """
    return OrderService(db).user_orders(ctx, page=page, size=size)


@router.get("/{order_number}", response_model=OrderOut)
def get_order(
    order_number: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        return serialize_order(OrderService(db).get_order(ctx, order_number))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CheckoutError as e:
        raise to_http(e)


@router.post("/{order_number}/cancel", response_model=OrderOut)
def cancel_order(
    order_number: str,
    payload: CancelIn | None = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """
    Anulowanie mozliwe tylko przed platnoscia (CREATED / PAYMENT_PENDING).
    Body z powodem jest opcjonalne.
    """
    try:
        reason = payload.reason if payload else None
        return serialize_order(OrderService(db).cancel_order(ctx, order_number, reason))
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CheckoutError as e:
        raise to_http(e)
