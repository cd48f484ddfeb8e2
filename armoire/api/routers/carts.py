#armoire/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from armoire.api.deps import get_request_context, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError
from armoire.domain.schemas import (
    ItemIn,
    QuantityIn,
    CartOut,
)
from armoire.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return CartService(db).get_cart(ctx)


@router.post("/items", response_model=CartOut)
def add_item(
    payload: ItemIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.add_product(ctx, variant_id=payload.variant_id, quantity=payload.quantity)
    except CheckoutError as e:
        raise to_http(e)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/items/{variant_id}", response_model=CartOut)
def update_item(
    variant_id: int,
    payload: QuantityIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.update_quantity(ctx, variant_id=variant_id, quantity=payload.quantity)
    except CheckoutError as e:
        raise to_http(e)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/items/{variant_id}", response_model=CartOut)
def remove_item(
    variant_id: int,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        return svc.remove_product(ctx, variant_id)
    except CheckoutError as e:
        raise to_http(e)
    except RuntimeError as e:
        raise HTTPException(status_code=409, detail=str(e))
