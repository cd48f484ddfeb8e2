# armoire/api/routers/admin.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from armoire.api.deps import get_gateway, require_admin, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError
from armoire.domain.schemas import (
    DashboardOut,
    OrderOut,
    OrderPage,
    OrderSort,
    ProductCreate,
    ProductOut,
)
from armoire.domain.states import OrderStatus, PaymentStatus
from armoire.services.admin_service import AdminService
from armoire.services.catalog_service import CatalogService
from armoire.services.gateway import PaymentGateway
from armoire.services.order_service import OrderService, serialize_order
from armoire.services.payment_service import PaymentService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return AdminService(db).dashboard()


@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).create_product(payload)
    except CheckoutError as e:
        raise to_http(e)


@router.get("/orders", response_model=OrderPage)
def list_orders(
    status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
    q: str | None = Query(None, max_length=100),
    sort_by: OrderSort = OrderSort.CREATED_AT_DESC,
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Wyszukiwanie po numerze zamowienia albo imieniu / emailu / telefonie klienta.
    """
    return OrderService(db).list_orders(
        page=page,
        size=size,
        status=status.value if status else None,
        payment_status=payment_status.value if payment_status else None,
        q=q or None,
        sort_by=sort_by.value,
    )


@router.post("/orders/{order_number}/fulfill", response_model=OrderOut)
def fulfill_order(
    order_number: str,
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return serialize_order(OrderService(db).fulfill_order(order_number))
    except CheckoutError as e:
        raise to_http(e)


@router.post("/orders/{order_number}/refund", response_model=OrderOut)
def refund_order(
    order_number: str,
    _: RequestContext = Depends(require_admin),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
):
    """
    Zwrot calej kwoty pobranej platnosci. Status zamowienia sie nie zmienia,
    tylko payment_status (REFUND_REQUESTED -> REFUNDED).
    """
    try:
        return serialize_order(PaymentService(db, gateway).refund_order(order_number))
    except CheckoutError as e:
        raise to_http(e)
