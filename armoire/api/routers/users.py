from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from armoire.api.deps import get_request_context, to_http
from armoire.data.database import get_db
from armoire.domain.context import RequestContext
from armoire.domain.errors import CheckoutError
from armoire.services.user_service import UserService
from armoire.domain.schemas import UserCreate, UserRead, AddressIn, AddressOut

router = APIRouter(tags=["users"])


@router.post("/users", response_model=UserRead, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    return UserService(db).create_user(payload)


@router.get("/users/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/addresses", response_model=AddressOut, status_code=201)
def create_address(
    payload: AddressIn,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    try:
        return UserService(db).add_address(ctx, payload)
    except CheckoutError as e:
        raise to_http(e)


@router.get("/addresses", response_model=list[AddressOut])
def list_addresses(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return UserService(db).list_addresses(ctx)
