from sqlalchemy.orm import Session

from armoire.data.database import unit_of_work
from armoire.data.models.user import UserModel
from armoire.data.models.address import AddressModel
from armoire.domain.context import RequestContext
from armoire.domain.errors import ValidationError
from armoire.repos.user_repo import UserRepo
from armoire.domain.schemas import UserCreate, UserRead, AddressIn, AddressOut


class UserService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        if payload.phone:
            existing = self.repo.get_by_phone(payload.phone)
            if existing:
                return UserRead.model_validate(existing)

        with unit_of_work(self.db):
            user = self.repo.create_user(
                UserModel(
                    name=payload.name,
                    phone=payload.phone,
                    email=payload.email,
                    role=payload.role,
                )
            )
        return UserRead.model_validate(user)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise ValueError("User not found")
        return UserRead.model_validate(user)

    def add_address(self, ctx: RequestContext, payload: AddressIn) -> AddressOut:
        if not self.repo.get_user(ctx.user_id):
            raise ValidationError("User not found")

        with unit_of_work(self.db):
            if payload.is_default:
                self.repo.clear_default_address(ctx.user_id)
            address = self.repo.add_address(
                AddressModel(user_id=ctx.user_id, **payload.model_dump())
            )
        return AddressOut.model_validate(address)

    def list_addresses(self, ctx: RequestContext) -> list[AddressOut]:
        return [AddressOut.model_validate(a) for a in self.repo.list_addresses(ctx.user_id)]
