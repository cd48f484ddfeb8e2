# armoire/repos/order_repo.py
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update, func, or_
from sqlalchemy.orm import Session, selectinload

from armoire.data.models.order import OrderModel, OrderItemModel
from armoire.data.models.user import UserModel

# sort_by = <POLE>_ASC | <POLE>_DESC
_SORT_COLUMNS = {
    "CREATED_AT": OrderModel.created_at,
    "ORDER_NUMBER": OrderModel.order_number,
    "STATUS": OrderModel.status,
    "PAYMENT_STATUS": OrderModel.payment_status,
    "TOTAL_AMOUNT": OrderModel.total,
}


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel, items: list[OrderItemModel]) -> OrderModel:
        order.items = items
        self.db.add(order)
        self.db.flush()
        return order

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def number_exists(self, order_number: str) -> bool:
        return self.db.execute(
            select(OrderModel.id).where(OrderModel.order_number == order_number)
        ).first() is not None

    def list_orders(
        self,
        page: int,
        size: int,
        user_id: int | None = None,
        status: str | None = None,
        payment_status: str | None = None,
        q: str | None = None,
        sort_by: str = "CREATED_AT_DESC",
    ) -> tuple[list[OrderModel], int]:
        conditions = []
        if user_id is not None:
            conditions.append(OrderModel.user_id == user_id)
        if status:
            conditions.append(OrderModel.status == status)
        if payment_status:
            conditions.append(OrderModel.payment_status == payment_status)
        if q:
            pattern = f"%{q.strip()}%"
            conditions.append(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    UserModel.name.ilike(pattern),
                    UserModel.email.ilike(pattern),
                    UserModel.phone.ilike(pattern),
                )
            )

        field, _, direction = sort_by.rpartition("_")
        column = _SORT_COLUMNS[field]
        ordering = column.desc() if direction == "DESC" else column.asc()

        total = self.db.execute(
            select(func.count(OrderModel.id))
            .select_from(OrderModel)
            .join(UserModel, UserModel.id == OrderModel.user_id)
            .where(*conditions)
        ).scalar_one()

        rows = self.db.execute(
            select(OrderModel)
            .join(UserModel, UserModel.id == OrderModel.user_id)
            .options(selectinload(OrderModel.items))
            .where(*conditions)
            .order_by(ordering, OrderModel.id.desc())
            .limit(size)
            .offset(page * size)
        ).scalars().all()

        return list(rows), total

    def list_open_created_before(self, statuses: tuple, cutoff: datetime) -> list[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel).where(
                    OrderModel.status.in_([s.value for s in statuses]),
                    OrderModel.created_at < cutoff,
                )
            ).scalars().all()
        )

    def update_order_version(self, order_id: int, old_version: int, new_data: dict) -> int:
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, order: OrderModel) -> OrderModel:
        self.db.refresh(order)
        return order

    # dashboard
    def count_by_status(self) -> dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id)).group_by(OrderModel.status)
        ).all()
        return {status: count for status, count in rows}

    def count_by_payment_status(self) -> dict[str, int]:
        rows = self.db.execute(
            select(OrderModel.payment_status, func.count(OrderModel.id)).group_by(OrderModel.payment_status)
        ).all()
        return {status: count for status, count in rows}

    def revenue(self, payment_status: str) -> Decimal:
        total = self.db.execute(
            select(func.sum(OrderModel.total)).where(OrderModel.payment_status == payment_status)
        ).scalar_one()
        return Decimal(total or 0).quantize(Decimal("0.01"))
