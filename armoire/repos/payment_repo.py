# armoire/repos/payment_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from armoire.data.models.payment import PaymentRecordModel


class PaymentRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_record(self, record: PaymentRecordModel) -> PaymentRecordModel:
        self.db.add(record)
        self.db.flush()
        return record

    def get_by_order(self, order_id: int) -> PaymentRecordModel | None:
        return self.db.execute(
            select(PaymentRecordModel).where(PaymentRecordModel.order_id == order_id)
        ).scalar_one_or_none()

    def get_by_gateway_order_id(self, gateway_order_id: str) -> PaymentRecordModel | None:
        return self.db.execute(
            select(PaymentRecordModel).where(
                PaymentRecordModel.gateway_order_id == gateway_order_id
            )
        ).scalar_one_or_none()

    def get_by_reference(self, gateway_reference: str) -> PaymentRecordModel | None:
        return self.db.execute(
            select(PaymentRecordModel).where(
                PaymentRecordModel.gateway_reference == gateway_reference
            )
        ).scalar_one_or_none()
