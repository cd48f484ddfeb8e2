from sqlalchemy import Column, Integer, ForeignKey, String, DateTime
from sqlalchemy.orm import relationship

from armoire.data.database import Base


class PaymentRecordModel(Base):
    __tablename__ = "payment_records"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)

    gateway_order_id = Column(String, nullable=False, unique=True, index=True)
    # id platnosci z bramki, unique = drugi callback z tym samym id nie przejdzie
    gateway_reference = Column(String, nullable=True, unique=True)
    signature = Column(String, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    refund_id = Column(String, nullable=True, unique=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)

    order = relationship("OrderModel", back_populates="payment")
