from sqlalchemy import Column, Integer, ForeignKey, String, Boolean, Numeric
from sqlalchemy.orm import relationship

from armoire.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
    )


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    size = Column(String, nullable=False)
    color = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    additional_price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    product = relationship("ProductModel", back_populates="variants")

    @property
    def unit_price(self):
        return self.product.base_price + self.additional_price
