# armoire/repos/catalog_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from armoire.data.models.product import ProductModel, ProductVariantModel


class CatalogRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.get(ProductVariantModel, variant_id)

    def get_variants(self, variant_ids: list[int]) -> dict[int, ProductVariantModel]:
        rows = self.db.execute(
            select(ProductVariantModel)
            .options(selectinload(ProductVariantModel.product))
            .where(ProductVariantModel.id.in_(variant_ids))
        ).scalars().all()
        return {v.id: v for v in rows}

    def slug_exists(self, slug: str) -> bool:
        return self.db.execute(
            select(ProductModel.id).where(ProductModel.slug == slug)
        ).first() is not None

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def decrement_stock(self, variant_id: int, quantity: int) -> int:
        """Zwraca stan po odjeciu, moze zejsc ponizej zera."""
        self.db.execute(
            update(ProductVariantModel)
            .where(ProductVariantModel.id == variant_id)
            .values(stock_quantity=ProductVariantModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(
            select(ProductVariantModel.stock_quantity).where(ProductVariantModel.id == variant_id)
        ).scalar_one()

    def low_stock_variants(self, threshold: int) -> list[ProductVariantModel]:
        return list(
            self.db.execute(
                select(ProductVariantModel)
                .join(ProductModel, ProductModel.id == ProductVariantModel.product_id)
                .options(selectinload(ProductVariantModel.product))
                .where(
                    ProductVariantModel.is_active.is_(True),
                    ProductModel.is_active.is_(True),
                    ProductVariantModel.stock_quantity <= threshold,
                )
                .order_by(ProductVariantModel.stock_quantity, ProductVariantModel.id)
            ).scalars().all()
        )
