# armoire/services/catalog_service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from armoire.data.database import unit_of_work
from armoire.data.models.product import ProductModel, ProductVariantModel
from armoire.domain.errors import ValidationError
from armoire.domain.schemas import ProductCreate
from armoire.repos.catalog_repo import CatalogRepo
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepo(db)

    def create_product(self, payload: ProductCreate) -> ProductModel:
        if self.repo.slug_exists(payload.slug):
            raise ValidationError(f"Product slug '{payload.slug}' already exists")

        skus = [v.sku for v in payload.variants]
        if len(skus) != len(set(skus)):
            raise ValidationError("Variant SKUs must be unique")

        try:
            with unit_of_work(self.db):
                product = self.repo.create_product(
                    ProductModel(
                        name=payload.name,
                        slug=payload.slug,
                        base_price=payload.base_price,
                        is_active=True,
                        variants=[
                            ProductVariantModel(is_active=True, **v.model_dump())
                            for v in payload.variants
                        ],
                    )
                )
        except IntegrityError as e:
            raise ValidationError("Variant SKU already exists") from e

        logger.info(f"Product {product.slug} created with {len(product.variants)} variants")
        return product
