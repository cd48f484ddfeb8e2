# armoire/data/seed.py
from decimal import Decimal

from armoire.data.database import SessionLocal, unit_of_work
from armoire.data.models import (
    AddressModel,
    ProductModel,
    ProductVariantModel,
    UserModel,
)


def seed():
    """Demo data: admin, one customer with an address, one product with variants."""
    db = SessionLocal()
    try:
        # tylko jesli baza pusta
        if db.query(UserModel).first():
            return

        with unit_of_work(db):
            db.add(UserModel(name="Admin", email="admin@nalaarmoire.in", role="ADMIN"))
            customer = UserModel(name="Demo Customer", phone="+919876543210", role="USER")
            customer.addresses.append(
                AddressModel(
                    street_address="12 MG Road",
                    city="Bengaluru",
                    state="Karnataka",
                    country="India",
                    postal_code="560001",
                    is_default=True,
                )
            )
            db.add(customer)
            db.add(
                ProductModel(
                    name="Classic Cotton Tee",
                    slug="classic-cotton-tee",
                    base_price=Decimal("400.00"),
                    variants=[
                        ProductVariantModel(size="M", color="Black", sku="TEE-BLK-M", stock_quantity=50),
                        ProductVariantModel(size="L", color="Black", sku="TEE-BLK-L", stock_quantity=50),
                        ProductVariantModel(
                            size="XL",
                            color="Ivory",
                            sku="TEE-IVR-XL",
                            stock_quantity=20,
                            additional_price=Decimal("100.00"),
                        ),
                    ],
                )
            )
    finally:
        db.close()


if __name__ == "__main__":
    seed()
