from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from armoire.data.database import unit_of_work
from armoire.data.models.cart import CartModel
from armoire.data.models.cart_item import CartItemModel
from armoire.domain.context import RequestContext
from armoire.domain.errors import ValidationError
from armoire.repos.cart_repo import CartRepo
from armoire.repos.catalog_repo import CatalogRepo
from armoire.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Koszyk uzytkownika: komendy (add, update, remove) modyfikuja stan,
    query (get) tylko odczyt. Jeden aktywny koszyk na uzytkownika.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)

    def _serialize(self, user_id: int, cart: CartModel | None) -> Dict[str, Any]:
        if cart is None:
            return {
                "cart_id": None,
                "user_id": user_id,
                "status": "ACTIVE",
                "items": [],
                "subtotal": Decimal("0.00"),
            }

        items = self.repo.get_cart_items(cart.id)
        subtotal = sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))

        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "status": cart.status,
            "items": [
                {
                    "product_id": i.product_id,
                    "variant_id": i.variant_id,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                }
                for i in items
            ],
            "subtotal": subtotal,
        }

    def _get_or_create_cart(self, user_id: int) -> CartModel:
        cart = self.repo.get_active_cart_by_user(user_id)
        if cart:
            return cart

        logger.info(f"Creating cart for user {user_id}")
        return self.repo.create_cart(CartModel(user_id=user_id, status="ACTIVE", version=1))

    def _purchasable_variant(self, variant_id: int, quantity: int):
        variant = self.catalog.get_variant(variant_id)
        if not variant or not variant.is_active or not variant.product.is_active:
            raise ValidationError("Product variant is not available")
        if variant.stock_quantity < quantity:
            raise ValidationError(f"Only {variant.stock_quantity} left in stock")
        return variant

    def _bump_version(self, cart: CartModel) -> None:
        # update carts set version = v + 1 where id = :id and version = v
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data={
                "version": cart.version + 1,
                "updated_at": datetime.now(timezone.utc),
            },
        )
        if rowcount == 0:
            raise RuntimeError("Cart was modified by another request")

    #query
    def get_cart(self, ctx: RequestContext) -> Dict[str, Any]:
        cart = self.repo.get_active_cart_by_user(ctx.user_id)
        return self._serialize(ctx.user_id, cart)

    #commands
    def add_product(self, ctx: RequestContext, variant_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        try:
            self._add_product(ctx.user_id, variant_id, quantity)
        except IntegrityError:
            # rownolegly request zalozyl koszyk pierwszy, drugie podejscie go znajdzie
            logger.info(f"Active cart for user {ctx.user_id} created concurrently, retrying")
            self._add_product(ctx.user_id, variant_id, quantity)

        self.db.expire_all()
        return self.get_cart(ctx)

    def _add_product(self, user_id: int, variant_id: int, quantity: int) -> None:
        with unit_of_work(self.db):
            cart = self._get_or_create_cart(user_id)
            existing_item = self.repo.get_cart_item(cart.id, variant_id)
            new_quantity = quantity + (existing_item.quantity if existing_item else 0)

            variant = self._purchasable_variant(variant_id, new_quantity)
            price = variant.unit_price

            if existing_item:
                logger.info(
                    f"Variant {variant_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {new_quantity}"
                )
                existing_item.quantity = new_quantity
                existing_item.unit_price = price
            else:
                logger.info(f"Adding variant {variant_id} to cart {cart.id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        product_id=variant.product_id,
                        variant_id=variant_id,
                        quantity=quantity,
                        unit_price=price,
                    )
                )

            self._bump_version(cart)

    def update_quantity(self, ctx: RequestContext, variant_id: int, quantity: int) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        with unit_of_work(self.db):
            cart = self.repo.get_active_cart_by_user(ctx.user_id)
            item = self.repo.get_cart_item(cart.id, variant_id) if cart else None
            if not item:
                raise ValidationError("Item is not in the cart")

            variant = self._purchasable_variant(variant_id, quantity)
            item.quantity = quantity
            item.unit_price = variant.unit_price

            self._bump_version(cart)

        self.db.expire_all()
        return self.get_cart(ctx)

    def remove_product(self, ctx: RequestContext, variant_id: int) -> Dict[str, Any]:
        with unit_of_work(self.db):
            cart = self.repo.get_active_cart_by_user(ctx.user_id)
            if not cart:
                raise ValidationError("Cart is empty")

            logger.info(f"Removing variant {variant_id} from cart {cart.id}")
            if self.repo.delete_cart_item(cart.id, variant_id) == 0:
                raise ValidationError("Item is not in the cart")

            self._bump_version(cart)

        self.db.expire_all()
        return self.get_cart(ctx)
