#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from armoire.data.models.user import UserModel
from armoire.data.models.address import AddressModel
from armoire.data.models.product import ProductModel, ProductVariantModel
from armoire.data.models.cart import CartModel
from armoire.data.models.cart_item import CartItemModel
from armoire.data.models.order import OrderModel, OrderItemModel
from armoire.data.models.payment import PaymentRecordModel

__all__ = [
    "UserModel",
    "AddressModel",
    "ProductModel",
    "ProductVariantModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "PaymentRecordModel",
]
