# import all models so SQLAlchemy registers them in Base.metadata

from supplyshop.data.models.profile import ProfileModel
from supplyshop.data.models.category import CategoryModel
from supplyshop.data.models.supplier import SupplierModel
from supplyshop.data.models.product import ProductModel
from supplyshop.data.models.cart import CartModel
from supplyshop.data.models.cart_item import CartItemModel
from supplyshop.data.models.order import OrderModel
from supplyshop.data.models.order_item import OrderItemModel

__all__ = [
    "ProfileModel",
    "CategoryModel",
    "SupplierModel",
    "ProductModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
