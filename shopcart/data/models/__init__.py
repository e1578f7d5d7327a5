#import all models so SQLAlchemy registers them in Base.metadata

from shopcart.data.models.user import UserModel
from shopcart.data.models.product import ProductModel, ProductSizeModel
from shopcart.data.models.cart_item import CartItemModel

__all__ = ["UserModel", "ProductModel", "ProductSizeModel", "CartItemModel"]
