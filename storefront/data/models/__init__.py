# all models are imported here so Base.metadata knows every table

from storefront.data.models.product import ProductModel, ProductImageModel
from storefront.data.models.review import ReviewModel
from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.tracking_update import TrackingUpdateModel

__all__ = [
    "ProductModel",
    "ProductImageModel",
    "ReviewModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
    "TrackingUpdateModel",
]
