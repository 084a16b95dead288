from typing import Any, Dict, Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel
from storefront.domain.errors import (
    BadRequestError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    StorefrontError,
)
from storefront.domain.pricing import cart_totals, round_money
from storefront.repos.cart_repo import CartRepo
from storefront.repos.product_repo import ProductRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases for the cart domain.
    commands (add, update, remove, clear, merge) change state and bump the cart version,
    queries (get, summary) only read.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, user_id: str) -> Dict[str, Any]:
        return self._view(self.get_or_create_cart(user_id))

    def get_summary(self, user_id: str) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        total_items, total_price = cart_totals((i.price, i.quantity) for i in cart.items)
        return {
            "total_items": total_items,
            "total_price": total_price,
            "items": len(cart.items),
        }

    def get_or_create_cart(self, user_id: str) -> CartModel:
        cart = self.repo.get_cart_by_user(user_id)
        if cart:
            return cart

        try:
            cart = self.repo.create_cart(CartModel(user_id=user_id, version=1))
            logger.info(f"Created cart {cart.id} for user {user_id}")
        except IntegrityError:
            # another request created it between our read and insert
            self.repo.rollback()
            cart = self.repo.get_cart_by_user(user_id)
            if cart is None:
                raise
        return cart

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item(self, user_id: str, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        """
        Add ``quantity`` of a product, merging into an existing line.

        The stock check is against live stock at this moment and reserves
        nothing; checkout re-checks atomically.
        """
        if quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        cart = self.get_or_create_cart(user_id)

        product = self.products.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product not found with id of {product_id}")

        if product.stock < quantity:
            raise InsufficientStockError("Not enough stock available")

        existing_item = self._find_item(cart, product_id)
        if existing_item:
            logger.info(
                f"Product {product_id} already in cart {cart.id}, quantity "
                f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
            )
            existing_item.quantity += quantity
        else:
            logger.info(f"Adding product {product_id} to cart {cart.id}")
            cart.items.append(
                CartItemModel(
                    product_id=product.id,
                    name=product.name,
                    price=round_money(product.price),
                    image=product.primary_image_url,
                    quantity=quantity,
                )
            )

        self._save(cart)
        return self._view(cart)

    def update_item_quantity(self, user_id: str, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            return self.remove_item(user_id, product_id)

        cart = self.get_or_create_cart(user_id)
        item = self._find_item(cart, product_id)
        if item is None:
            return self._view(cart)

        # stock is not re-checked here, checkout does that
        item.quantity = quantity
        self._save(cart)
        return self._view(cart)

    def remove_item(self, user_id: str, product_id: int) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        item = self._find_item(cart, product_id)
        if item is None:
            return self._view(cart)

        logger.info(f"Removing product {product_id} from cart {cart.id}")
        cart.items.remove(item)
        self._save(cart)
        return self._view(cart)

    def clear(self, user_id: str) -> Dict[str, Any]:
        cart = self.get_or_create_cart(user_id)
        if cart.items:
            cart.items.clear()
            self._save(cart)
            logger.info(f"Cleared cart {cart.id}")
        return self._view(cart)

    def merge_guest_cart(self, user_id: str, guest_items: Iterable[Any]) -> Dict[str, Any]:
        """Best effort: malformed lines and items that fail to add are logged and skipped."""
        for item in guest_items:
            try:
                product_id, quantity = _parse_guest_line(item)
                self.add_item(user_id, product_id, quantity)
            except StorefrontError as e:
                logger.warning(f"Skipping guest cart item {item!r}: {e.message}")

        return self.get_cart(user_id)

    # =====================================================
    # HELPERS
    # =====================================================
    @staticmethod
    def _find_item(cart: CartModel, product_id: int) -> CartItemModel | None:
        for item in cart.items:
            if item.product_id == product_id:
                return item
        return None

    def _save(self, cart: CartModel) -> None:
        # optimistic locking, lost updates become a 409 instead
        rowcount = self.repo.update_cart_version(cart_id=cart.id, old_version=cart.version)
        if rowcount == 0:
            self.repo.rollback()
            raise ConflictError("Cart was modified by another request, please retry")
        self.repo.commit()

    def _view(self, cart: CartModel) -> Dict[str, Any]:
        """Cart as stored plus a read-only projection of each live product."""
        items = list(cart.items)
        products = {p.id: p for p in self.products.get_products({i.product_id for i in items})}
        total_items, total_price = cart_totals((i.price, i.quantity) for i in items)

        return {
            "id": cart.id,
            "user": cart.user_id,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.name,
                    "price": i.price,
                    "image": i.image,
                    "quantity": i.quantity,
                    "product": _product_projection(products.get(i.product_id)),
                }
                for i in items
            ],
            "total_items": total_items,
            "total_price": total_price,
            "version": cart.version,
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
        }


def _product_projection(product) -> Dict[str, Any] | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "name": product.name,
        "price": product.price,
        "images": [{"url": img.url, "alt": img.alt} for img in product.images],
        "stock": product.stock,
    }


def _parse_guest_line(item: Any) -> tuple[int, int]:
    """(product id, quantity) of a guest cart line as sent by the client."""
    if not isinstance(item, dict):
        raise BadRequestError("Guest cart item must be an object")
    product_id = _as_int(item.get("product"), "Invalid product ID")
    quantity = _as_int(item.get("quantity", 1), "Invalid quantity")
    return product_id, quantity


def _as_int(value: Any, message: str) -> int:
    # True and 2.5 are not quantities
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise BadRequestError(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError(message) from None
