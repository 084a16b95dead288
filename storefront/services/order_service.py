# storefront/services/order_service.py
import uuid
from collections import OrderedDict
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy.orm import Session
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from storefront.data.models.order import OrderModel
from storefront.data.models.order_item import OrderItemModel
from storefront.data.models.tracking_update import TrackingUpdateModel
from storefront.domain.caller import Caller
from storefront.domain.errors import (
    BadRequestError,
    ConflictError,
    InsufficientStockError,
    NotFoundError,
    OrderNumberTakenError,
    UnauthorizedError,
)
from storefront.domain.pricing import round_money, verify_order_pricing
from storefront.domain.schemas import OrderCreate, PaymentResultIn, StatusUpdateIn
from storefront.domain.tracking import (
    OrderStatus,
    TrackingEntry,
    check_transition,
    delivered_entry,
    format_order_number,
    payment_entry,
    placed_entry,
    status_entry,
    utcnow,
)
from storefront.repos.cart_repo import CartRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.product_repo import ProductRepo
from storefront.services.lock_service import LockService
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Checkout and the order lifecycle.

    Checkout turns declared order items into an order, drains stock and
    empties the caller's cart in one transaction. Every later status change
    prepends one entry to the order's tracking log.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.db = db
        self.repo = OrderRepo(db)
        self.products = ProductRepo(db)
        self.carts = CartRepo(db)
        self.lock_service = lock_service

    # =====================================================
    # CHECKOUT
    # =====================================================
    def create_order(self, caller: Caller, data: OrderCreate) -> Dict[str, Any]:
        """
        1. Validate lines against live stock and the declared prices
        2. Insert the order with a fresh order number
        3. Conditionally decrement stock for every line
        4. Clear the caller's cart
        Steps 2-4 commit together or not at all.
        """
        if not data.order_items:
            raise BadRequestError("No order items")

        token = self.lock_service.acquire_checkout_lock(caller.user_id, settings.CHECKOUT_LOCK_TTL_SECONDS)
        if not token:
            raise ConflictError("A checkout is already in progress for this user")

        try:
            products, pricing = self._validate(data)

            retrying = Retrying(
                reraise=True,
                stop=stop_after_attempt(settings.ORDER_NUMBER_MAX_RETRIES),
                retry=retry_if_exception_type(OrderNumberTakenError),
            )
            order = retrying(self._place_order, caller, data, products, pricing)
        finally:
            self.lock_service.release_checkout_lock(caller.user_id, token)

        logger.info(
            f"Order {order.order_number} created for user {caller.user_id}, total {order.total_price}"
        )
        return order_to_dict(order)

    def _validate(self, data: OrderCreate):
        # the same product may appear on several lines
        quantities: Dict[int, int] = OrderedDict()
        for line in data.order_items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = {p.id: p for p in self.products.get_products(quantities.keys())}
        if len(products) != len(quantities):
            raise NotFoundError("One or more products not found")

        for product_id, quantity in quantities.items():
            product = products[product_id]
            if product.stock < quantity:
                raise InsufficientStockError(f"Not enough stock for {product.name}")

        pricing = verify_order_pricing(
            [(line.price, line.quantity) for line in data.order_items],
            items_price=data.items_price,
            tax_price=data.tax_price,
            shipping_price=data.shipping_price,
            total_price=data.total_price,
            tax_rate=settings.TAX_RATE,
            free_shipping_threshold=settings.FREE_SHIPPING_THRESHOLD,
            flat_shipping=settings.FLAT_SHIPPING_PRICE,
        )
        return products, pricing

    def _place_order(self, caller: Caller, data: OrderCreate, products, pricing) -> OrderModel:
        shipping = data.shipping_info
        order = OrderModel(
            order_number=format_order_number(self.repo.count_orders() + 1),
            user_id=caller.user_id,
            shipping_address=shipping.address,
            shipping_city=shipping.city,
            shipping_state=shipping.state,
            shipping_country=shipping.country,
            shipping_postal_code=shipping.postal_code,
            shipping_phone=shipping.phone,
            payment_method=data.payment_method,
            items_price=pricing.items_price,
            tax_price=pricing.tax_price,
            shipping_price=pricing.shipping_price,
            total_price=pricing.total_price,
            order_status=OrderStatus.PROCESSING.value,
            is_paid=False,
            is_delivered=False,
            tracking_number="",
        )
        for line in data.order_items:
            product = products[line.product_id]
            order.items.append(
                OrderItemModel(
                    product_id=line.product_id,
                    name=line.name or product.name,
                    price=round_money(line.price),
                    image=line.image or product.primary_image_url,
                    quantity=line.quantity,
                )
            )
        self._prepend_tracking(order, placed_entry())

        try:
            self.repo.add_order(order)

            for line in data.order_items:
                if self.products.decrement_stock(line.product_id, line.quantity) == 0:
                    name = products[line.product_id].name
                    logger.warning(f"Stock for product {line.product_id} ran out during checkout")
                    raise InsufficientStockError(f"Not enough stock for {name}")

            cart = self.carts.get_cart_by_user(caller.user_id)
            if cart and cart.items:
                cart.items.clear()
                cart.version = cart.version + 1

            self.repo.commit()
        except OrderNumberTakenError:
            logger.warning(f"Order number {order.order_number} collided, retrying")
            raise
        except Exception:
            self.repo.rollback()
            raise

        self.db.refresh(order)
        return order

    # =====================================================
    # LIFECYCLE
    # =====================================================
    def mark_paid(self, caller: Caller, order_id: int, payment: PaymentResultIn) -> Dict[str, Any]:
        order = self._get_owned(caller, order_id, "Not authorized to update this order")
        if order.is_paid:
            raise BadRequestError("Order is already paid")

        now = utcnow()
        order.is_paid = True
        order.paid_at = now
        order.payment_id = payment.id or str(uuid.uuid4())
        order.payment_status = payment.status or "COMPLETED"
        order.payment_update_time = payment.update_time or now.isoformat()
        order.payment_email = payment.email_address or caller.email or ""
        self._prepend_tracking(order, payment_entry())

        self.repo.commit()
        logger.info(f"Order {order.order_number} paid ({order.payment_id})")
        return order_to_dict(order)

    def mark_delivered(self, caller: Caller, order_id: int) -> Dict[str, Any]:
        caller.require_admin()
        order = self._get(order_id)
        check_transition(order.order_status, OrderStatus.DELIVERED.value, settings.ORDER_STRICT_TRANSITIONS)

        order.is_delivered = True
        order.delivered_at = utcnow()
        order.order_status = OrderStatus.DELIVERED.value
        self._prepend_tracking(order, delivered_entry(order.shipping_city))

        self.repo.commit()
        logger.info(f"Order {order.order_number} delivered")
        return order_to_dict(order)

    def set_status(self, caller: Caller, order_id: int, update: StatusUpdateIn) -> Dict[str, Any]:
        caller.require_admin()
        order = self._get(order_id)

        new_status = check_transition(order.order_status, update.status, settings.ORDER_STRICT_TRANSITIONS)
        if new_status is not None:
            order.order_status = new_status.value
        if update.tracking_number:
            order.tracking_number = update.tracking_number
        self._prepend_tracking(order, status_entry(update.status, update.location, update.details))

        self.repo.commit()
        logger.info(f"Order {order.order_number} status -> {update.status.value}")
        return order_to_dict(order)

    # =====================================================
    # QUERY
    # =====================================================
    def get_order(self, caller: Caller, order_id: int) -> Dict[str, Any]:
        return order_to_dict(self._get_owned(caller, order_id, "Not authorized to view this order"))

    def get_my_orders(self, caller: Caller) -> List[Dict[str, Any]]:
        return [order_to_dict(o) for o in self.repo.list_orders(user_id=caller.user_id)]

    def get_orders(self, caller: Caller) -> List[Dict[str, Any]]:
        caller.require_admin()
        return [order_to_dict(o) for o in self.repo.list_orders()]

    def get_monthly_sales(self, caller: Caller) -> List[Dict[str, Any]]:
        caller.require_admin()
        since = utcnow() - timedelta(days=365)
        return [
            {
                "year": int(row.year),
                "month": int(row.month),
                "total_sales": round_money(row.total_sales),
                "num_orders": row.num_orders,
            }
            for row in self.repo.monthly_sales(since)
        ]

    def get_order_stats(self, caller: Caller) -> Dict[str, Any]:
        caller.require_admin()
        row = self.repo.paid_order_stats()
        if not row.total_orders:
            return {}
        return {
            "total_sales": round_money(row.total_sales),
            "total_orders": row.total_orders,
            "avg_order_value": round_money(row.avg_order_value),
            "min_order_value": round_money(row.min_order_value),
            "max_order_value": round_money(row.max_order_value),
        }

    # =====================================================
    # HELPERS
    # =====================================================
    def _get(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _get_owned(self, caller: Caller, order_id: int, message: str) -> OrderModel:
        order = self._get(order_id)
        if not caller.owns(order.user_id):
            raise UnauthorizedError(message)
        return order

    @staticmethod
    def _prepend_tracking(order: OrderModel, entry: TrackingEntry) -> None:
        sequence = max((t.sequence for t in order.tracking_updates), default=0) + 1
        order.tracking_updates.insert(
            0,
            TrackingUpdateModel(
                sequence=sequence,
                date=entry.date,
                status=entry.status.value,
                location=entry.location,
                details=entry.details,
            ),
        )


def order_to_dict(order: OrderModel) -> Dict[str, Any]:
    payment_info = None
    if order.payment_id:
        payment_info = {
            "id": order.payment_id,
            "status": order.payment_status,
            "update_time": order.payment_update_time,
            "email_address": order.payment_email,
        }

    return {
        "id": order.id,
        "order_number": order.order_number,
        "user": order.user_id,
        "order_items": [
            {
                "product_id": i.product_id,
                "name": i.name,
                "price": i.price,
                "image": i.image,
                "quantity": i.quantity,
            }
            for i in order.items
        ],
        "shipping_info": {
            "address": order.shipping_address,
            "city": order.shipping_city,
            "state": order.shipping_state,
            "country": order.shipping_country,
            "postal_code": order.shipping_postal_code,
            "phone": order.shipping_phone,
        },
        "payment_method": order.payment_method,
        "payment_info": payment_info,
        "items_price": order.items_price,
        "tax_price": order.tax_price,
        "shipping_price": order.shipping_price,
        "total_price": order.total_price,
        "order_status": order.order_status,
        "is_paid": order.is_paid,
        "paid_at": order.paid_at,
        "is_delivered": order.is_delivered,
        "delivered_at": order.delivered_at,
        "tracking_number": order.tracking_number,
        "tracking_updates": [
            {
                "date": t.date,
                "status": t.status,
                "location": t.location,
                "details": t.details,
            }
            for t in order.tracking_updates
        ],
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }
