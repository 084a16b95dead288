# storefront/domain/tracking.py
"""Order status vocabulary, transition rules and tracking entry factories."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from storefront.domain.errors import BadRequestError

DEFAULT_LOCATION = "Processing Center"


class OrderStatus(str, Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


class TrackingStatus(str, Enum):
    """Superset of OrderStatus used by the tracking log."""

    ORDER_PLACED = "Order Placed"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    IN_TRANSIT = "In Transit"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"
    RETURNED = "Returned"


# tracking-only statuses reported while a parcel is on its way
TRANSIT_STATUSES = {TrackingStatus.IN_TRANSIT, TrackingStatus.OUT_FOR_DELIVERY}

ALLOWED_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}


def check_transition(current: str, target: TrackingStatus, strict: bool) -> OrderStatus | None:
    """
    Resolve the order status a tracking status moves the order to.

    Returns None for transit-only statuses, which are logged without changing
    the order status. "Order Placed" is only ever written by checkout.
    With ``strict`` off every move between order statuses is accepted.
    """
    target = TrackingStatus(target)
    if target == TrackingStatus.ORDER_PLACED:
        raise BadRequestError("Status 'Order Placed' is set at checkout only")

    current_status = OrderStatus(current)

    if target in TRANSIT_STATUSES:
        if strict and current_status != OrderStatus.SHIPPED:
            raise BadRequestError(f"Cannot report '{target.value}' for an order that is {current_status.value}")
        return None

    new_status = OrderStatus(target.value)
    if strict and new_status != current_status and new_status not in ALLOWED_TRANSITIONS[current_status]:
        raise BadRequestError(
            f"Cannot change order status from {current_status.value} to {new_status.value}"
        )
    return new_status


def format_order_number(sequence: int) -> str:
    return f"ORD-{sequence:06d}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TrackingEntry:
    status: TrackingStatus
    location: str
    details: str
    date: datetime = field(default_factory=utcnow)


def placed_entry() -> TrackingEntry:
    return TrackingEntry(
        status=TrackingStatus.ORDER_PLACED,
        location=DEFAULT_LOCATION,
        details="Your order has been received",
    )


def payment_entry() -> TrackingEntry:
    return TrackingEntry(
        status=TrackingStatus.PROCESSING,
        location=DEFAULT_LOCATION,
        details="Payment received. Preparing for shipment.",
    )


def delivered_entry(city: str | None) -> TrackingEntry:
    return TrackingEntry(
        status=TrackingStatus.DELIVERED,
        location=city or DEFAULT_LOCATION,
        details="Your order has been delivered successfully.",
    )


def status_entry(status: TrackingStatus, location: str | None = None, details: str | None = None) -> TrackingEntry:
    status = TrackingStatus(status)
    return TrackingEntry(
        status=status,
        location=location or DEFAULT_LOCATION,
        details=details or f"Order status updated to {status.value}",
    )
