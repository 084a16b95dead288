import pytest

from storefront.domain.errors import BadRequestError
from storefront.domain.tracking import (
    DEFAULT_LOCATION,
    OrderStatus,
    TrackingStatus,
    check_transition,
    delivered_entry,
    format_order_number,
    status_entry,
)


def test_order_number_is_zero_padded():
    assert format_order_number(1) == "ORD-000001"
    assert format_order_number(123456) == "ORD-123456"


def test_permissive_mode_allows_any_order_status():
    assert check_transition("Delivered", TrackingStatus.PROCESSING, strict=False) == OrderStatus.PROCESSING
    assert check_transition("Cancelled", TrackingStatus.SHIPPED, strict=False) == OrderStatus.SHIPPED


def test_transit_statuses_leave_order_status_alone():
    assert check_transition("Processing", TrackingStatus.IN_TRANSIT, strict=False) is None
    assert check_transition("Shipped", TrackingStatus.OUT_FOR_DELIVERY, strict=True) is None


def test_order_placed_is_reserved_for_checkout():
    with pytest.raises(BadRequestError):
        check_transition("Processing", TrackingStatus.ORDER_PLACED, strict=False)


@pytest.mark.parametrize(
    "current,target",
    [
        ("Processing", TrackingStatus.SHIPPED),
        ("Processing", TrackingStatus.CANCELLED),
        ("Shipped", TrackingStatus.DELIVERED),
        ("Delivered", TrackingStatus.RETURNED),
        ("Shipped", TrackingStatus.SHIPPED),
    ],
)
def test_strict_mode_allowed(current, target):
    assert check_transition(current, target, strict=True) == OrderStatus(target.value)


@pytest.mark.parametrize(
    "current,target",
    [
        ("Delivered", TrackingStatus.PROCESSING),
        ("Cancelled", TrackingStatus.SHIPPED),
        ("Returned", TrackingStatus.DELIVERED),
        ("Processing", TrackingStatus.IN_TRANSIT),
    ],
)
def test_strict_mode_rejected(current, target):
    with pytest.raises(BadRequestError):
        check_transition(current, target, strict=True)


def test_entry_defaults():
    entry = status_entry(TrackingStatus.SHIPPED)
    assert entry.location == DEFAULT_LOCATION
    assert entry.details == "Order status updated to Shipped"
    assert delivered_entry("Springfield").location == "Springfield"
    assert delivered_entry(None).location == DEFAULT_LOCATION
