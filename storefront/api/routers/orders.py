# storefront/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user, get_lock_service
from storefront.data.database import get_db
from storefront.domain.caller import Caller
from storefront.domain.schemas import (
    Envelope,
    ListEnvelope,
    MonthlySalesOut,
    OrderCreate,
    OrderOut,
    OrderStatsOut,
    PaymentResultIn,
    StatusUpdateIn,
)
from storefront.services.lock_service import LockService
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> OrderService:
    return OrderService(db, lock_service)


@router.post("", response_model=Envelope[OrderOut], status_code=201)
def create_order(
    payload: OrderCreate,
    user: Caller = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    """Checkout: validates the declared items and totals, then places the order."""
    return {"success": True, "data": svc.create_order(user, payload)}


@router.get("", response_model=ListEnvelope[OrderOut])
def get_orders(user: Caller = Depends(get_current_user), svc: OrderService = Depends(get_service)):
    orders = svc.get_orders(user)
    return {"success": True, "count": len(orders), "data": orders}


@router.get("/myorders", response_model=ListEnvelope[OrderOut])
def get_my_orders(user: Caller = Depends(get_current_user), svc: OrderService = Depends(get_service)):
    orders = svc.get_my_orders(user)
    return {"success": True, "count": len(orders), "data": orders}


# declared before /{order_id} so the literal paths win
@router.get("/stats", response_model=Envelope[OrderStatsOut], response_model_exclude_none=True)
def get_order_stats(user: Caller = Depends(get_current_user), svc: OrderService = Depends(get_service)):
    return {"success": True, "data": svc.get_order_stats(user)}


@router.get("/monthly-sales", response_model=Envelope[list[MonthlySalesOut]])
def get_monthly_sales(user: Caller = Depends(get_current_user), svc: OrderService = Depends(get_service)):
    return {"success": True, "data": svc.get_monthly_sales(user)}


@router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order(order_id: int, user: Caller = Depends(get_current_user), svc: OrderService = Depends(get_service)):
    return {"success": True, "data": svc.get_order(user, order_id)}


@router.put("/{order_id}/pay", response_model=Envelope[OrderOut])
def update_order_to_paid(
    order_id: int,
    payload: PaymentResultIn | None = None,
    user: Caller = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return {"success": True, "data": svc.mark_paid(user, order_id, payload or PaymentResultIn())}


@router.put("/{order_id}/deliver", response_model=Envelope[OrderOut])
def update_order_to_delivered(
    order_id: int,
    user: Caller = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return {"success": True, "data": svc.mark_delivered(user, order_id)}


@router.put("/{order_id}/status", response_model=Envelope[OrderOut])
def update_order_status(
    order_id: int,
    payload: StatusUpdateIn,
    user: Caller = Depends(get_current_user),
    svc: OrderService = Depends(get_service),
):
    return {"success": True, "data": svc.set_status(user, order_id, payload)}
