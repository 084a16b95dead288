# storefront/api/routers/carts.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_current_user
from storefront.data.database import get_db
from storefront.domain.caller import Caller
from storefront.domain.errors import BadRequestError
from storefront.domain.schemas import (
    CartItemIn,
    CartItemUpdate,
    CartOut,
    CartSummaryOut,
    Envelope,
    MergeCartIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session = Depends(get_db)) -> CartService:
    return CartService(db)


@router.get("", response_model=Envelope[CartOut])
def get_cart(user: Caller = Depends(get_current_user), svc: CartService = Depends(get_service)):
    return {"success": True, "data": svc.get_cart(user.user_id)}


@router.delete("")
def clear_cart(user: Caller = Depends(get_current_user), svc: CartService = Depends(get_service)):
    svc.clear(user.user_id)
    return {"success": True, "data": {}}


@router.get("/summary", response_model=Envelope[CartSummaryOut])
def get_cart_summary(user: Caller = Depends(get_current_user), svc: CartService = Depends(get_service)):
    return {"success": True, "data": svc.get_summary(user.user_id)}


@router.post("/items", response_model=Envelope[CartOut])
def add_to_cart(
    payload: CartItemIn,
    user: Caller = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    if payload.product_id is None:
        raise BadRequestError("Please provide a product ID")
    return {"success": True, "data": svc.add_item(user.user_id, payload.product_id, payload.quantity)}


@router.put("/items/{product_id}", response_model=Envelope[CartOut])
def update_cart_item(
    product_id: int,
    payload: CartItemUpdate,
    user: Caller = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    if payload.quantity is None:
        raise BadRequestError("Please provide a quantity")
    return {"success": True, "data": svc.update_item_quantity(user.user_id, product_id, payload.quantity)}


@router.delete("/items/{product_id}", response_model=Envelope[CartOut])
def remove_from_cart(
    product_id: int,
    user: Caller = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return {"success": True, "data": svc.remove_item(user.user_id, product_id)}


@router.post("/merge", response_model=Envelope[CartOut])
def merge_carts(
    payload: MergeCartIn,
    user: Caller = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    """Merge the cart a guest built before logging in into the account cart."""
    return {"success": True, "data": svc.merge_guest_cart(user.user_id, payload.guest_cart.items)}
