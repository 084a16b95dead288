# storefront/api/routers/products.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from storefront.api.deps import get_blob_store, get_current_user
from storefront.data.database import get_db
from storefront.domain.caller import Caller
from storefront.domain.schemas import (
    Envelope,
    ListEnvelope,
    ProductCreate,
    ProductOut,
    ProductPage,
    ProductUpdate,
    ReviewIn,
    ReviewOut,
)
from storefront.services.blob_store import BlobStore
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


def get_service(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ProductService:
    return ProductService(db, blob_store)


@router.get("", response_model=ProductPage)
def get_products(
    category: Optional[str] = None,
    min_price: Optional[Decimal] = Query(None, alias="minPrice"),
    max_price: Optional[Decimal] = Query(None, alias="maxPrice"),
    keyword: Optional[str] = None,
    sort: Optional[str] = None,
    page: int = 1,
    limit: int = 12,
    svc: ProductService = Depends(get_service),
):
    result = svc.list_products(
        category=category,
        min_price=min_price,
        max_price=max_price,
        keyword=keyword,
        sort=sort,
        page=page,
        limit=limit,
    )
    return {"success": True, **result}


@router.get("/top", response_model=ListEnvelope[ProductOut])
def get_top_products(svc: ProductService = Depends(get_service)):
    products = svc.top_products()
    return {"success": True, "count": len(products), "data": products}


@router.get("/{product_id}", response_model=Envelope[ProductOut])
def get_product(product_id: int, svc: ProductService = Depends(get_service)):
    return {"success": True, "data": svc.get_product(product_id)}


@router.post("", response_model=Envelope[ProductOut], status_code=201)
def create_product(
    payload: ProductCreate,
    user: Caller = Depends(get_current_user),
    svc: ProductService = Depends(get_service),
):
    return {"success": True, "data": svc.create_product(user, payload)}


@router.put("/{product_id}", response_model=Envelope[ProductOut])
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: Caller = Depends(get_current_user),
    svc: ProductService = Depends(get_service),
):
    return {"success": True, "data": svc.update_product(user, product_id, payload)}


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    user: Caller = Depends(get_current_user),
    svc: ProductService = Depends(get_service),
):
    svc.delete_product(user, product_id)
    return {"success": True, "data": {}}


@router.post("/{product_id}/reviews", response_model=ListEnvelope[ReviewOut], status_code=201)
def create_product_review(
    product_id: int,
    payload: ReviewIn,
    user: Caller = Depends(get_current_user),
    svc: ProductService = Depends(get_service),
):
    reviews = svc.add_review(user, product_id, payload)
    return {"success": True, "count": len(reviews), "data": reviews}


@router.put("/{product_id}/photo", response_model=Envelope[ProductOut])
def upload_product_photo(
    product_id: int,
    file: UploadFile = File(...),
    user: Caller = Depends(get_current_user),
    svc: ProductService = Depends(get_service),
):
    data = file.file.read()
    return {
        "success": True,
        "data": svc.upload_photo(user, product_id, data, file.content_type, file.filename or "upload"),
    }
