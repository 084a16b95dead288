# storefront/services/product_service.py
from typing import Any, Dict, List

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductImageModel, ProductModel
from storefront.data.models.review import ReviewModel
from storefront.domain.caller import Caller
from storefront.domain.errors import BadRequestError, NotFoundError, UnauthorizedError
from storefront.domain.pricing import round_money
from storefront.domain.schemas import CATEGORIES, ProductCreate, ProductUpdate, ReviewIn
from storefront.repos.product_repo import ProductRepo
from storefront.services.blob_store import BlobStore
from storefront.utils import settings
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Catalog CRUD, reviews and product photos. Stock is only read here and set by admins."""

    def __init__(self, db: Session, blob_store: BlobStore | None = None):
        self.repo = ProductRepo(db)
        self.blob_store = blob_store

    # =====================================================
    # QUERY
    # =====================================================
    def list_products(
        self,
        category: str | None = None,
        min_price=None,
        max_price=None,
        keyword: str | None = None,
        sort: str | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> Dict[str, Any]:
        page = max(page, 1)
        limit = min(max(limit, 1), 100)
        start = (page - 1) * limit

        products, total = self.repo.list_products(
            category=category,
            min_price=min_price,
            max_price=max_price,
            keyword=keyword,
            sort=sort,
            offset=start,
            limit=limit,
        )

        pagination = {}
        if page * limit < total:
            pagination["next"] = {"page": page + 1, "limit": limit}
        if start > 0:
            pagination["prev"] = {"page": page - 1, "limit": limit}

        return {
            "count": len(products),
            "total": total,
            "pagination": pagination,
            "data": [product_to_dict(p) for p in products],
        }

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return product_to_dict(self._get(product_id), with_reviews=True)

    def top_products(self, limit: int = 5) -> List[Dict[str, Any]]:
        return [product_to_dict(p) for p in self.repo.top_products(limit)]

    # =====================================================
    # COMMANDS
    # =====================================================
    def create_product(self, caller: Caller, data: ProductCreate) -> Dict[str, Any]:
        caller.require_admin()
        _check_category(data.category)
        _check_stock(data.stock)

        product = ProductModel(
            name=data.name.strip(),
            description=data.description.strip(),
            price=round_money(data.price),
            category=data.category,
            stock=data.stock,
            seller_id=caller.user_id,
            ratings=0.0,
            num_reviews=0,
            is_active=True,
            images=[ProductImageModel(url=img.url, alt=img.alt) for img in data.images],
        )
        self.repo.add(product)
        self.repo.commit()
        logger.info(f"Product {product.id} created by {caller.user_id}")
        return product_to_dict(product)

    def update_product(self, caller: Caller, product_id: int, data: ProductUpdate) -> Dict[str, Any]:
        caller.require_admin()
        product = self._get_owned(caller, product_id, "update")

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if "category" in changes:
            _check_category(changes["category"])
        if "stock" in changes:
            _check_stock(changes["stock"])
        if "price" in changes:
            changes["price"] = round_money(changes["price"])
        if "images" in changes:
            product.images = [ProductImageModel(url=img["url"], alt=img.get("alt")) for img in changes.pop("images")]

        for field, value in changes.items():
            setattr(product, field, value)

        self.repo.commit()
        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return product_to_dict(product)

    def delete_product(self, caller: Caller, product_id: int) -> None:
        caller.require_admin()
        product = self._get_owned(caller, product_id, "delete")
        blob_keys = [img.key for img in product.images if img.key]
        # carts and orders keep their snapshots
        self.repo.delete(product)
        self.repo.commit()
        logger.info(f"Product {product_id} deleted by {caller.user_id}")

        for key in blob_keys:
            try:
                self.blob_store.delete(key)
            except (BotoCoreError, ClientError):
                logger.warning(f"Could not delete photo {key} of product {product_id}", exc_info=True)

    def add_review(self, caller: Caller, product_id: int, data: ReviewIn) -> List[Dict[str, Any]]:
        product = self._get(product_id)

        if self.repo.get_review(product_id, caller.user_id):
            raise BadRequestError("Product already reviewed by this user")

        product.reviews.append(
            ReviewModel(
                user_id=caller.user_id,
                name=caller.name or caller.user_id,
                rating=data.rating,
                comment=data.comment,
            )
        )
        # simple running mean over all reviews
        product.num_reviews = len(product.reviews)
        product.ratings = sum(r.rating for r in product.reviews) / product.num_reviews

        self.repo.commit()
        logger.info(f"Review added to product {product_id} by {caller.user_id}")
        return [review_to_dict(r) for r in product.reviews]

    def upload_photo(
        self,
        caller: Caller,
        product_id: int,
        data: bytes,
        content_type: str | None,
        filename: str,
    ) -> Dict[str, Any]:
        caller.require_admin()
        product = self._get_owned(caller, product_id, "update")
        check_image_upload(data, content_type)

        ref = self.blob_store.upload(data, content_type, f"photo_{product.id}_{filename}")
        product.images.append(ProductImageModel(url=ref["url"], key=ref["key"], alt=product.name))
        self.repo.commit()
        logger.info(f"Photo {ref['key']} attached to product {product_id}")
        return product_to_dict(product)

    # =====================================================
    # HELPERS
    # =====================================================
    def _get(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise NotFoundError(f"Product not found with id of {product_id}")
        return product

    def _get_owned(self, caller: Caller, product_id: int, action: str) -> ProductModel:
        product = self._get(product_id)
        if not caller.owns(product.seller_id):
            raise UnauthorizedError(f"User {caller.user_id} is not authorized to {action} this product")
        return product


def check_image_upload(data: bytes, content_type: str | None) -> None:
    if not data:
        raise BadRequestError("Please upload a file")
    if not content_type or not content_type.startswith("image"):
        raise BadRequestError("Please upload an image file")
    if len(data) > settings.MAX_FILE_UPLOAD:
        raise BadRequestError(f"Please upload an image less than {settings.MAX_FILE_UPLOAD}")


def _check_category(category: str) -> None:
    if category not in CATEGORIES:
        raise BadRequestError("Please select a valid category")


def _check_stock(stock: int) -> None:
    if stock < 0:
        raise BadRequestError("Product stock cannot be negative")
    if stock > settings.MAX_PRODUCT_STOCK:
        raise BadRequestError(f"Product stock cannot exceed {settings.MAX_PRODUCT_STOCK}")


def review_to_dict(review: ReviewModel) -> Dict[str, Any]:
    return {
        "user": review.user_id,
        "name": review.name,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at,
    }


def product_to_dict(product: ProductModel, with_reviews: bool = False) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "category": product.category,
        "stock": product.stock,
        "images": [{"url": img.url, "alt": img.alt} for img in product.images],
        "ratings": product.ratings,
        "num_reviews": product.num_reviews,
        "seller": product.seller_id,
        "is_active": product.is_active,
        "reviews": [review_to_dict(r) for r in product.reviews] if with_reviews else [],
        "created_at": product.created_at,
        "updated_at": product.updated_at,
    }
