# storefront/api/__init__.py

from fastapi import FastAPI

from storefront.api.errors import register_exception_handlers
from storefront.api.routers import carts, files, health, orders, products
from storefront.utils.logging import RequestLoggingMiddleware
from storefront.utils.settings import API_PREFIX


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(carts.router, prefix=API_PREFIX)
    app.include_router(orders.router, prefix=API_PREFIX)
    app.include_router(products.router, prefix=API_PREFIX)
    app.include_router(files.router, prefix=API_PREFIX)

    return app
