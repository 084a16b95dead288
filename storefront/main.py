# storefront/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from storefront.api import create_app
from storefront.data.database import Base, engine
from storefront.utils.logging import get_logger, setup_logging
from storefront.utils.settings import ENVIRONMENT, LOG_LEVEL

# every model has to be imported before create_all
import storefront.data.models  # noqa: F401

setup_logging("storefront", level=LOG_LEVEL, environment=ENVIRONMENT)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Initializing database, tables: {sorted(Base.metadata.tables)}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.error("Failed to create tables", exc_info=True)
        raise
    logger.info("Database ready")
    yield


app = create_app(lifespan=lifespan)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
