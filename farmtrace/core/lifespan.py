# farmtrace/core/lifespan.py
from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from farmtrace.db import mongo, redis as r
from farmtrace.core.config import get_settings
from farmtrace.domain.repositories.product_repo import ensure_indexes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Mongo is mandatory
    try:
        await mongo.connect()
        await ensure_indexes(mongo.get_db())
        logger.info("Mongo connected, indexes ensured (db=%s)", settings.MONGO_DB)
    except Exception:
        logger.exception("Mongo connection failed")
        raise

    # Redis is optional
    if settings.REDIS_URL:
        await r.connect()
    else:
        logger.warning("No REDIS_URL provided, QR lookups will not be cached")

    yield

    # --- Shutdown ---
    await r.disconnect()
    await mongo.disconnect()
    logger.info("Connections closed")
