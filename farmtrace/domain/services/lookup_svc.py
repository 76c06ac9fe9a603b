# farmtrace/domain/services/lookup_svc.py
"""Public read paths. No role checks, no writes (apart from warming the QR cache)."""
from __future__ import annotations
import logging
import time
from typing import List, Optional

from farmtrace.core.config import Settings, get_settings
from farmtrace.domain.models.product import Product, ProductStatus, ProductView, StatusEvent, Vote
from farmtrace.domain.repositories.product_repo import ProductRepo
from farmtrace.domain.repositories.qr_cache_repo import QrLookupCacheRepo
from farmtrace.domain.services.registry_svc import (
    get_product_by_qr_svc,
    get_product_svc,
    list_products_svc,
)

logger = logging.getLogger(__name__)


async def list_all_svc(
    db,
    status: Optional[ProductStatus] = None,
    owner_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Product]:
    return await list_products_svc(db, status=status, owner_id=owner_id, limit=limit)


async def get_by_id_svc(db, product_id: str) -> Product:
    return await get_product_svc(db, product_id)


async def get_by_qr_code_svc(
    db,
    redis,
    qr_code: str,
    settings: Optional[Settings] = None,
) -> ProductView:
    """
    Consumer scan entry point.
    Served from Redis when warm; otherwise read + owner join from Mongo, then cached.
    The fill is checked against the stored version afterwards, so a write that
    races the fill never leaves its pre-write view in the cache.
    """
    settings = settings or get_settings()
    t0 = time.perf_counter()
    cache = QrLookupCacheRepo(redis) if redis is not None else None

    if cache is not None:
        cached = await cache.get(qr_code)
        if cached is not None:
            logger.info("qr_lookup cache_hit qr_code=%s", qr_code)
            return cached

    view = await get_product_by_qr_svc(db, qr_code)
    if cache is not None:
        await cache.set(view, ttl=settings.qr_cache_ttl)
        # a write that landed after our read may have invalidated before the set above
        if await ProductRepo(db).get_version_by_qr_code(qr_code) != view.version:
            logger.info("qr_lookup stale_fill dropped qr_code=%s version=%s", qr_code, view.version)
            await cache.invalidate(qr_code)

    logger.info(
        "qr_lookup db_ok qr_code=%s status=%s time=%.3fs",
        qr_code, view.status.value, time.perf_counter() - t0,
    )
    return view


async def list_votes_svc(db, product_id: str) -> List[Vote]:
    return list((await get_product_svc(db, product_id)).votes)


async def get_history_svc(db, product_id: str) -> List[StatusEvent]:
    return list((await get_product_svc(db, product_id)).history)
