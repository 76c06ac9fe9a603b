# farmtrace/domain/services/registry_svc.py
"""
Product Registry: creates products and owns every write to their state.

The consensus and supply-chain engines never write a product themselves; they
hand a pure `compute(product, now) -> product` function to `mutate_product`,
which runs it inside a read / compute / compare-and-swap loop.
"""
from __future__ import annotations
import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pymongo.errors import DuplicateKeyError

from farmtrace.core.config import Settings, get_settings
from farmtrace.domain.errors import (
    ConcurrentModificationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)
from farmtrace.domain.models.identity import Identity, Role
from farmtrace.domain.models.product import Product, ProductCreate, ProductStatus, ProductView
from farmtrace.domain.repositories.product_repo import ProductRepo
from farmtrace.domain.repositories.qr_cache_repo import QrLookupCacheRepo
from farmtrace.domain.repositories.user_repo import UserRepo
from farmtrace.domain.services.lifecycle import creation_event, is_forward, require_role

logger = logging.getLogger(__name__)

_QR_ALPHABET = string.digits + string.ascii_lowercase

Compute = Callable[[Product, datetime], Product]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_qr_code(now: datetime) -> str:
    """QR_<epoch ms>_<6 base36 chars>. Uniqueness is enforced by the store, not here."""
    suffix = "".join(secrets.choice(_QR_ALPHABET) for _ in range(6))
    return f"QR_{int(now.timestamp() * 1000)}_{suffix}"


async def create_product_svc(
    db,
    redis,
    identity: Identity,
    payload: ProductCreate,
    settings: Optional[Settings] = None,
) -> Product:
    settings = settings or get_settings()
    require_role(identity, Role.PRODUCER, "list products")

    now = utcnow()
    harvest_date = (payload.harvest_date or now.date()).isoformat()
    repo = ProductRepo(db)

    for attempt in range(1, settings.QR_CODE_MAX_ATTEMPTS + 1):
        product = Product(
            product_id=uuid.uuid4().hex,
            name=payload.name,
            description=payload.description,
            quantity=payload.quantity,
            price_per_kg=payload.price_per_kg,
            harvest_date=harvest_date,
            qr_code=generate_qr_code(now),
            status=ProductStatus.PENDING,
            validators_approved=0,
            total_validators=settings.TOTAL_VALIDATORS,
            owner_id=identity.user_id,
            history=[creation_event(identity, now)],
            created_at=now,
            updated_at=now,
        )
        try:
            await repo.insert(product)
        except DuplicateKeyError:
            logger.warning(
                "create_product key collision attempt=%s/%s qr_code=%s",
                attempt, settings.QR_CODE_MAX_ATTEMPTS, product.qr_code,
            )
            continue
        logger.info(
            "create_product ok product_id=%s qr_code=%s owner_id=%s",
            product.product_id, product.qr_code, identity.user_id,
        )
        return product

    logger.error("create_product gave up after %s QR code collisions", settings.QR_CODE_MAX_ATTEMPTS)
    raise ConflictError("Could not allocate a unique QR code for the product")


async def get_product_svc(db, product_id: str) -> Product:
    product = await ProductRepo(db).get_by_product_id(product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


async def get_product_by_qr_svc(db, qr_code: str) -> ProductView:
    """QR lookup with the owner's display name joined at read time."""
    product = await ProductRepo(db).get_by_qr_code(qr_code)
    if product is None:
        raise NotFoundError(f"No product for QR code {qr_code}")
    owner_name = await UserRepo(db).get_display_name(product.owner_id)
    return ProductView(**product.model_dump(), owner_name=owner_name)


async def list_products_svc(
    db,
    status: Optional[ProductStatus] = None,
    owner_id: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Product]:
    return await ProductRepo(db).list(status=status, owner_id=owner_id, limit=limit)


async def mutate_product(
    db,
    redis,
    product_id: str,
    compute: Compute,
    *,
    action: str,
    settings: Optional[Settings] = None,
) -> Product:
    """
    Apply `compute` to the current product and persist the result atomically.
    Domain errors raised by `compute` propagate untouched (nothing is written).
    If `compute` returns the product unchanged, nothing is written either.
    """
    settings = settings or get_settings()
    repo = ProductRepo(db)

    for attempt in range(1, settings.WRITE_MAX_RETRIES + 1):
        current = await repo.get_by_product_id(product_id)
        if current is None:
            raise NotFoundError(f"Product {product_id} not found")

        updated = compute(current, utcnow())
        if updated is current:
            logger.info("%s no-op product_id=%s status=%s", action, product_id, current.status.value)
            return current
        if not is_forward(current.status, updated.status):
            raise InvalidStateError(
                f"Product {product_id} cannot move from '{current.status.value}' to '{updated.status.value}'"
            )

        saved = await repo.compare_and_swap(current.version, updated)
        if saved is not None:
            if redis is not None:
                await QrLookupCacheRepo(redis).invalidate(saved.qr_code)
            logger.info(
                "%s ok product_id=%s status=%s->%s approvals=%s/%s version=%s",
                action, product_id, current.status.value, saved.status.value,
                saved.validators_approved, saved.total_validators, saved.version,
            )
            return saved

        logger.debug("%s lost race product_id=%s version=%s attempt=%s", action, product_id, current.version, attempt)

    logger.error("%s gave up product_id=%s after %s attempts", action, product_id, settings.WRITE_MAX_RETRIES)
    raise ConcurrentModificationError(f"Product {product_id} is being modified concurrently, try again")
