# farmtrace/domain/services/supply_chain_svc.py
from __future__ import annotations
from typing import Optional

from farmtrace.core.config import Settings, get_settings
from farmtrace.domain.models.identity import Identity, Role
from farmtrace.domain.models.product import Product
from farmtrace.domain.services.lifecycle import apply_distribution, apply_retail, require_role
from farmtrace.domain.services.registry_svc import mutate_product


async def accept_for_distribution_svc(
    db,
    redis,
    identity: Identity,
    product_id: str,
    settings: Optional[Settings] = None,
) -> Product:
    """approved -> in-distribution (pending too while ALLOW_PENDING_DISTRIBUTION is on)."""
    settings = settings or get_settings()
    require_role(identity, Role.DISTRIBUTOR, "accept products for distribution")
    allow_pending = settings.ALLOW_PENDING_DISTRIBUTION

    return await mutate_product(
        db,
        redis,
        product_id,
        lambda product, now: apply_distribution(product, identity, now, allow_pending=allow_pending),
        action="accept_for_distribution",
        settings=settings,
    )


async def accept_for_retail_svc(
    db,
    redis,
    identity: Identity,
    product_id: str,
    settings: Optional[Settings] = None,
) -> Product:
    """in-distribution -> retail. Idempotent once in retail."""
    require_role(identity, Role.RETAILER, "accept products for retail")

    return await mutate_product(
        db,
        redis,
        product_id,
        lambda product, now: apply_retail(product, identity, now),
        action="accept_for_retail",
        settings=settings,
    )
