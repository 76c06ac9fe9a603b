# farmtrace/domain/services/lifecycle.py
"""
Pure product lifecycle rules.

    pending --(all validators approve)--> approved --(distributor)--> in-distribution --(retailer)--> retail
       |                                                 ^
       +--(any validator rejects)--> rejected            |
       +--(distributor, when pending distribution is allowed)

Functions here take a Product and return the next Product (never mutate, never touch
storage). The services wrap them in a read / compute / compare-and-swap loop.
"""
from __future__ import annotations
from datetime import datetime
from typing import Optional

from farmtrace.domain.errors import (
    AlreadyVotedError,
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)
from farmtrace.domain.models.identity import Identity, Role
from farmtrace.domain.models.product import (
    Decision,
    Product,
    ProductStatus,
    StatusEvent,
    Vote,
)

# Statuses each stage may start from
DISTRIBUTION_SOURCES = frozenset({ProductStatus.APPROVED})
RETAIL_SOURCES = frozenset({ProductStatus.IN_DISTRIBUTION, ProductStatus.RETAIL})

# Position along the chain; rejected sits beside approved (same depth, dead end)
STATUS_RANK = {
    ProductStatus.PENDING: 0,
    ProductStatus.APPROVED: 1,
    ProductStatus.REJECTED: 1,
    ProductStatus.IN_DISTRIBUTION: 2,
    ProductStatus.RETAIL: 3,
}


def is_forward(old: ProductStatus, new: ProductStatus) -> bool:
    """True when old -> new is allowed by the graph (staying put included)."""
    if old == new:
        return True
    if old == ProductStatus.REJECTED:
        return False
    if new == ProductStatus.REJECTED:
        return old == ProductStatus.PENDING
    return STATUS_RANK[new] > STATUS_RANK[old]


def _event(status: ProductStatus, actor: Identity, at: datetime, note: Optional[str] = None) -> StatusEvent:
    return StatusEvent(status=status, actor_id=actor.user_id, actor_role=actor.role.value, at=at, note=note)


def apply_vote(
    product: Product,
    voter: Identity,
    decision: Decision,
    reason: Optional[str],
    now: datetime,
) -> Product:
    """
    Fold one validator decision into the product.
    A single reject is decisive; approval needs `total_validators` distinct approvals.
    """
    reason = reason.strip() if reason else None
    if decision == Decision.REJECT and not reason:
        raise ValidationError("A reason is required when rejecting a product")
    if product.has_voted(voter.user_id):
        raise AlreadyVotedError(f"Validator {voter.user_id} already voted on product {product.product_id}")
    if product.status != ProductStatus.PENDING:
        raise InvalidStateError(
            f"Product {product.product_id} is '{product.status.value}', votes are only accepted while pending"
        )

    vote = Vote(validator_id=voter.user_id, decision=decision, reason=reason, cast_at=now)
    changes: dict = {
        "votes": [*product.votes, vote],
        "updated_at": now,
    }

    if decision == Decision.APPROVE:
        approved = min(product.validators_approved + 1, product.total_validators)
        changes["validators_approved"] = approved
        if approved >= product.total_validators:
            changes["status"] = ProductStatus.APPROVED
            changes["history"] = [*product.history, _event(ProductStatus.APPROVED, voter, now, "consensus reached")]
    else:
        changes["status"] = ProductStatus.REJECTED
        changes["rejection_reason"] = reason
        changes["history"] = [*product.history, _event(ProductStatus.REJECTED, voter, now, reason)]

    return product.model_copy(update=changes)


def apply_distribution(product: Product, distributor: Identity, now: datetime, *, allow_pending: bool) -> Product:
    sources = DISTRIBUTION_SOURCES | ({ProductStatus.PENDING} if allow_pending else set())
    if product.status not in sources:
        allowed = ", ".join(sorted(s.value for s in sources))
        raise InvalidStateError(
            f"Product {product.product_id} is '{product.status.value}', distribution requires one of: {allowed}"
        )
    return product.model_copy(update={
        "status": ProductStatus.IN_DISTRIBUTION,
        "distributor_id": distributor.user_id,
        "history": [*product.history, _event(ProductStatus.IN_DISTRIBUTION, distributor, now)],
        "updated_at": now,
    })


def apply_retail(product: Product, retailer: Identity, now: datetime) -> Product:
    """Re-accepting a product already in retail returns it untouched."""
    if product.status not in RETAIL_SOURCES:
        raise InvalidStateError(
            f"Product {product.product_id} is '{product.status.value}', retail requires 'in-distribution'"
        )
    if product.status == ProductStatus.RETAIL:
        return product
    return product.model_copy(update={
        "status": ProductStatus.RETAIL,
        "retailer_id": retailer.user_id,
        "history": [*product.history, _event(ProductStatus.RETAIL, retailer, now)],
        "updated_at": now,
    })


def creation_event(owner: Identity, now: datetime) -> StatusEvent:
    return _event(ProductStatus.PENDING, owner, now, "listed")


def require_role(identity: Identity, allowed, action: str) -> None:
    roles = {allowed} if isinstance(allowed, Role) else set(allowed)
    if identity.role not in roles:
        raise ForbiddenError(f"Role '{identity.role.value}' is not allowed to {action}")
