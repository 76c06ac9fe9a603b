# farmtrace/domain/services/consensus_svc.py
from __future__ import annotations
import logging
from typing import Optional

from farmtrace.core.config import Settings
from farmtrace.domain.models.identity import VOTING_ROLES, Identity
from farmtrace.domain.models.product import Decision, Product
from farmtrace.domain.services.lifecycle import apply_vote, require_role
from farmtrace.domain.services.registry_svc import mutate_product

logger = logging.getLogger(__name__)


async def cast_vote_svc(
    db,
    redis,
    identity: Identity,
    product_id: str,
    decision: Decision,
    reason: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> Product:
    """
    One validator, one vote. Any reject is final; approval needs every validator.
    Duplicate votes raise AlreadyVotedError, votes on resolved products InvalidStateError.
    """
    require_role(identity, VOTING_ROLES, "vote on products")
    logger.info("cast_vote product_id=%s validator_id=%s decision=%s", product_id, identity.user_id, decision.value)

    return await mutate_product(
        db,
        redis,
        product_id,
        lambda product, now: apply_vote(product, identity, decision, reason, now),
        action="cast_vote",
        settings=settings,
    )
