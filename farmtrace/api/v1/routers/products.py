# farmtrace/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query
from typing import Optional
import time

from farmtrace.api.deps import IdentityDep, mongo_db, redis_dep
from farmtrace.api.v1.schemas.products import (
    ErrorOut,
    HistoryOut,
    ProductIn,
    ProductOut,
    ProductQrOut,
    VoteIn,
    VotesOut,
)
from farmtrace.domain.models.product import ProductStatus
from farmtrace.domain.services.consensus_svc import cast_vote_svc
from farmtrace.domain.services.lookup_svc import (
    get_by_id_svc,
    get_by_qr_code_svc,
    get_history_svc,
    list_all_svc,
    list_votes_svc,
)
from farmtrace.domain.services.registry_svc import create_product_svc
from farmtrace.domain.services.supply_chain_svc import (
    accept_for_distribution_svc,
    accept_for_retail_svc,
)

import logging
logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["products"],
    responses={
        400: {"model": ErrorOut},
        401: {"model": ErrorOut},
        403: {"model": ErrorOut},
        404: {"model": ErrorOut},
        409: {"model": ErrorOut},
    },
)


# ----- Registry ---------------------------------------------------------------

@router.post("/products", status_code=201, response_model=ProductOut, summary="List a harvested batch (producer)")
async def create_product(
    payload: ProductIn,
    identity: IdentityDep,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    logger.info("Request: create_product owner_id=%s name=%s", identity.user_id, payload.name)
    product = await create_product_svc(db=db, redis=redis, identity=identity, payload=payload)
    return product.model_dump()


@router.get("/products", response_model=list[ProductOut], summary="All products, newest first")
async def list_products(
    status: Optional[ProductStatus] = Query(None, description="Only products in this status"),
    owner_id: Optional[str] = Query(None, description="Only products listed by this producer"),
    limit: Optional[int] = Query(None, ge=1, description="Cap on the number of items; all products when omitted"),
    db = Depends(mongo_db),
):
    start_time = time.perf_counter()
    items = await list_all_svc(db=db, status=status, owner_id=owner_id, limit=limit)
    logger.info(
        "Response: list_products status=%s owner_id=%s count=%s elapsed_time=%.4fs",
        status, owner_id, len(items), time.perf_counter() - start_time,
    )
    return [p.model_dump() for p in items]


# Declared before /products/{product_id}/... so "qr" is never taken for an id
@router.get("/products/qr/{code}", response_model=ProductQrOut, summary="Consumer lookup by QR code")
async def get_product_by_qr(
    code: str,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    view = await get_by_qr_code_svc(db=db, redis=redis, qr_code=code)
    return view.model_dump()


@router.get("/products/{product_id}", response_model=ProductOut)
async def get_product(product_id: str, db = Depends(mongo_db)):
    product = await get_by_id_svc(db=db, product_id=product_id)
    return product.model_dump()


# ----- Validation consensus ---------------------------------------------------

@router.post("/products/{product_id}/vote", response_model=ProductOut, summary="Approve or reject (validator)")
async def vote_product(
    product_id: str,
    body: VoteIn,
    identity: IdentityDep,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    logger.info(
        "Request: vote_product product_id=%s validator_id=%s decision=%s",
        product_id, identity.user_id, body.decision.value,
    )
    product = await cast_vote_svc(
        db=db,
        redis=redis,
        identity=identity,
        product_id=product_id,
        decision=body.decision,
        reason=body.reason,
    )
    logger.info(
        "Response: vote_product product_id=%s status=%s approvals=%s/%s",
        product_id, product.status.value, product.validators_approved, product.total_validators,
    )
    return product.model_dump()


@router.get("/products/{product_id}/votes", response_model=VotesOut)
async def list_votes(product_id: str, db = Depends(mongo_db)):
    votes = await list_votes_svc(db=db, product_id=product_id)
    return {"product_id": product_id, "items": [v.model_dump() for v in votes], "count": len(votes)}


@router.get("/products/{product_id}/history", response_model=HistoryOut, summary="Provenance timeline")
async def get_history(product_id: str, db = Depends(mongo_db)):
    events = await get_history_svc(db=db, product_id=product_id)
    return {"product_id": product_id, "items": [e.model_dump() for e in events], "count": len(events)}


# ----- Supply chain -----------------------------------------------------------

@router.post("/products/{product_id}/accept", response_model=ProductOut, summary="Take into distribution (distributor)")
async def accept_for_distribution(
    product_id: str,
    identity: IdentityDep,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    logger.info("Request: accept_for_distribution product_id=%s distributor_id=%s", product_id, identity.user_id)
    product = await accept_for_distribution_svc(db=db, redis=redis, identity=identity, product_id=product_id)
    return product.model_dump()


@router.post("/products/{product_id}/retail", response_model=ProductOut, summary="Take into retail (retailer)")
async def accept_for_retail(
    product_id: str,
    identity: IdentityDep,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    logger.info("Request: accept_for_retail product_id=%s retailer_id=%s", product_id, identity.user_id)
    product = await accept_for_retail_svc(db=db, redis=redis, identity=identity, product_id=product_id)
    return product.model_dump()
