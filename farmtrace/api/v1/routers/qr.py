# farmtrace/api/v1/routers/qr.py
from fastapi import APIRouter, Depends

from farmtrace.api.deps import mongo_db, redis_dep
from farmtrace.api.v1.schemas.products import ErrorOut, ProductQrOut
from farmtrace.domain.services.lookup_svc import get_by_qr_code_svc

router = APIRouter(tags=["qr"], responses={404: {"model": ErrorOut}})


@router.get("/qr/{code}", response_model=ProductQrOut, summary="Short scan URL printed on labels")
async def lookup_by_code(
    code: str,
    db = Depends(mongo_db),
    redis = Depends(redis_dep),
):
    """Same payload as /products/qr/{code}."""
    view = await get_by_qr_code_svc(db=db, redis=redis, qr_code=code)
    return view.model_dump()
