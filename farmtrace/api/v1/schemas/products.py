# api/v1/schemas/products.py
from pydantic import BaseModel, Field
from typing import List, Optional

from farmtrace.domain.models.product import (
    Decision,
    Product,
    ProductCreate,
    ProductView,
    StatusEvent,
    Vote,
)

# Request bodies
ProductIn = ProductCreate


class VoteIn(BaseModel):
    decision: Decision
    reason: Optional[str] = Field(default=None, max_length=1000)


# Responses
ProductOut = Product
ProductQrOut = ProductView


class VotesOut(BaseModel):
    product_id: str
    items: List[Vote]
    count: int


class HistoryOut(BaseModel):
    product_id: str
    items: List[StatusEvent]
    count: int


class ErrorOut(BaseModel):
    message: str
    code: str
