from enum import Enum
from pydantic import AliasChoices, BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime


class ProductStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_DISTRIBUTION = "in-distribution"
    RETAIL = "retail"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class Vote(BaseModel):
    validator_id: str
    decision: Decision
    reason: Optional[str] = None
    cast_at: datetime

    model_config = {"frozen": True}


class StatusEvent(BaseModel):
    status: ProductStatus
    actor_id: str
    actor_role: str
    at: datetime
    note: Optional[str] = None

    model_config = {"frozen": True}


class Product(BaseModel):
    product_id: str
    name: str
    description: Optional[str] = None
    quantity: float
    price_per_kg: float
    harvest_date: str
    qr_code: str
    status: ProductStatus = ProductStatus.PENDING
    validators_approved: int = 0
    total_validators: int
    rejection_reason: Optional[str] = None
    owner_id: str
    distributor_id: Optional[str] = None
    retailer_id: Optional[str] = None
    votes: List[Vote] = []
    history: List[StatusEvent] = []
    version: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}  # state changes go through lifecycle + repo CAS

    def has_voted(self, validator_id: str) -> bool:
        return any(v.validator_id == validator_id for v in self.votes)


class ProductView(Product):
    """Product as shown on the consumer QR page: owner display name joined in."""
    owner_name: Optional[str] = None


class ProductCreate(BaseModel):
    """Producer input. Accepts the camelCase keys the web client sends."""
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    quantity: float = Field(gt=0, allow_inf_nan=False, description="Kilograms")
    price_per_kg: float = Field(
        gt=0, allow_inf_nan=False, validation_alias=AliasChoices("price_per_kg", "pricePerKg")
    )
    harvest_date: Optional[date] = Field(
        default=None, validation_alias=AliasChoices("harvest_date", "harvestDate")
    )

    model_config = {"str_strip_whitespace": True}

    @field_validator("quantity", "price_per_kg", mode="before")
    @classmethod
    def _no_booleans(cls, v):
        # bool is an int subclass; lax float mode would read true as 1.0
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v
