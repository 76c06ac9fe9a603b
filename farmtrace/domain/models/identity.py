from enum import Enum
from pydantic import BaseModel


class Role(str, Enum):
    PRODUCER = "producer"
    VALIDATOR = "validator"
    QUALITY_INSPECTOR = "quality-inspector"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    CONSUMER = "consumer"


VOTING_ROLES = frozenset({Role.VALIDATOR, Role.QUALITY_INSPECTOR})


class Identity(BaseModel):
    """Verified caller, as supplied by the identity provider. Trusted as-is."""
    user_id: str
    role: Role

    model_config = {"frozen": True}
