# farmtrace/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Optional, List
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from farmtrace.domain.models.product import Product, ProductStatus

PRODUCTS = "products"


async def ensure_indexes(db: AsyncIOMotorDatabase, collection_name: str = PRODUCTS) -> None:
    """Unique keys the registry relies on for collision detection."""
    col = db[collection_name]
    await col.create_index([("product_id", ASCENDING)], unique=True, name="uniq_product_id")
    await col.create_index([("qr_code", ASCENDING)], unique=True, name="uniq_qr_code")
    await col.create_index([("created_at", DESCENDING)], name="created_at_desc")
    await col.create_index([("status", ASCENDING)], name="status")


def _to_doc(product: Product) -> dict:
    """Flatten enums to their string values so BSON (and filters) see plain strings."""
    doc = product.model_dump(exclude={"owner_name"})
    doc["status"] = product.status.value
    doc["votes"] = [{**v.model_dump(), "decision": v.decision.value} for v in product.votes]
    doc["history"] = [{**e.model_dump(), "status": e.status.value} for e in product.history]
    return doc


class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Every write after the insert is a compare-and-swap on `version`:
    the update only lands if nobody else wrote the document since it was read.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = PRODUCTS):
        self.col = db[collection_name]

    async def insert(self, product: Product) -> Product:
        """Raises pymongo DuplicateKeyError on product_id / qr_code collision."""
        await self.col.insert_one(_to_doc(product))
        return product

    async def get_by_product_id(self, product_id: str) -> Optional[Product]:
        doc = await self.col.find_one({"product_id": product_id}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def get_by_qr_code(self, qr_code: str) -> Optional[Product]:
        doc = await self.col.find_one({"qr_code": qr_code}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def list(
        self,
        *,
        status: Optional[ProductStatus] = None,
        owner_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Product]:
        """Newest first. `limit=None` returns every match."""
        query: dict = {}
        if status is not None:
            query["status"] = status.value
        if owner_id:
            query["owner_id"] = owner_id
        cursor = self.col.find(query, {"_id": 0}).sort("created_at", DESCENDING)
        if limit is not None:
            cursor = cursor.limit(limit)
        return [Product.model_validate(doc) async for doc in cursor]

    async def compare_and_swap(self, expected_version: int, updated: Product) -> Optional[Product]:
        """
        Replace the stored document with `updated` (version bumped) if the stored
        version still equals `expected_version`. Returns None when the race was lost.
        """
        doc = _to_doc(updated.model_copy(update={"version": expected_version + 1}))
        doc.pop("product_id")
        doc.pop("qr_code")      # immutable, never rewritten
        doc.pop("owner_id")
        doc.pop("created_at")
        # _id is stripped below rather than projected out
        saved = await self.col.find_one_and_update(
            {"product_id": updated.product_id, "version": expected_version},
            {"$set": doc},
            return_document=ReturnDocument.AFTER,
        )
        if saved is None:
            return None
        saved.pop("_id", None)
        return Product.model_validate(saved)

    async def get_version_by_qr_code(self, qr_code: str) -> Optional[int]:
        doc = await self.col.find_one({"qr_code": qr_code}, {"_id": 0, "version": 1})
        return doc["version"] if doc else None
