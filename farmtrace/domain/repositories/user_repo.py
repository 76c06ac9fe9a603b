# farmtrace/domain/repositories/user_repo.py
from __future__ import annotations
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorDatabase


class UserRepo:
    """
    Read-only view over the 'users' collection owned by the auth service.
    Only used to put a producer's display name next to their products.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "users"):
        self.col = db[collection_name]

    async def get_display_name(self, user_id: str) -> Optional[str]:
        doc = await self.col.find_one({"user_id": user_id}, {"_id": 0, "name": 1})
        return doc.get("name") if doc else None
