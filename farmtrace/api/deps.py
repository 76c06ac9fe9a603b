# farmtrace/api/deps.py
from typing import Annotated
from fastapi import Depends
from farmtrace.core.security import current_identity
from farmtrace.db.mongo import get_db
from farmtrace.db.redis import get_redis
from farmtrace.domain.models.identity import Identity

# Dependency for injecting the MongoDB database into endpoints/services
async def mongo_db(db = Depends(get_db)):
    return db

# Dependency for injecting the Redis client (or None) into endpoints/services
def redis_dep():
    return get_redis()

IdentityDep = Annotated[Identity, Depends(current_identity)]
