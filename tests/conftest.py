"""
Pytest configuration and fixtures for the farmtrace test suite.

Mongo is replaced by mongomock behind a small Motor-shaped async adapter
and Redis by fakeredis, so the whole suite runs in-process.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
import mongomock

from farmtrace.core.config import Settings
from farmtrace.domain.models.identity import Identity, Role
from farmtrace.domain.models.product import Product, ProductCreate, ProductStatus
from farmtrace.domain.repositories.product_repo import ensure_indexes
from farmtrace.domain.services.registry_svc import create_product_svc


# ============================================================================
# Storage
# ============================================================================

class AsyncCursor:
    """Async iteration over a mongomock cursor, with Motor's chaining."""

    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def limit(self, n):
        self._cursor = self._cursor.limit(n)
        return self

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._cursor)
        except StopIteration:
            raise StopAsyncIteration

    async def to_list(self, length=None):
        return list(self._cursor)[:length] if length else list(self._cursor)


class AsyncCollection:
    """
    Motor-shaped view of a mongomock collection: every call is awaitable,
    `find` returns an AsyncCursor. Operations run synchronously, so each one
    is atomic with respect to the event loop.
    """

    def __init__(self, col):
        self._col = col

    def find(self, *args, **kwargs):
        return AsyncCursor(self._col.find(*args, **kwargs))

    def __getattr__(self, name):
        method = getattr(self._col, name)

        async def call(*args, **kwargs):
            return method(*args, **kwargs)

        return call


class AsyncDatabase:
    def __init__(self, database):
        self._db = database

    def __getitem__(self, name):
        return AsyncCollection(self._db[name])


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database with the production indexes."""
    database = AsyncDatabase(mongomock.MongoClient()["farmtrace_test"])
    await ensure_indexes(database)
    return database


class InterleavingCollection:
    """
    Yields to the event loop right after every read, so concurrent tasks all
    read the same version before any of them writes.
    """

    def __init__(self, col):
        self._col = col

    async def find_one(self, *args, **kwargs):
        doc = await self._col.find_one(*args, **kwargs)
        await asyncio.sleep(0)
        return doc

    def __getattr__(self, name):
        return getattr(self._col, name)


class InterleavingDb:
    def __init__(self, db):
        self._db = db

    def __getitem__(self, name):
        col = self._db[name]
        return InterleavingCollection(col) if name == "products" else col


@pytest.fixture
def racy_db(db):
    return InterleavingDb(db)


# ============================================================================
# Settings and identities
# ============================================================================

@pytest.fixture
def settings():
    return Settings(_env_file=None, TOTAL_VALIDATORS=5, ALLOW_PENDING_DISTRIBUTION=True)


@pytest.fixture
def strict_settings():
    return Settings(_env_file=None, TOTAL_VALIDATORS=5, ALLOW_PENDING_DISTRIBUTION=False)


@pytest.fixture
def producer():
    return Identity(user_id="farmer-1", role=Role.PRODUCER)


@pytest.fixture
def validators():
    return [Identity(user_id=f"validator-{i}", role=Role.VALIDATOR) for i in range(1, 6)]


@pytest.fixture
def distributor():
    return Identity(user_id="distributor-1", role=Role.DISTRIBUTOR)


@pytest.fixture
def retailer():
    return Identity(user_id="retailer-1", role=Role.RETAILER)


@pytest.fixture
def consumer():
    return Identity(user_id="consumer-1", role=Role.CONSUMER)


# ============================================================================
# Products
# ============================================================================

@pytest.fixture
def tomato_payload():
    return ProductCreate(
        name="Heirloom tomatoes",
        description="Vine ripened",
        quantity=100,
        price_per_kg=50,
        harvest_date="2026-10-01",
    )


@pytest_asyncio.fixture
async def pending_product(db, producer, tomato_payload, settings):
    return await create_product_svc(db, None, producer, tomato_payload, settings=settings)


def build_product(**overrides) -> Product:
    """Product document for direct repo inserts (fixed timestamps, any status)."""
    now = datetime(2026, 10, 1, 8, 0, tzinfo=timezone.utc)
    fields = dict(
        product_id="p-1",
        name="Carrots",
        quantity=20,
        price_per_kg=3.5,
        harvest_date="2026-09-30",
        qr_code="QR_1_aaaaaa",
        status=ProductStatus.PENDING,
        total_validators=5,
        owner_id="farmer-1",
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Product(**fields)


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)
