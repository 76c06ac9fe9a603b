"""Tests for the Validation Consensus Engine."""

import asyncio

import pytest

from farmtrace.core.config import Settings
from farmtrace.domain.errors import (
    AlreadyVotedError,
    ConcurrentModificationError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from farmtrace.domain.models.identity import Identity, Role
from farmtrace.domain.models.product import Decision, ProductStatus
from farmtrace.domain.services.consensus_svc import cast_vote_svc
from farmtrace.domain.services.registry_svc import get_product_svc


class TestConsensus:

    @pytest.mark.asyncio
    async def test_five_approvals_approve(self, db, pending_product, validators, settings):
        product = pending_product
        for v in validators:
            product = await cast_vote_svc(db, None, v, product.product_id, Decision.APPROVE, settings=settings)

        stored = await get_product_svc(db, product.product_id)
        assert stored.status == ProductStatus.APPROVED
        assert stored.validators_approved == 5
        assert len(stored.votes) == 5
        assert stored.version == 5

    @pytest.mark.asyncio
    async def test_four_approvals_stay_pending(self, db, pending_product, validators, settings):
        for v in validators[:4]:
            product = await cast_vote_svc(db, None, v, pending_product.product_id, Decision.APPROVE, settings=settings)
        assert product.status == ProductStatus.PENDING
        assert product.validators_approved == 4

    @pytest.mark.asyncio
    async def test_reject_after_approvals(self, db, pending_product, validators, settings):
        pid = pending_product.product_id
        await cast_vote_svc(db, None, validators[0], pid, Decision.APPROVE, settings=settings)
        await cast_vote_svc(db, None, validators[1], pid, Decision.APPROVE, settings=settings)
        product = await cast_vote_svc(db, None, validators[2], pid, Decision.REJECT, "mold detected", settings=settings)

        assert product.status == ProductStatus.REJECTED
        assert product.rejection_reason == "mold detected"
        assert product.validators_approved == 2

        with pytest.raises(InvalidStateError):
            await cast_vote_svc(db, None, validators[3], pid, Decision.APPROVE, settings=settings)
        assert (await get_product_svc(db, pid)).status == ProductStatus.REJECTED

    @pytest.mark.asyncio
    async def test_same_validator_twice(self, db, pending_product, validators, settings):
        pid = pending_product.product_id
        await cast_vote_svc(db, None, validators[0], pid, Decision.APPROVE, settings=settings)
        before = await get_product_svc(db, pid)

        with pytest.raises(AlreadyVotedError):
            await cast_vote_svc(db, None, validators[0], pid, Decision.APPROVE, settings=settings)

        after = await get_product_svc(db, pid)
        assert after.validators_approved == before.validators_approved == 1
        assert after.version == before.version

    @pytest.mark.asyncio
    async def test_quality_inspector_may_vote(self, db, pending_product, settings):
        inspector = Identity(user_id="qi-1", role=Role.QUALITY_INSPECTOR)
        product = await cast_vote_svc(db, None, inspector, pending_product.product_id, Decision.APPROVE, settings=settings)
        assert product.validators_approved == 1

    @pytest.mark.parametrize("role", [Role.PRODUCER, Role.DISTRIBUTOR, Role.RETAILER, Role.CONSUMER])
    @pytest.mark.asyncio
    async def test_other_roles_cannot_vote(self, db, pending_product, settings, role):
        with pytest.raises(ForbiddenError):
            await cast_vote_svc(
                db, None, Identity(user_id="u", role=role), pending_product.product_id, Decision.APPROVE, settings=settings
            )
        assert (await get_product_svc(db, pending_product.product_id)).votes == []

    @pytest.mark.asyncio
    async def test_reject_without_reason(self, db, pending_product, validators, settings):
        with pytest.raises(ValidationError):
            await cast_vote_svc(db, None, validators[0], pending_product.product_id, Decision.REJECT, settings=settings)
        assert (await get_product_svc(db, pending_product.product_id)).status == ProductStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_product(self, db, validators, settings):
        with pytest.raises(NotFoundError):
            await cast_vote_svc(db, None, validators[0], "missing", Decision.APPROVE, settings=settings)


class TestConcurrentVotes:

    @pytest.mark.asyncio
    async def test_simultaneous_approvals_all_count(self, racy_db, pending_product, validators, settings):
        pid = pending_product.product_id
        results = await asyncio.gather(*[
            cast_vote_svc(racy_db, None, v, pid, Decision.APPROVE, settings=settings) for v in validators
        ])

        stored = await get_product_svc(racy_db, pid)
        assert stored.status == ProductStatus.APPROVED
        assert stored.validators_approved == 5
        assert sorted(v.validator_id for v in stored.votes) == sorted(v.user_id for v in validators)
        approvals = [e for e in stored.history if e.status == ProductStatus.APPROVED]
        assert len(approvals) == 1
        assert sum(r.status == ProductStatus.APPROVED for r in results) == 1

    @pytest.mark.asyncio
    async def test_simultaneous_duplicate_votes_count_once(self, racy_db, pending_product, validators, settings):
        pid = pending_product.product_id
        results = await asyncio.gather(
            cast_vote_svc(racy_db, None, validators[0], pid, Decision.APPROVE, settings=settings),
            cast_vote_svc(racy_db, None, validators[0], pid, Decision.APPROVE, settings=settings),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadyVotedError) for r in results) == 1
        assert (await get_product_svc(racy_db, pid)).validators_approved == 1

    @pytest.mark.asyncio
    async def test_gives_up_when_retries_run_out(self, racy_db, pending_product, validators):
        tight = Settings(_env_file=None, WRITE_MAX_RETRIES=1)
        pid = pending_product.product_id
        results = await asyncio.gather(
            cast_vote_svc(racy_db, None, validators[0], pid, Decision.APPROVE, settings=tight),
            cast_vote_svc(racy_db, None, validators[1], pid, Decision.APPROVE, settings=tight),
            return_exceptions=True,
        )

        assert sum(isinstance(r, ConcurrentModificationError) for r in results) == 1
        assert (await get_product_svc(racy_db, pid)).validators_approved == 1
