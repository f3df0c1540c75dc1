"""Usage counter reads and writes against the account store."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from careerkit.db.models.core import User
from careerkit.domain.models import UsageAction, UsageCounters
from careerkit.services.entitlements import can_perform
from careerkit.services.exceptions import UnknownPlan, UsageStoreUnavailable, UserNotFound
from careerkit.services.usage import UsageService


@pytest.mark.asyncio
async def test_get_usage_composes_limits_and_counters(session, make_user, catalog):
    user = await make_user(plan="free", ai_generations_used=1, exports_used=0)
    service = UsageService(session, catalog)

    usage = await service.get_usage(user.id)

    assert usage.plan == "free"
    assert (usage.ai_generations.used, usage.ai_generations.limit) == (1, 2)
    assert (usage.exports.used, usage.exports.limit) == (0, 1)


@pytest.mark.asyncio
async def test_get_usage_twice_without_writes_is_identical(session, make_user, catalog):
    user = await make_user(plan="monthly", ai_generations_used=7, exports_used=3)
    service = UsageService(session, catalog)

    first = await service.get_usage(user.id)
    second = await service.get_usage(user.id)

    assert first == second
    assert first.ai_generations.limit == -1


@pytest.mark.asyncio
async def test_get_usage_for_unknown_plan_reports_zero_limits(session, make_user, catalog):
    user = await make_user(plan="trial", ai_generations_used=0)
    service = UsageService(session, catalog)

    usage = await service.get_usage(user.id)

    assert usage.plan == "trial"
    assert usage.ai_generations.limit == 0
    assert usage.exports.limit == 0


@pytest.mark.asyncio
async def test_get_usage_missing_user(session, catalog):
    with pytest.raises(UserNotFound):
        await UsageService(session, catalog).get_usage(404)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("action", "changed", "untouched"),
    [
        (UsageAction.AI_GENERATION, "ai_generations_used", "exports_used"),
        (UsageAction.EXPORT, "exports_used", "ai_generations_used"),
    ],
)
async def test_increment_moves_only_the_metered_counter(
    session, make_user, catalog, action, changed, untouched
):
    user = await make_user(plan="free", ai_generations_used=1, exports_used=1)
    service = UsageService(session, catalog)

    counters = await service.increment_usage(user.id, action)

    assert getattr(counters, changed) == 2
    assert getattr(counters, untouched) == 1
    stored = (await service.get_usage(user.id)).counters
    assert stored == counters


@pytest.mark.asyncio
async def test_increment_by_more_than_one(session, make_user, catalog):
    user = await make_user()
    service = UsageService(session, catalog)

    counters = await service.increment_usage(user.id, UsageAction.EXPORT, by=3)

    assert counters == UsageCounters(ai_generations_used=0, exports_used=3)


@pytest.mark.asyncio
async def test_increment_rejects_non_positive_steps(session, make_user, catalog):
    user = await make_user()
    service = UsageService(session, catalog)

    with pytest.raises(ValueError):
        await service.increment_usage(user.id, UsageAction.EXPORT, by=0)


@pytest.mark.asyncio
async def test_increment_missing_user(session, catalog):
    with pytest.raises(UserNotFound):
        await UsageService(session, catalog).increment_usage(404, UsageAction.AI_GENERATION)


@pytest.mark.asyncio
async def test_free_plan_ai_generation_flow(session, make_user, catalog):
    user = await make_user(plan="free", ai_generations_used=1)
    service = UsageService(session, catalog)

    before = await service.get_usage(user.id)
    assert can_perform(before.plan, before.counters, UsageAction.AI_GENERATION, catalog)
    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is True

    counters = await service.increment_usage(user.id, UsageAction.AI_GENERATION)
    assert counters.ai_generations_used == 2

    after = await service.get_usage(user.id)
    assert not can_perform(after.plan, after.counters, UsageAction.AI_GENERATION, catalog)
    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is False


@pytest.mark.asyncio
async def test_check_limits_fails_closed_for_missing_user(session, catalog):
    assert await UsageService(session, catalog).check_limits(404, UsageAction.EXPORT) is False


@pytest.mark.asyncio
async def test_check_limits_fails_closed_when_store_is_down(session, make_user, catalog, monkeypatch):
    user = await make_user(plan="monthly")
    service = UsageService(session, catalog)

    async def broken_execute(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    monkeypatch.setattr(session, "execute", broken_execute)

    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is False


@pytest.mark.asyncio
async def test_store_failures_are_reported_as_unavailable(session, make_user, catalog, monkeypatch):
    user = await make_user()
    service = UsageService(session, catalog)

    async def broken_execute(*args, **kwargs):
        raise OperationalError("UPDATE", {}, Exception("connection refused"))

    monkeypatch.setattr(session, "execute", broken_execute)

    with pytest.raises(UsageStoreUnavailable) as excinfo:
        await service.increment_usage(user.id, UsageAction.EXPORT)
    assert isinstance(excinfo.value.__cause__, OperationalError)

    with pytest.raises(UsageStoreUnavailable):
        await service.get_usage(user.id)


@pytest.mark.asyncio
async def test_reset_usage_zeroes_both_counters(session, make_user, catalog):
    user = await make_user(plan="free", ai_generations_used=2, exports_used=1)
    service = UsageService(session, catalog)

    counters = await service.reset_usage(user.id)

    assert counters == UsageCounters()
    assert await service.check_limits(user.id, UsageAction.EXPORT) is True


@pytest.mark.asyncio
async def test_reset_usage_missing_user(session, catalog):
    with pytest.raises(UserNotFound):
        await UsageService(session, catalog).reset_usage(404)


@pytest.mark.asyncio
async def test_change_plan_keeps_counters(session, make_user, catalog):
    user = await make_user(plan="monthly", ai_generations_used=40, exports_used=12)
    service = UsageService(session, catalog)

    usage = await service.change_plan(user.id, "free")

    assert usage.plan == "free"
    assert usage.ai_generations.used == 40
    assert usage.exports.used == 12
    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is False

    upgraded = await service.change_plan(user.id, "yearly")
    assert upgraded.ai_generations.used == 40
    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is True


@pytest.mark.asyncio
async def test_change_to_cancelled_denies_everything(session, make_user, catalog):
    user = await make_user(plan="monthly")
    service = UsageService(session, catalog)

    usage = await service.change_plan(user.id, "cancelled")

    assert usage.ai_generations.limit == 0
    assert await service.check_limits(user.id, UsageAction.AI_GENERATION) is False
    assert await service.check_limits(user.id, UsageAction.EXPORT) is False


@pytest.mark.asyncio
async def test_change_plan_rejects_unknown_identifier(session, make_user, catalog):
    user = await make_user()
    service = UsageService(session, catalog)

    with pytest.raises(UnknownPlan):
        await service.change_plan(user.id, "trial")
    assert (await service.get_usage(user.id)).plan == "free"


@pytest.mark.asyncio
async def test_change_plan_missing_user(session, catalog):
    with pytest.raises(UserNotFound):
        await UsageService(session, catalog).change_plan(404, "monthly")


def test_counters_reject_negative_usage():
    with pytest.raises(ValidationError):
        UsageCounters(ai_generations_used=-1)
    with pytest.raises(ValidationError):
        UsageCounters(exports_used=-1)


@pytest.mark.asyncio
async def test_store_rejects_negative_counters(session, make_user):
    user = await make_user(plan="free", exports_used=1)

    with pytest.raises(IntegrityError):
        await session.execute(update(User).where(User.id == user.id).values(exports_used=-1))
    await session.rollback()
