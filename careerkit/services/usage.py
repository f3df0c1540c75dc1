"""Per-user usage counters stored on the account row."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from careerkit.db.models.core import User
from careerkit.domain.models import UsageAction, UsageCounters, UsageQuota, UsageSnapshot
from careerkit.logging import logger
from careerkit.services.entitlements import can_perform
from careerkit.services.exceptions import UnknownPlan, UsageStoreUnavailable, UserNotFound
from careerkit.services.plans import KNOWN_PLANS, PlanCatalog, get_plan_catalog


@contextmanager
def _store_errors(operation: str, user_id: int) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("usage_store_error", operation=operation, user_id=user_id, error=str(exc))
        raise UsageStoreUnavailable(f"Usage store unavailable during {operation}.") from exc


class UsageService:
    def __init__(self, session: AsyncSession, catalog: PlanCatalog | None = None) -> None:
        self.session = session
        self.catalog = catalog or get_plan_catalog()

    async def get_usage(self, user_id: int) -> UsageSnapshot:
        """Read plan and counters straight from the store and attach plan limits."""

        stmt = select(
            User.subscription_status,
            User.ai_generations_used,
            User.exports_used,
        ).where(User.id == user_id)
        with _store_errors("get_usage", user_id):
            row = (await self.session.execute(stmt)).one_or_none()
        if row is None:
            raise UserNotFound(f"User {user_id} not found.")

        plan = row.subscription_status
        if not self.catalog.has(plan):
            logger.warning("plan_not_in_catalog", user_id=user_id, plan=plan)
        limits = self.catalog.limits_for(plan)
        return UsageSnapshot(
            plan=plan,
            ai_generations=UsageQuota(used=row.ai_generations_used, limit=limits.ai_generations),
            exports=UsageQuota(used=row.exports_used, limit=limits.exports),
        )

    async def increment_usage(
        self, user_id: int, action: UsageAction, *, by: int = 1
    ) -> UsageCounters:
        """Add ``by`` to the action's counter.

        The new value is computed by the database in one UPDATE, so concurrent
        callers never overwrite each other's increments. Not safe to retry
        blindly: a repeated call counts again.
        """

        if by < 1:
            raise ValueError("Increment must be a positive integer.")
        column = getattr(User, action.counter_field)
        await self._update_user(user_id, {column: column + by}, "increment_usage")
        counters = await self._read_counters(user_id, "increment_usage")
        logger.info(
            "usage_incremented",
            user_id=user_id,
            action=action.value,
            used=counters.used_for(action),
        )
        return counters

    async def check_limits(self, user_id: int, action: UsageAction) -> bool:
        """Entitlement check against stored counters; any failure denies."""

        try:
            snapshot = await self.get_usage(user_id)
        except (UserNotFound, UsageStoreUnavailable) as exc:
            logger.warning(
                "usage_check_failed_closed",
                user_id=user_id,
                action=action.value,
                error=str(exc),
            )
            return False
        return can_perform(snapshot.plan, snapshot.counters, action, self.catalog)

    async def reset_usage(self, user_id: int) -> UsageCounters:
        """Administrative reset of both counters to zero."""

        await self._update_user(
            user_id,
            {User.ai_generations_used: 0, User.exports_used: 0},
            "reset_usage",
        )
        logger.info("usage_reset", user_id=user_id)
        return await self._read_counters(user_id, "reset_usage")

    async def change_plan(self, user_id: int, plan: str) -> UsageSnapshot:
        """Switch the user's plan; counters are kept as they are."""

        if plan not in KNOWN_PLANS:
            raise UnknownPlan(f"Unknown subscription plan: {plan!r}.")
        await self._update_user(user_id, {User.subscription_status: plan}, "change_plan")
        logger.info("plan_changed", user_id=user_id, plan=plan)
        return await self.get_usage(user_id)

    # Internal helpers -------------------------------------------------

    async def _update_user(self, user_id: int, values: dict[Any, Any], operation: str) -> None:
        stmt = update(User).where(User.id == user_id).values(values)
        with _store_errors(operation, user_id):
            result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise UserNotFound(f"User {user_id} not found.")

    async def _read_counters(self, user_id: int, operation: str) -> UsageCounters:
        stmt = select(User.ai_generations_used, User.exports_used).where(User.id == user_id)
        with _store_errors(operation, user_id):
            row = (await self.session.execute(stmt)).one_or_none()
        if row is None:
            raise UserNotFound(f"User {user_id} not found.")
        return UsageCounters(
            ai_generations_used=row.ai_generations_used,
            exports_used=row.exports_used,
        )


__all__ = ["UsageService"]
