"""Gate metered actions behind the user's plan limits."""

from __future__ import annotations

from typing import Awaitable, Callable, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from careerkit.domain.models import UsageAction
from careerkit.logging import logger
from careerkit.services.entitlements import can_perform
from careerkit.services.exceptions import QuotaExceeded
from careerkit.services.plans import PlanCatalog
from careerkit.services.usage import UsageService

T = TypeVar("T")


class UsageGate:
    """Check, run, then count.

    The check and the increment are separate steps: a user racing two
    requests at the last free unit may get both through. The counter itself
    never loses an increment.

    The gate does not commit. The caller owning the session (for example
    ``Database.session()``) commits the increment together with any other
    writes the operation made.
    """

    def __init__(self, session: AsyncSession, catalog: PlanCatalog | None = None) -> None:
        self.usage = UsageService(session, catalog)

    async def allowed(self, user_id: int, action: UsageAction) -> bool:
        return await self.usage.check_limits(user_id, action)

    async def run(
        self,
        user_id: int,
        action: UsageAction,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        with structlog.contextvars.bound_contextvars(user_id=user_id, action=action.value):
            return await self._run(user_id, action, operation)

    async def _run(
        self,
        user_id: int,
        action: UsageAction,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        snapshot = await self.usage.get_usage(user_id)
        if not can_perform(snapshot.plan, snapshot.counters, action, self.usage.catalog):
            quota = getattr(snapshot, action.limit_field)
            logger.info(
                "usage_gate_denied",
                plan=snapshot.plan,
                used=quota.used,
                limit=quota.limit,
            )
            raise QuotaExceeded(action.value, quota.used, quota.limit)

        result = await operation()
        # The action already happened; a failure here propagates without undoing it.
        await self.usage.increment_usage(user_id, action)
        return result


__all__ = ["UsageGate"]
