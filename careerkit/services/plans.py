"""Static plan catalog: plan identifier to usage limits."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

from careerkit.config import UNLIMITED, AppSettings, PlanLimits, PlanPrice, get_settings
from careerkit.domain.models import PlanCode, UsageAction

NO_ENTITLEMENT = PlanLimits(ai_generations=0, exports=0, public_profiles=0)

KNOWN_PLANS = frozenset(code.value for code in PlanCode)


class PlanCatalog:
    """Read-only view over the configured plan limits and prices."""

    def __init__(
        self,
        limits: Mapping[str, PlanLimits],
        prices: Mapping[str, PlanPrice] | None = None,
    ) -> None:
        self._limits = MappingProxyType(dict(limits))
        self._prices = MappingProxyType(dict(prices or {}))

    @classmethod
    def from_settings(cls, settings: AppSettings) -> PlanCatalog:
        return cls(settings.plans, settings.prices)

    def has(self, plan: str | None) -> bool:
        return plan in self._limits

    def limits_for(self, plan: str | None) -> PlanLimits:
        limits = self._limits.get(plan) if plan is not None else None
        if limits is None:
            # cancelled has no entry either; it gets nothing until its limits are decided.
            return NO_ENTITLEMENT
        return limits

    def limit_for(self, plan: str | None, action: UsageAction) -> int:
        return getattr(self.limits_for(plan), action.limit_field)

    def prices(self) -> Mapping[str, PlanPrice]:
        return self._prices

    @property
    def plans(self) -> Mapping[str, PlanLimits]:
        return self._limits


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


@lru_cache
def get_plan_catalog() -> PlanCatalog:
    """Process-wide catalog, built once from settings."""

    return PlanCatalog.from_settings(get_settings())


__all__ = [
    "KNOWN_PLANS",
    "NO_ENTITLEMENT",
    "PlanCatalog",
    "get_plan_catalog",
    "is_unlimited",
]
