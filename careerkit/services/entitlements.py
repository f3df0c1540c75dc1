"""Allow/deny decision for metered actions."""

from __future__ import annotations

from careerkit.domain.models import UsageAction, UsageCounters
from careerkit.services.plans import PlanCatalog, get_plan_catalog, is_unlimited


def can_perform(
    plan: str | None,
    counters: UsageCounters,
    action: UsageAction,
    catalog: PlanCatalog | None = None,
) -> bool:
    """Return whether ``action`` is allowed for ``plan`` at the given usage.

    Pure function of its inputs: an unlimited plan always allows, a finite one
    allows while ``used < limit``, and a plan missing from the catalog has a
    zero limit so it never allows.
    """

    catalog = catalog or get_plan_catalog()
    limit = catalog.limit_for(plan, action)
    if is_unlimited(limit):
        return True
    return counters.used_for(action) < limit


__all__ = ["can_perform"]
