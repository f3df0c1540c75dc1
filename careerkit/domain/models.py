"""Pydantic models shared across logic/application layers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class PlanCode(str, Enum):
    FREE = "free"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CANCELLED = "cancelled"


class UsageAction(str, Enum):
    AI_GENERATION = "ai_generation"
    EXPORT = "export"

    @property
    def counter_field(self) -> str:
        """Column on ``users`` that meters this action."""

        return _COUNTER_FIELDS[self]

    @property
    def limit_field(self) -> str:
        return _LIMIT_FIELDS[self]


_COUNTER_FIELDS = {
    UsageAction.AI_GENERATION: "ai_generations_used",
    UsageAction.EXPORT: "exports_used",
}

_LIMIT_FIELDS = {
    UsageAction.AI_GENERATION: "ai_generations",
    UsageAction.EXPORT: "exports",
}


class UsageCounters(BaseModel):
    model_config = ConfigDict(frozen=True)

    ai_generations_used: int = Field(default=0, ge=0)
    exports_used: int = Field(default=0, ge=0)

    def used_for(self, action: UsageAction) -> int:
        return getattr(self, action.counter_field)


class UsageQuota(BaseModel):
    model_config = ConfigDict(frozen=True)

    used: int
    limit: int


class UsageSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: str
    ai_generations: UsageQuota
    exports: UsageQuota

    @property
    def counters(self) -> UsageCounters:
        return UsageCounters(
            ai_generations_used=self.ai_generations.used,
            exports_used=self.exports.used,
        )


__all__ = [
    "PlanCode",
    "UsageAction",
    "UsageCounters",
    "UsageQuota",
    "UsageSnapshot",
]
