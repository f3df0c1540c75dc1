"""AI writing calls metered against the ai_generation allowance."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from careerkit.agents.writer import ContentKind, ResumeWriter, Tone
from careerkit.domain.models import UsageAction
from careerkit.services.metering import UsageGate
from careerkit.services.plans import PlanCatalog


class GenerationService:
    def __init__(
        self,
        session: AsyncSession,
        writer: ResumeWriter,
        catalog: PlanCatalog | None = None,
    ) -> None:
        self.gate = UsageGate(session, catalog)
        self.writer = writer

    async def generate_bullets(
        self, user_id: int, experience: str, job_description: str
    ) -> list[str]:
        return await self.gate.run(
            user_id,
            UsageAction.AI_GENERATION,
            lambda: self.writer.generate_bullets(experience, job_description),
        )

    async def generate_cover_letter(
        self,
        user_id: int,
        job_title: str,
        company: str,
        job_description: str,
        tone: Tone,
    ) -> str:
        return await self.gate.run(
            user_id,
            UsageAction.AI_GENERATION,
            lambda: self.writer.generate_cover_letter(job_title, company, job_description, tone),
        )

    async def optimize_content(self, user_id: int, content: str, kind: ContentKind) -> str:
        return await self.gate.run(
            user_id,
            UsageAction.AI_GENERATION,
            lambda: self.writer.optimize_content(content, kind),
        )


__all__ = ["GenerationService"]
