"""Career-writing agent: resume bullets, cover letters, ATS clean-up."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from careerkit.agents.model_factory import build_model_spec
from careerkit.config import AppSettings
from careerkit.logging import logger
from careerkit.services.exceptions import GenerationFailed
from careerkit.utils.retry import retry_async

Tone = Literal["casual", "formal", "confident"]
ContentKind = Literal["resume", "cover_letter"]

TONE_PHRASES: dict[str, str] = {
    "casual": "conversational and approachable",
    "formal": "professional and traditional",
    "confident": "assertive and impactful",
}

BULLET_MARKER = "•"


def bullets_prompt(experience: str, job_description: str) -> str:
    return (
        "You're a professional resume writer. Given this experience and job description, "
        "write 3 ATS-optimized resume bullets using action verbs and metrics.\n\n"
        f"Experience: {experience}\n"
        f"Job Description: {job_description}\n\n"
        f'Format: Return only the bullet points, one per line, starting with "{BULLET_MARKER}"'
    )


def cover_letter_prompt(job_title: str, company: str, job_description: str, tone: Tone) -> str:
    phrase = TONE_PHRASES[tone]
    return (
        "You're an expert career writer. Write a concise, modern cover letter tailored to "
        f"this job with a {phrase} tone:\n\n"
        f"Job Title: {job_title}\n"
        f"Company: {company}\n"
        f"Job Description: {job_description}\n\n"
        "Requirements:\n"
        "- Keep it under 300 words\n"
        "- Include specific examples\n"
        "- Show enthusiasm for the role\n"
        "- Make it ATS-friendly\n"
        f"- Use {phrase} language"
    )


def optimize_prompt(content: str, kind: ContentKind) -> str:
    return (
        f"Optimize this {kind} content for ATS systems and improve readability:\n\n"
        f"{content}\n\n"
        "Requirements:\n"
        "- Use ATS-friendly keywords\n"
        "- Improve formatting and structure\n"
        "- Enhance clarity and impact\n"
        "- Maintain the original tone and length"
    )


def extract_bullets(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip().startswith(BULLET_MARKER)]


@dataclass(slots=True)
class ResumeWriter:
    """Thin wrapper around a text agent with per-task prompts and limits."""

    agent: Agent[None, str]
    max_attempts: int = 2
    timeout_seconds: float | None = None

    @classmethod
    def build(cls, settings: AppSettings) -> ResumeWriter:
        agent = Agent[None, str](
            model=build_model_spec(settings.llm),
            instructions="You help job seekers write resumes and cover letters.",
        )
        return cls(
            agent,
            max_attempts=settings.llm.max_attempts,
            timeout_seconds=settings.llm.request_timeout_seconds,
        )

    async def _complete(self, prompt: str, task: str, model_settings: ModelSettings) -> str:
        if self.timeout_seconds is not None:
            model_settings = {**model_settings, "timeout": self.timeout_seconds}

        async def _call() -> str:
            result = await self.agent.run(prompt, model_settings=model_settings)
            return result.output

        try:
            output = await retry_async(
                _call,
                max_attempts=self.max_attempts,
                operation_name=task,
            )
        except Exception as exc:
            logger.error("generation_failed", task=task, error=str(exc))
            raise GenerationFailed(f"Failed to {task.replace('_', ' ')}.") from exc
        return (output or "").strip()

    async def generate_bullets(self, experience: str, job_description: str) -> list[str]:
        text = await self._complete(
            bullets_prompt(experience, job_description),
            "generate_resume_content",
            {"max_tokens": 200, "temperature": 0.7},
        )
        return extract_bullets(text)

    async def generate_cover_letter(
        self, job_title: str, company: str, job_description: str, tone: Tone
    ) -> str:
        if tone not in TONE_PHRASES:
            raise ValueError(f"Unsupported tone: {tone!r}.")
        return await self._complete(
            cover_letter_prompt(job_title, company, job_description, tone),
            "generate_cover_letter",
            {"max_tokens": 400, "temperature": 0.7},
        )

    async def optimize_content(self, content: str, kind: ContentKind) -> str:
        text = await self._complete(
            optimize_prompt(content, kind),
            "optimize_content",
            {"max_tokens": 500, "temperature": 0.5},
        )
        return text or content


__all__ = [
    "ResumeWriter",
    "TONE_PHRASES",
    "bullets_prompt",
    "cover_letter_prompt",
    "extract_bullets",
    "optimize_prompt",
]
