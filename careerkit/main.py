"""Application bootstrap: logging, schema, plan catalog."""

from __future__ import annotations

import asyncio

from careerkit.config import AppSettings, get_settings
from careerkit.db.session import Database
from careerkit.logging import configure_logging, logger
from careerkit.services.plans import PlanCatalog


async def main(settings: AppSettings | None = None) -> None:
    settings = settings or get_settings()
    configure_logging(settings.logging.level, json=settings.logging.json_output)

    database = Database(settings=settings)
    try:
        await database.create_schema()
    finally:
        await database.dispose()

    catalog = PlanCatalog.from_settings(settings)
    logger.info(
        "careerkit_ready",
        environment=settings.environment,
        plans={code: limits.model_dump() for code, limits in catalog.plans.items()},
    )


if __name__ == "__main__":
    asyncio.run(main())
