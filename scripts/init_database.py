#!/usr/bin/env python3
"""
Create the ledger schema.

Uses DATABASE_URL from the environment (or .env). For versioned schema
changes run ``alembic upgrade head`` instead. The rule set named by
RULES_FILE is validated first so a broken rules file fails the deploy.
"""

import asyncio

from loguru import logger

from rewardledger.config.database import create_engine, init_models
from rewardledger.config.logging import setup_logging
from rewardledger.config.rules import rules_from_settings
from rewardledger.config.settings import settings
from rewardledger.models import Base


async def init_database() -> None:
    """Create all tables that do not exist yet."""
    rules = rules_from_settings(settings)
    logger.info(
        f"Compensation rules version {rules.version} "
        f"({settings.rules_file or 'built-in defaults'})"
    )

    engine = create_engine(settings.database_url, echo=settings.database_echo)
    try:
        logger.info(f"Creating {len(Base.metadata.tables)} tables (checkfirst)")
        await init_models(engine)
        for name in sorted(Base.metadata.tables):
            logger.debug(f"  {name}")
    finally:
        await engine.dispose()

    logger.success("Database initialized")


if __name__ == "__main__":
    setup_logging(settings)
    asyncio.run(init_database())
