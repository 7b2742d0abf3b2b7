#!/usr/bin/env python3
"""
Seed the standard package tiers.

Existing tiers (matched by name) are updated in place, so the script can be
re-run after price changes.
"""

import asyncio
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from rewardledger.config.database import (
    create_engine,
    create_session_maker,
    init_models,
)
from rewardledger.config.logging import setup_logging
from rewardledger.config.rules import rules_from_settings
from rewardledger.config.settings import settings
from rewardledger.models import PackageTier
from rewardledger.repositories.package_tier_repository import (
    PackageTierRepository,
)
from rewardledger.utils.db_decorators import with_auto_commit

# name, price, daily income, level percents (level 1 first)
PACKAGES: list[tuple[str, str, str, list[str]]] = [
    ("Starter", "500", "25", ["10", "5", "3", "2", "1"]),
    ("Basic", "1000", "55", ["12", "6", "4", "3", "2"]),
    ("Premium", "5000", "300", ["15", "8", "5", "4", "3"]),
    ("VIP", "10000", "650", ["18", "10", "6", "5", "4"]),
    ("Diamond", "25000", "1750", ["20", "12", "8", "6", "5"]),
    ("Platinum", "50000", "3750", ["25", "15", "10", "8", "6"]),
]

VALIDITY_DAYS = 30


@with_auto_commit
async def seed_packages(session: AsyncSession) -> int:
    """Insert or update the standard tiers; returns number of new tiers."""
    repo = PackageTierRepository(session)
    created = 0

    for name, price, daily_income, percents in PACKAGES:
        package = await repo.get_by_name(name)
        if package is None:
            session.add(
                PackageTier(
                    name=name,
                    price=Decimal(price),
                    daily_income=Decimal(daily_income),
                    validity_days=VALIDITY_DAYS,
                    level_commission_percents=percents,
                    is_active=True,
                )
            )
            created += 1
            logger.info(f"Created package {name} ({price}, {daily_income}/day)")
            continue

        package.price = Decimal(price)
        package.daily_income = Decimal(daily_income)
        package.validity_days = VALIDITY_DAYS
        package.level_commission_percents = percents
        logger.info(f"Updated package {name}")

    return created


async def main() -> None:
    rules = rules_from_settings(settings)
    levels = rules.commission.max_levels
    for name, _, _, percents in PACKAGES:
        if len(percents) > levels:
            logger.warning(
                f"Package {name} lists {len(percents)} levels, "
                f"only {levels} are paid"
            )

    engine = create_engine(settings.database_url, echo=settings.database_echo)
    await init_models(engine)

    session_maker = create_session_maker(engine)
    async with session_maker() as session:
        created = await seed_packages(session)

    await engine.dispose()
    logger.success(f"Seeding completed: {created} new package(s)")


if __name__ == "__main__":
    setup_logging(settings)
    asyncio.run(main())
