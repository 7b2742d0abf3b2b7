"""
Logging configuration.

Configures loguru sinks with file rotation and retention policies.
"""

import sys

from loguru import logger

from rewardledger.config.settings import Settings


def setup_logging(settings: Settings) -> None:
    """Configure logger from settings."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(
        f"rewardledger logging configured ({settings.environment})"
    )
