#!/usr/bin/env python3
"""Setup script for the resort engine: migrate the database and seed a starter rate catalog."""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path

from alembic import command
from alembic.config import Config

from resort_engine.core.config import settings
from resort_engine.core.database import async_session_factory, close_db
from resort_engine.repositories.sql import SqlRateRepository
from resort_engine.schemas.rate import AddModifierRequest, CreateRateRequest
from resort_engine.services.rate_service import RateService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

server_dir = Path(__file__).parent.parent / "server"

SAMPLE_RATES = [
    (
        CreateRateRequest(
            name="Chalet standard",
            description="Year-round nightly chalet rate",
            rate_type="standard",
            base_price=Decimal("450.00"),
            applicable_item_type="chalet",
        ),
        [],
    ),
    (
        CreateRateRequest(
            name="Chalet weekend",
            description="Friday and Saturday nights",
            rate_type="standard",
            base_price=Decimal("520.00"),
            applicable_item_type="chalet",
            days_of_week=["friday", "saturday"],
            priority=5,
        ),
        [],
    ),
    (
        CreateRateRequest(
            name="Winter peak",
            description="Holiday season pricing for rooms",
            rate_type="seasonal",
            base_price=Decimal("300.00"),
            applicable_item_type="room",
            start_date=date(2026, 12, 20),
            end_date=date(2027, 1, 5),
            priority=10,
        ),
        [AddModifierRequest(rate_id="", name="Resort fee", modifier_type="fixed", value=Decimal("25"))],
    ),
    (
        CreateRateRequest(
            name="Room long stay",
            description="Seven nights or more",
            rate_type="promotional",
            base_price=Decimal("180.00"),
            applicable_item_type="room",
            min_stay=7,
            priority=3,
        ),
        [
            AddModifierRequest(rate_id="", name="Long stay discount", modifier_type="percentage", value=Decimal("-10")),
            AddModifierRequest(rate_id="", name="Loyalty discount", modifier_type="percentage", value=Decimal("-5")),
        ],
    ),
    (
        CreateRateRequest(
            name="Pool session",
            description="Two-hour private pool slot",
            rate_type="standard",
            base_price=Decimal("60.00"),
            applicable_item_type="pool_session",
        ),
        [],
    ),
]


def run_migrations():
    """Bring the schema to the latest Alembic revision."""
    logger.info("Running database migrations...")
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create a starter rate catalog unless rules already exist."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        service = RateService(
            SqlRateRepository(db),
            supported_currencies=settings.supported_currencies,
            default_currency=settings.default_currency,
        )

        if (await service.get_stats()).total > 0:
            logger.info("Sample data already exists, skipping...")
            return

        for rate_request, modifier_requests in SAMPLE_RATES:
            rule = await service.create_rate(rate_request)
            for modifier_request in modifier_requests:
                await service.add_modifier(modifier_request.model_copy(update={"rate_id": str(rule.id)}))

        logger.info("Sample data created successfully!", extra={"rule_count": len(SAMPLE_RATES)})

    await close_db()


def main():
    """Main setup function."""
    logger.info("Starting resort engine setup...")

    # Alembic's env.py drives its own event loop
    run_migrations()
    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: uvicorn resort_engine.main:app --reload")


if __name__ == "__main__":
    main()
