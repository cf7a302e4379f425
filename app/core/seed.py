"""
Create the Orders table and fill it with the demo data set.

    python -m app.core.seed

Dates are relative to "now" so questions like "orders in the last 7 days"
always have something to find.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core import models
from app.core.database import Base, engine

logger = logging.getLogger(__name__)

# (customer, days ago, amount, status, city, category)
SAMPLE_ORDERS = [
    # Recent orders (last 7 days)
    ("John Smith", 1, "150.00", "Completed", "New York", "Electronics"),
    ("Jane Doe", 2, "275.50", "Completed", "Los Angeles", "Clothing"),
    ("Alice Williams", 3, "320.00", "Completed", "Chicago", "Books"),
    ("George Martin", 4, "540.00", "Pending", "Houston", "Electronics"),
    ("Helen Hunt", 5, "88.88", "Shipped", "Phoenix", "Home & Garden"),
    ("Bob Johnson", 6, "89.99", "Pending", "Philadelphia", "Sports"),
    ("Diana Prince", 7, "125.00", "Shipped", "San Antonio", "Clothing"),
    # 8-14 days ago
    ("Charlie Brown", 8, "450.75", "Completed", "San Diego", "Electronics"),
    ("Edward Norton", 9, "199.99", "Completed", "Dallas", "Books"),
    ("Kevin Spacey", 10, "175.25", "Completed", "San Jose", "Sports"),
    ("Laura Linney", 12, "95.00", "Completed", "Austin", "Home & Garden"),
    ("Michael Jordan", 14, "680.00", "Completed", "Jacksonville", "Electronics"),
    # 15-30 days ago
    ("Fiona Apple", 15, "75.50", "Completed", "Fort Worth", "Clothing"),
    ("Ian McKellen", 18, "399.99", "Completed", "Columbus", "Electronics"),
    ("Julia Roberts", 20, "225.00", "Completed", "Charlotte", "Books"),
    ("Robert Downey", 22, "510.00", "Completed", "San Francisco", "Electronics"),
    ("Emma Watson", 25, "145.75", "Completed", "Indianapolis", "Clothing"),
    ("Tom Hanks", 28, "299.99", "Completed", "Seattle", "Sports"),
    ("Meryl Streep", 30, "420.50", "Completed", "Denver", "Home & Garden"),
    # More than 30 days ago
    ("Brad Pitt", 35, "189.99", "Completed", "Boston", "Electronics"),
    ("Angelina Jolie", 40, "375.00", "Completed", "Nashville", "Clothing"),
    ("Leonardo DiCaprio", 45, "599.99", "Completed", "Detroit", "Electronics"),
    ("Sandra Bullock", 50, "125.50", "Completed", "Portland", "Books"),
    ("Matt Damon", 60, "450.00", "Completed", "Las Vegas", "Sports"),
    ("Jennifer Lawrence", 75, "275.99", "Completed", "Memphis", "Clothing"),
]


def build_sample_orders(now: Optional[datetime] = None) -> List[models.Order]:
    now = now or datetime.now()
    return [
        models.Order(
            CustomerName=customer,
            OrderDate=now - timedelta(days=days_ago),
            TotalAmount=Decimal(amount),
            Status=status,
            ShippingCity=city,
            ProductCategory=category,
        )
        for customer, days_ago, amount, status, city, category in SAMPLE_ORDERS
    ]


async def seed_orders(db_engine: AsyncEngine) -> int:
    """
    Create the Orders table if needed and insert the sample rows once.

    Returns:
        Number of rows inserted (0 when the table already had data).
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        bind=db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        existing = await session.scalar(select(func.count()).select_from(models.Order))
        if existing:
            logger.info(f"Orders table already has {existing} rows, skipping seed")
            return 0

        session.add_all(build_sample_orders())
        await session.commit()

    logger.info(f"Inserted {len(SAMPLE_ORDERS)} sample orders")
    return len(SAMPLE_ORDERS)


async def main():
    try:
        await seed_orders(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
