"""Create the schema and load the demo catalog.

    python -m storefront.infrastructure.seed
"""
import asyncio
import logging
from decimal import Decimal

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncEngine

from storefront.config import settings
from storefront.database import create_engine
from storefront.infrastructure.db_schema import categories_tbl, metadata, products_tbl

logger = logging.getLogger(__name__)


CATEGORIES = ["Mobiles", "TVs", "Laptops", "Fridges", "ACs", "Appliances"]

PRODUCTS = [
    {
        "name": "Refurbished iPhone 13 Pro",
        "description": "A15 Bionic chip, Pro camera system, Super Retina XDR display with ProMotion.",
        "price": Decimal("63999"),
        "condition": "Excellent",
        "stock_quantity": 15,
        "category": "Mobiles",
        "image_url": "/images/products/mobiles/iphone_13_pro_main.jpg",
    },
    {
        "name": "Refurbished Samsung Galaxy S22 Ultra",
        "description": "Built-in S Pen, Nightography camera and a battery that goes for days.",
        "price": Decimal("59900"),
        "condition": "Excellent",
        "stock_quantity": 10,
        "category": "Mobiles",
        "image_url": "/images/products/mobiles/samsung_s22_ultra_main.jpg",
    },
    {
        "name": "Refurbished Dell XPS 15 Laptop",
        "description": "15.6-inch display, Intel Core i7 processor, sleek design.",
        "price": Decimal("95900"),
        "condition": "Good",
        "stock_quantity": 8,
        "category": "Laptops",
        "image_url": "/images/products/laptops/dell_xps_15_main.jpg",
    },
    {
        "name": 'Refurbished LG OLED C1 55" TV',
        "description": "Perfect black and infinite contrast with LG OLED. Smart TV with webOS.",
        "price": Decimal("76000"),
        "condition": "Excellent",
        "stock_quantity": 5,
        "category": "TVs",
        "image_url": "/images/products/tvs/lg_oled_c1_main.jpg",
    },
    {
        "name": "Refurbished Whirlpool Double Door Fridge",
        "description": "Energy-efficient double door refrigerator with adaptive defrost.",
        "price": Decimal("44000"),
        "condition": "Good",
        "stock_quantity": 12,
        "category": "Fridges",
        "image_url": "/images/products/fridges/whirlpool_fridge_main.jpg",
    },
    {
        "name": "Refurbished Blue Star 1.5 Ton AC",
        "description": "Split AC with inverter technology for energy savings.",
        "price": Decimal("25600"),
        "condition": "Excellent",
        "stock_quantity": 7,
        "category": "ACs",
        "image_url": "/images/products/acs/bluestar_ac_main.jpg",
    },
]


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Tables created or already exist")


async def seed_catalog(engine: AsyncEngine) -> int:
    """Insert missing categories and products. Returns the number of products added."""
    added = 0
    async with engine.begin() as conn:
        existing = set((await conn.execute(select(categories_tbl.c.name))).scalars())
        for name in CATEGORIES:
            if name not in existing:
                await conn.execute(insert(categories_tbl).values(name=name))

        rows = (await conn.execute(select(categories_tbl.c.name, categories_tbl.c.id))).all()
        category_ids = {name: category_id for name, category_id in rows}
        known_products = set((await conn.execute(select(products_tbl.c.name))).scalars())

        for product in PRODUCTS:
            if product["name"] in known_products:
                continue
            values = {k: v for k, v in product.items() if k != "category"}
            values["category_id"] = category_ids[product["category"]]
            await conn.execute(insert(products_tbl).values(**values))
            added += 1

    logger.info(f"Catalog seeded: {added} product(s) added")
    return added


async def main() -> None:
    engine = create_engine(settings)
    try:
        await create_schema(engine)
        await seed_catalog(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(main())
