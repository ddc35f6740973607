"""Replace the animal catalog with a small set of sample profiles.

    python -m app.services.memory.seed
"""

import asyncio
import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.services.memory.models import AnimalProfile

logger = logging.getLogger(__name__)

SAMPLE_ANIMALS = [
    dict(species="dog", name="Bella", breed="Labrador Retriever", age_months=24,
         sex="female", size="large", good_with_kids=True, good_with_pets=True,
         hypoallergenic=False, energy_level="high",
         description="Joueuse, aime les balades quotidiennes.",
         image_url="https://placehold.co/400x300?text=Bella"),
    dict(species="dog", name="Milo", breed="Poodle", age_months=36,
         sex="male", size="medium", good_with_kids=True, good_with_pets=True,
         hypoallergenic=True, energy_level="medium",
         description="Très affectueux, facile à éduquer.",
         image_url="https://placehold.co/400x300?text=Milo"),
    dict(species="cat", name="Luna", breed="Siberian", age_months=18,
         sex="female", size="small", good_with_kids=True, good_with_pets=False,
         hypoallergenic=True, energy_level="medium",
         description="Calme à la maison, aime jouer.",
         image_url="https://placehold.co/400x300?text=Luna"),
    dict(species="cat", name="Simba", breed="European Shorthair", age_months=30,
         sex="male", size="small", good_with_kids=True, good_with_pets=True,
         hypoallergenic=False, energy_level="low",
         description="Indépendant, idéal pour appartement.",
         image_url="https://placehold.co/400x300?text=Simba"),
    dict(species="rabbit", name="Coco", breed="Lop", age_months=12,
         sex="female", size="small", good_with_kids=True, good_with_pets=True,
         hypoallergenic=True, energy_level="low",
         description="Très doux, aime être brossé.",
         image_url="https://placehold.co/400x300?text=Coco"),
]


async def seed_animals(session_factory: async_sessionmaker[AsyncSession]) -> int:
    async with session_factory() as db:
        await db.execute(delete(AnimalProfile))
        db.add_all([AnimalProfile(**row) for row in SAMPLE_ANIMALS])
        await db.commit()
    logger.info(f"Seeded {len(SAMPLE_ANIMALS)} animal profiles")
    return len(SAMPLE_ANIMALS)


async def _main() -> None:
    from core.config import get_settings
    from app.services.memory.db import build_engine, build_session_factory
    from app.services.memory.init_db import init_database

    engine = build_engine(get_settings().DATABASE_URL)
    try:
        await init_database(engine)
        await seed_animals(build_session_factory(engine))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    import core.logging  # noqa: F401

    asyncio.run(_main())
