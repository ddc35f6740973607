from fastapi import APIRouter, Depends
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.generativepets.schema.animal import AnimalCreateRequest, AnimalResponse
from app.services.memory import repo
from app.services.memory.db import get_db

router = APIRouter(prefix="/animals", tags=["Animal Profiles"])


@router.get("", response_model=List[AnimalResponse])
async def list_animals(db: AsyncSession = Depends(get_db)) -> List[AnimalResponse]:
    """Catalog, newest first."""
    rows = await repo.list_animals(db)
    return [AnimalResponse.model_validate(r) for r in rows]


@router.post("", response_model=AnimalResponse)
async def create_animal(req: AnimalCreateRequest, db: AsyncSession = Depends(get_db)) -> AnimalResponse:
    animal = await repo.create_animal(db, req.to_row())
    await db.commit()
    return AnimalResponse.model_validate(animal)
