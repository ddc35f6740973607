# app/modules/router.py
from fastapi import APIRouter
from app.modules.generativepets.api.chats_router import router as chats_router
from app.modules.generativepets.api.animals_router import router as animals_router

router = APIRouter()
router.include_router(chats_router)
router.include_router(animals_router)
