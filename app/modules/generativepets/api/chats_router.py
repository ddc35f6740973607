from fastapi import APIRouter, Depends, Request, Response, status
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from core.config import Settings, get_app_settings
from app.modules.generativepets.errors import ChatNotFound
from app.modules.generativepets.schema.animal import AnimalResponse
from app.modules.generativepets.schema.chat import (
    ChatCreateRequest,
    ChatDetailResponse,
    ChatPromptRequest,
    ChatRenameRequest,
    ChatResponse,
    MessageExchangeResponse,
    MessageRequest,
    PreferenceRequest,
    PreferenceResponse,
)
from app.modules.generativepets.services.chat_service import send_message, suggest_animals
from app.modules.generativepets.services.llm import ChatProvider
from app.modules.generativepets.services.prompts import DEFAULT_SYSTEM_PROMPT
from app.services.memory import repo
from app.services.memory.db import get_db
from app.services.memory.models import Chat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["Chats"])


def get_llm_provider(request: Request) -> ChatProvider:
    return request.app.state.llm_provider


async def _require_chat(db: AsyncSession, chat_id: str) -> Chat:
    chat = await repo.get_chat(db, chat_id)
    if chat is None:
        raise ChatNotFound(chat_id)
    return chat


@router.post("", response_model=ChatResponse)
async def create_chat(req: ChatCreateRequest, db: AsyncSession = Depends(get_db)) -> ChatResponse:
    system_prompt = req.system_prompt if req.system_prompt is not None else DEFAULT_SYSTEM_PROMPT
    chat = await repo.create_chat(db, req.title, system_prompt)
    await db.commit()
    logger.info(f"Created chat {chat.id}")
    return ChatResponse.model_validate(chat)


@router.get("", response_model=List[ChatResponse])
async def list_chats(db: AsyncSession = Depends(get_db)) -> List[ChatResponse]:
    rows = await repo.list_chats(db)
    return [ChatResponse.model_validate(r) for r in rows]


@router.get("/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(chat_id: str, db: AsyncSession = Depends(get_db)) -> ChatDetailResponse:
    chat = await repo.get_chat_with_history(db, chat_id)
    if chat is None:
        raise ChatNotFound(chat_id)
    return ChatDetailResponse.model_validate(chat)


@router.patch("/{chat_id}", response_model=ChatResponse)
async def rename_chat(
    chat_id: str,
    req: ChatRenameRequest,
    db: AsyncSession = Depends(get_db),
) -> ChatResponse:
    chat = await _require_chat(db, chat_id)
    if req.title is not None:
        chat = await repo.update_chat(db, chat, title=req.title)
        await db.commit()
    return ChatResponse.model_validate(chat)


@router.patch("/{chat_id}/prompt", response_model=ChatResponse)
async def update_prompt(
    chat_id: str,
    req: ChatPromptRequest,
    db: AsyncSession = Depends(get_db),
) -> ChatResponse:
    chat = await _require_chat(db, chat_id)
    chat = await repo.update_chat(db, chat, system_prompt=req.system_prompt)
    await db.commit()
    return ChatResponse.model_validate(chat)


@router.delete("/{chat_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_chat(chat_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    await _require_chat(db, chat_id)
    await repo.delete_chat(db, chat_id)
    await db.commit()
    logger.info(f"Deleted chat {chat_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{chat_id}/reset", status_code=status.HTTP_204_NO_CONTENT)
async def reset_chat(chat_id: str, db: AsyncSession = Depends(get_db)) -> Response:
    await _require_chat(db, chat_id)
    await repo.clear_messages(db, chat_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{chat_id}/preferences", response_model=PreferenceResponse)
async def upsert_preferences(
    chat_id: str,
    req: PreferenceRequest,
    db: AsyncSession = Depends(get_db),
) -> PreferenceResponse:
    await _require_chat(db, chat_id)
    pref = await repo.upsert_preference(db, chat_id, req.model_dump())
    await db.commit()
    return PreferenceResponse.model_validate(pref)


@router.post("/{chat_id}/messages", response_model=MessageExchangeResponse)
async def post_message(
    chat_id: str,
    req: MessageRequest,
    db: AsyncSession = Depends(get_db),
    provider: ChatProvider = Depends(get_llm_provider),
    settings: Settings = Depends(get_app_settings),
) -> MessageExchangeResponse:
    return await send_message(db, chat_id, req, provider, settings.UPLOAD_DIR)


@router.get("/{chat_id}/suggestions", response_model=List[AnimalResponse])
async def get_suggestions(chat_id: str, db: AsyncSession = Depends(get_db)) -> List[AnimalResponse]:
    rows = await suggest_animals(db, chat_id)
    return [AnimalResponse.model_validate(r) for r in rows]
