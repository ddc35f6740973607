"""
Chat Service Module
Message exchange with the adoption advisor, image uploads and animal suggestions
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.modules.generativepets.errors import ChatNotFound, LLMError
from app.modules.generativepets.schema.chat import MessageExchangeResponse, MessageRequest
from app.modules.generativepets.services.llm import ChatProvider, InlineImage
from app.modules.generativepets.services.prompts import (
    IMAGE_ONLY_USER_TEXT,
    build_system_instruction,
    finalize_reply,
)
from app.services.memory import repo
from app.services.memory.models import AnimalProfile, Preference

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"


def _upload_extension(mime: Optional[str]) -> str:
    return "png" if "png" in (mime or "image/jpeg") else "jpg"


def decode_image(image_base64: str, mime: str) -> Optional[InlineImage]:
    try:
        data = base64.b64decode(image_base64)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Failed to decode uploaded image: {e}")
        return None
    return InlineImage(mime_type=mime or "image/jpeg", data=data)


async def save_upload(upload_dir: Union[str, Path], chat_id: str, image: InlineImage) -> str:
    """Write the image under upload_dir and return its public path."""
    file_name = f"{chat_id}-{int(time.time() * 1000)}.{_upload_extension(image.mime_type)}"
    dest = Path(upload_dir) / file_name
    await run_in_threadpool(dest.write_bytes, image.data)
    return f"{UPLOADS_URL_PREFIX}/{file_name}"


async def send_message(
    db: AsyncSession,
    chat_id: str,
    req: MessageRequest,
    provider: ChatProvider,
    upload_dir: Union[str, Path],
) -> MessageExchangeResponse:
    chat = await repo.get_chat_with_history(db, chat_id)
    if chat is None:
        raise ChatNotFound(chat_id)

    # Snapshot before this turn's messages are stored
    history = [{"role": m.role, "content": m.content} for m in chat.messages]

    image: Optional[InlineImage] = None
    image_path: Optional[str] = None
    if req.image_base64:
        image = decode_image(req.image_base64, req.image_mime)
        if image is not None:
            try:
                image_path = await save_upload(upload_dir, chat.id, image)
                await repo.add_message(db, chat.id, "user", image_path)
            except OSError as e:
                logger.warning(f"Failed to save image for chat {chat.id}: {e}")
                image_path = None

    if req.content.strip():
        user_text = req.content
    elif req.image_base64:
        user_text = IMAGE_ONLY_USER_TEXT
    else:
        user_text = ""
    if user_text.strip():
        await repo.add_message(db, chat.id, "user", user_text)

    # User turns stay stored even if the provider fails below
    await db.commit()

    system_instruction = build_system_instruction(chat.system_prompt, chat.preferences)
    try:
        raw = await provider.generate(system_instruction, history, user_text, image)
    except Exception as e:
        status = getattr(e, "status_code", None) or getattr(e, "code", None)
        logger.error(f"LLM error: {status} {e}", exc_info=True)
        raise LLMError(str(e)) from e

    reply = finalize_reply(raw)
    await repo.add_message(db, chat.id, "assistant", reply)
    await repo.touch_chat(db, chat)
    await db.commit()

    return MessageExchangeResponse(content=reply, image_path=image_path)


# ============================================================
# Suggestions
# ============================================================

def suggestion_filters(pref: Preference) -> Dict[str, Any]:
    """
    Column -> value (exact match) or list (membership) constraints on AnimalProfile.

    Housing overrides size; any allergy forces hypoallergenic; activity widens
    to a neighbouring energy level at both ends of the scale.
    """
    filters: Dict[str, Any] = {}
    if pref.housing == "apartment":
        filters["size"] = ["small", "medium"]
    elif pref.size:
        filters["size"] = pref.size

    if pref.allergies and pref.allergies.strip():
        filters["hypoallergenic"] = True

    if pref.activity == "low":
        filters["energy_level"] = ["low", "medium"]
    elif pref.activity == "high":
        filters["energy_level"] = ["medium", "high"]
    elif pref.activity:
        filters["energy_level"] = pref.activity
    return filters


def _criteria(filters: Dict[str, Any]) -> list:
    clauses = []
    for column_name, value in filters.items():
        column = getattr(AnimalProfile, column_name)
        if isinstance(value, list):
            clauses.append(column.in_(value))
        else:
            clauses.append(column == value)
    return clauses


async def suggest_animals(db: AsyncSession, chat_id: str) -> List[AnimalProfile]:
    pref = await repo.get_preference(db, chat_id)
    if pref is None:
        return []
    return await repo.list_animals(db, *_criteria(suggestion_filters(pref)))
