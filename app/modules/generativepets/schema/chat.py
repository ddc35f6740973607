from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from .base import CamelModel

MessageRole = Literal["user", "assistant", "system"]


class ChatCreateRequest(CamelModel):
    title: str = Field(min_length=1)
    system_prompt: Optional[str] = None


class ChatRenameRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)


class ChatPromptRequest(CamelModel):
    system_prompt: str


class PreferenceRequest(CamelModel):
    size: str
    housing: str
    allergies: str = ""
    activity: str


class MessageRequest(CamelModel):
    content: str = ""
    image_base64: Optional[str] = None
    image_mime: str = "image/jpeg"


class ChatResponse(CamelModel):
    id: str
    title: str
    system_prompt: str
    created_at: datetime
    updated_at: datetime


class MessageResponse(CamelModel):
    id: str
    chat_id: str
    role: MessageRole
    content: str
    created_at: datetime


class PreferenceResponse(CamelModel):
    id: str
    chat_id: str
    size: str
    housing: str
    allergies: str
    activity: str
    updated_at: datetime


class ChatDetailResponse(ChatResponse):
    messages: List[MessageResponse] = Field(default_factory=list)
    preferences: Optional[PreferenceResponse] = None


class MessageExchangeResponse(CamelModel):
    content: str
    image_path: Optional[str] = None
