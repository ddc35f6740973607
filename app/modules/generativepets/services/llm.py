"""
Provider adapters for the adoption chat.

Two providers share one call shape, `generate(system_instruction, history,
user_text, image)`, and return raw model text. Post-processing (think-block
stripping, apology fallback) happens in the chat service.
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import google.generativeai as genai
from openai import AsyncOpenAI

from core.config import Settings
from core.utils.perf import profile_stage
from app.modules.generativepets.services.prompts import EMPTY_TURN_TEXT, build_plain_prompt

logger = logging.getLogger(__name__)

HistoryTurn = Dict[str, str]


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: bytes

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"


class ChatProvider(Protocol):
    name: str

    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryTurn],
        user_text: str,
        image: Optional[InlineImage] = None,
    ) -> str:
        ...


# ============================================================
# OpenAI-compatible chat completion (LM Studio, OpenAI, ...)
# ============================================================

class OpenAIChatProvider:
    name = "openai"

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self._settings = settings
        self._client = client or AsyncOpenAI(
            base_url=settings.LLM_BASE_URL or None,
            api_key=settings.OPENAI_API_KEY or "lm-studio",
            timeout=settings.LLM_TIMEOUT_SECS,
        )

    def _user_content(self, user_text: str, image: Optional[InlineImage]) -> Any:
        if image is None or not self._settings.OPENAI_VISION:
            return user_text
        return [
            {"type": "text", "text": user_text},
            {"type": "image_url", "image_url": {"url": image.data_uri}},
        ]

    @profile_stage("llm_response")
    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryTurn],
        user_text: str,
        image: Optional[InlineImage] = None,
    ) -> str:
        s = self._settings
        turn = user_text or EMPTY_TURN_TEXT
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system_instruction}]
        messages += [{"role": m["role"], "content": m["content"]} for m in history]
        messages.append({"role": "user", "content": self._user_content(turn, image)})

        response = await self._client.chat.completions.create(
            model=s.LLM_MODEL,
            messages=messages,
            temperature=s.LLM_TEMPERATURE,
            stream=False,
            max_tokens=s.LLM_MAX_TOKENS,
            top_p=s.LLM_TOP_P,
        )
        text = ""
        if response.choices:
            text = response.choices[0].message.content or ""
        if text.strip():
            return text

        # Some local reasoning models answer the chat endpoint with nothing
        # but a <think> preamble; ask once more as a plain completion.
        logger.warning("[LLM] empty chat completion, retrying as plain completion")
        completion = await self._client.completions.create(
            model=s.LLM_MODEL,
            prompt=build_plain_prompt(system_instruction, history, turn),
            temperature=s.LLM_TEMPERATURE,
            max_tokens=s.LLM_MAX_TOKENS,
            top_p=s.LLM_TOP_P,
            stream=False,
            stop=["</think>"],
        )
        if completion.choices:
            return completion.choices[0].text or ""
        return ""


# ============================================================
# Gemini (multimodal)
# ============================================================

def build_gemini_contents(
    history: Sequence[HistoryTurn],
    user_text: str,
    image: Optional[InlineImage],
) -> List[Dict[str, Any]]:
    """History as user/model turns, consecutive same-role turns merged, then the new turn."""
    contents: List[Dict[str, Any]] = []

    def push(role: str, parts: List[Any]) -> None:
        if contents and contents[-1]["role"] == role:
            contents[-1]["parts"].extend(parts)
        else:
            contents.append({"role": role, "parts": list(parts)})

    for m in history:
        if m["role"] == "system" or not m["content"]:
            continue
        push("model" if m["role"] == "assistant" else "user", [m["content"]])

    parts: List[Any] = []
    if image is not None:
        parts.append({"mime_type": image.mime_type, "data": image.data})
    if user_text:
        parts.append(user_text)
    push("user", parts or [EMPTY_TURN_TEXT])
    return contents


def _extract_text(resp) -> str:
    """Text from a Gemini response without tripping over blocked/empty candidates."""
    chunks: List[str] = []
    for c in getattr(resp, "candidates", None) or []:
        content = getattr(c, "content", None)
        for p in getattr(content, "parts", None) or []:
            txt = getattr(p, "text", "") or ""
            if isinstance(txt, str) and txt:
                chunks.append(txt)
        if chunks:
            return "".join(chunks)
    try:
        t = resp.text
    except ValueError:
        # .text raises when the response has no parts
        return ""
    return t if isinstance(t, str) else ""


class GeminiChatProvider:
    name = "gemini"

    def __init__(self, settings: Settings, model_factory: Optional[Callable[[str], Any]] = None):
        self._settings = settings
        if model_factory is None:
            genai.configure(api_key=settings.GEMINI_API_KEY)
            model_factory = self._default_model
        self._model_factory = model_factory

    def _default_model(self, system_instruction: str):
        return genai.GenerativeModel(self._settings.GEMINI_MODEL, system_instruction=system_instruction)

    @profile_stage("llm_response")
    async def generate(
        self,
        system_instruction: str,
        history: Sequence[HistoryTurn],
        user_text: str,
        image: Optional[InlineImage] = None,
    ) -> str:
        s = self._settings
        model = self._model_factory(system_instruction)
        resp = await model.generate_content_async(
            build_gemini_contents(history, user_text, image),
            generation_config={
                "temperature": s.LLM_TEMPERATURE,
                "max_output_tokens": s.LLM_MAX_TOKENS,
            },
            request_options={"timeout": s.LLM_TIMEOUT_SECS},
        )
        return _extract_text(resp)


def build_provider(settings: Settings) -> ChatProvider:
    if settings.provider_name == "gemini":
        return GeminiChatProvider(settings)
    return OpenAIChatProvider(settings)
