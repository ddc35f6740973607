import asyncio
from types import SimpleNamespace as NS
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.config import Settings
from app.modules.generativepets.services import llm
from app.modules.generativepets.services.llm import (
    GeminiChatProvider,
    InlineImage,
    OpenAIChatProvider,
    build_gemini_contents,
    build_provider,
)

HISTORY = [
    {"role": "user", "content": "Bonjour"},
    {"role": "assistant", "content": "Bonjour ! Que cherchez-vous ?"},
]
IMAGE = InlineImage(mime_type="image/png", data=b"\x89PNG")


def _settings(**overrides):
    values = dict(_env_file=None, OPENAI_API_KEY=None, GEMINI_API_KEY=None)
    values.update(overrides)
    return Settings(**values)


def _openai_client(chat_text, plain_text="Un lapin."):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=NS(choices=[NS(message=NS(content=chat_text))])
    )
    client.completions.create = AsyncMock(return_value=NS(choices=[NS(text=plain_text)]))
    return client


# ---------------------------------------------------------------------------
# OpenAI-compatible provider
# ---------------------------------------------------------------------------

def test_openai_message_shape():
    client = _openai_client("Un chat.")
    provider = OpenAIChatProvider(_settings(), client=client)

    text = asyncio.run(provider.generate("Persona", HISTORY, "Un animal calme ?"))

    assert text == "Un chat."
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "qwen/qwen3-8b"
    assert kwargs["temperature"] == 0.4
    assert kwargs["max_tokens"] == 256
    assert kwargs["top_p"] == 0.9
    assert kwargs["messages"] == [
        {"role": "system", "content": "Persona"},
        *HISTORY,
        {"role": "user", "content": "Un animal calme ?"},
    ]
    client.completions.create.assert_not_awaited()


def test_openai_empty_turn_defaults_to_analyse():
    client = _openai_client("Ok.")
    provider = OpenAIChatProvider(_settings(), client=client)

    asyncio.run(provider.generate("Persona", [], ""))

    last = client.chat.completions.create.await_args.kwargs["messages"][-1]
    assert last == {"role": "user", "content": "Analyse."}


def test_openai_falls_back_to_plain_completion_once():
    client = _openai_client("   ", plain_text=" Un hamster.")
    provider = OpenAIChatProvider(_settings(), client=client)

    text = asyncio.run(provider.generate("Persona", HISTORY, "Petit animal ?"))

    assert text == " Un hamster."
    client.completions.create.assert_awaited_once()
    kwargs = client.completions.create.await_args.kwargs
    assert kwargs["stop"] == ["</think>"]
    assert kwargs["prompt"].startswith("Persona\n\n")
    assert kwargs["prompt"].endswith("Utilisateur: Petit animal ?\nAssistant:")


def test_openai_fallback_with_no_choices_returns_empty():
    client = _openai_client(None)
    client.completions.create = AsyncMock(return_value=NS(choices=[]))
    provider = OpenAIChatProvider(_settings(), client=client)

    assert asyncio.run(provider.generate("Persona", [], "Salut")) == ""


def test_openai_image_is_text_only_unless_vision_enabled():
    client = _openai_client("Ok.")
    asyncio.run(OpenAIChatProvider(_settings(), client=client).generate("P", [], "Vois", IMAGE))
    assert client.chat.completions.create.await_args.kwargs["messages"][-1]["content"] == "Vois"

    client = _openai_client("Ok.")
    provider = OpenAIChatProvider(_settings(OPENAI_VISION=True), client=client)
    asyncio.run(provider.generate("P", [], "Vois", IMAGE))
    content = client.chat.completions.create.await_args.kwargs["messages"][-1]["content"]
    assert content[0] == {"type": "text", "text": "Vois"}
    assert content[1]["image_url"]["url"] == "data:image/png;base64,iVBORw=="


def test_openai_errors_propagate():
    client = _openai_client("Ok.")
    client.chat.completions.create = AsyncMock(side_effect=ConnectionError("refused"))
    provider = OpenAIChatProvider(_settings(), client=client)

    with pytest.raises(ConnectionError, match="refused"):
        asyncio.run(provider.generate("P", [], "Salut"))


# ---------------------------------------------------------------------------
# Gemini provider
# ---------------------------------------------------------------------------

def test_gemini_contents_merge_and_image_first():
    history = [
        {"role": "system", "content": "ignored"},
        {"role": "user", "content": "/uploads/c-1.png"},
        {"role": "user", "content": "Analyse cette image."},
        {"role": "assistant", "content": "Un chat tigré."},
    ]
    contents = build_gemini_contents(history, "Et celui-ci ?", IMAGE)

    assert contents == [
        {"role": "user", "parts": ["/uploads/c-1.png", "Analyse cette image."]},
        {"role": "model", "parts": ["Un chat tigré."]},
        {"role": "user", "parts": [{"mime_type": "image/png", "data": b"\x89PNG"}, "Et celui-ci ?"]},
    ]


def test_gemini_contents_new_turn_merges_into_trailing_user_turn():
    contents = build_gemini_contents([{"role": "user", "content": "Tu es là ?"}], "", None)
    assert contents == [{"role": "user", "parts": ["Tu es là ?", "Analyse."]}]


def test_gemini_generate_uses_system_instruction_and_config():
    resp = NS(candidates=[NS(content=NS(parts=[NS(text="Un "), NS(text="furet.")]))])
    model = MagicMock()
    model.generate_content_async = AsyncMock(return_value=resp)
    factory = MagicMock(return_value=model)
    provider = GeminiChatProvider(_settings(GEMINI_API_KEY="g"), model_factory=factory)

    text = asyncio.run(provider.generate("Persona\n\nPréférences", HISTORY, "Idée ?"))

    assert text == "Un furet."
    factory.assert_called_once_with("Persona\n\nPréférences")
    args, kwargs = model.generate_content_async.await_args
    assert args[0][-1] == {"role": "user", "parts": ["Idée ?"]}
    assert kwargs["generation_config"] == {"temperature": 0.4, "max_output_tokens": 256}
    assert kwargs["request_options"] == {"timeout": 30.0}


def test_extract_text_handles_blocked_response():
    class Blocked:
        candidates = []

        @property
        def text(self):
            raise ValueError("no parts")

    assert llm._extract_text(Blocked()) == ""
    assert llm._extract_text(NS(candidates=None, text="direct")) == "direct"


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------

def test_build_provider_prefers_openai(monkeypatch):
    configure = MagicMock()
    monkeypatch.setattr(llm.genai, "configure", configure)

    assert build_provider(_settings()).name == "openai"
    assert build_provider(_settings(OPENAI_API_KEY="o", GEMINI_API_KEY="g")).name == "openai"
    configure.assert_not_called()

    provider = build_provider(_settings(GEMINI_API_KEY="g"))
    assert provider.name == "gemini"
    configure.assert_called_once_with(api_key="g")
