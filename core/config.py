"""
Core Configuration and Services
Settings for Generative Pets and the wiring of process-wide services onto app.state
"""

import logging
from functools import lru_cache
from typing import Literal, Optional

from fastapi import FastAPI, Request
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ProviderName = Literal["openai", "gemini"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 4000

    # Persistence
    DATABASE_URL: str = "sqlite+aiosqlite:///./generative_pets.sqlite"
    UPLOAD_DIR: str = "./uploads"

    # Primary provider (OpenAI-compatible, e.g. LM Studio)
    OPENAI_API_KEY: Optional[str] = None
    LLM_BASE_URL: Optional[str] = None
    LLM_MODEL: str = "qwen/qwen3-8b"
    OPENAI_VISION: bool = False  # send images as image_url parts

    # Alternate provider
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Sampling
    LLM_TEMPERATURE: float = 0.4
    LLM_MAX_TOKENS: int = 256
    LLM_TOP_P: float = 0.9
    LLM_TIMEOUT_SECS: float = 30.0

    # HTTP
    CORS_ALLOW_ORIGINS: str = "*"
    SERVE_FRONTEND: bool = True

    @property
    def provider_name(self) -> ProviderName:
        """Gemini only when its key is set and the OpenAI key is not."""
        if self.GEMINI_API_KEY and not self.OPENAI_API_KEY:
            return "gemini"
        return "openai"

    @property
    def cors_origins(self) -> list[str]:
        raw = self.CORS_ALLOW_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


def wire_services(app: FastAPI, settings: Settings, llm_provider=None) -> None:
    """Wire all singleton services into app.state."""
    from app.modules.generativepets.services.llm import build_provider
    from app.services.memory.db import build_engine, build_session_factory

    logger.info("Wiring global services...")

    app.state.settings = settings

    app.state.engine = build_engine(settings.DATABASE_URL)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Chosen once; handlers only ever read it
    app.state.llm_provider = llm_provider or build_provider(settings)
    logger.info(f"LLM provider: {app.state.llm_provider.name}")

    logger.info("Service container wiring completed successfully")


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
