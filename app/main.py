# app/main.py
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from app.modules.generativepets.errors import ChatNotFound, LLMError
from app.modules.router import router as modules_router
from app.services.memory.init_db import init_database
from core.config import Settings, get_settings, wire_services
from core.logging import get_logger

logger = get_logger(__name__)

_UI_ROOT = Path(__file__).resolve().parents[1] / "frontend"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Generative Pets API...")
    await init_database(app.state.engine)
    logger.info("Application startup completed successfully")
    yield
    await app.state.engine.dispose()
    logger.info("Generative Pets API stopped")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @app.exception_handler(ChatNotFound)
    async def chat_not_found(request: Request, exc: ChatNotFound):
        return JSONResponse(status_code=404, content={"error": "Not found"})

    @app.exception_handler(LLMError)
    async def llm_error(request: Request, exc: LLMError):
        return JSONResponse(status_code=500, content={"error": "LLM error"})


def create_app(settings: Optional[Settings] = None, llm_provider=None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Generative Pets", version="1.0.0", lifespan=lifespan)
    wire_services(app, settings, llm_provider=llm_provider)
    _register_error_handlers(app)
    app.include_router(modules_router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Uploaded chat images are served back from here
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    ui_mounted = settings.SERVE_FRONTEND and _UI_ROOT.exists()
    if ui_mounted:
        app.mount("/ui", StaticFiles(directory=str(_UI_ROOT), html=True), name="frontend")

    @app.api_route("/", methods=["GET", "HEAD"], include_in_schema=False)
    async def root():
        if ui_mounted:
            return RedirectResponse(url="/ui/index.html", status_code=302)
        return JSONResponse({"ok": True, "ui": "not-mounted"})

    @app.get("/health", tags=["health"])
    async def health():
        return {"ok": True}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=get_settings().PORT)
