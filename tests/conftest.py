import os
import tempfile

# Keep the import-time app (app.main.app) away from the working tree
_IMPORT_DIR = tempfile.mkdtemp(prefix="generative-pets-")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_IMPORT_DIR, "uploads"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_IMPORT_DIR}/import.sqlite")

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from app.main import create_app


class FakeProvider:
    """Records every call and answers with a canned reply (or raises)."""

    name = "fake"

    def __init__(self):
        self.reply = "Un chat d'appartement serait idéal."
        self.error = None
        self.calls = []

    async def generate(self, system_instruction, history, user_text, image=None):
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "history": list(history),
                "user_text": user_text,
                "image": image,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{(tmp_path / 'test.sqlite').as_posix()}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        SERVE_FRONTEND=False,
        OPENAI_API_KEY=None,
        GEMINI_API_KEY=None,
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(settings, provider):
    app = create_app(settings, llm_provider=provider)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def chat(client):
    res = client.post("/chats", json={"title": "Adoption"})
    assert res.status_code == 200
    return res.json()
