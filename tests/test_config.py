from fastapi.testclient import TestClient

from core.config import Settings
from app.main import create_app


def _settings(**overrides):
    values = dict(_env_file=None, OPENAI_API_KEY=None, GEMINI_API_KEY=None)
    values.update(overrides)
    return Settings(**values)


def test_defaults():
    s = _settings()
    assert s.PORT == 4000
    assert s.LLM_MODEL == "qwen/qwen3-8b"
    assert s.LLM_MAX_TOKENS == 256
    assert s.provider_name == "openai"


def test_provider_selection():
    assert _settings(GEMINI_API_KEY="g").provider_name == "gemini"
    assert _settings(GEMINI_API_KEY="g", OPENAI_API_KEY="o").provider_name == "openai"
    assert _settings(OPENAI_API_KEY="o").provider_name == "openai"


def test_cors_origins():
    assert _settings().cors_origins == ["*"]
    assert _settings(CORS_ALLOW_ORIGINS="http://a.test, http://b.test,").cors_origins == [
        "http://a.test",
        "http://b.test",
    ]


def test_app_startup_creates_schema_and_serves_ui(tmp_path, provider):
    settings = _settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{(tmp_path / 'boot.sqlite').as_posix()}",
        UPLOAD_DIR=str(tmp_path / "up"),
    )
    app = create_app(settings, llm_provider=provider)

    assert app.state.llm_provider is provider
    assert (tmp_path / "up").is_dir()

    with TestClient(app) as client:
        assert client.get("/chats").json() == []
        res = client.get("/", follow_redirects=False)
        assert res.status_code == 302
        assert res.headers["location"] == "/ui/index.html"
        assert client.get("/ui/index.html").status_code == 200

    assert (tmp_path / "boot.sqlite").exists()


def test_root_without_frontend(client):
    res = client.get("/")
    assert res.json() == {"ok": True, "ui": "not-mounted"}
