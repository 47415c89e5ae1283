import dotenv

from coursedesk.core import config
from coursedesk.core.config import Settings


def test_dotenv_is_loaded_with_python_dotenv():
    assert config.load_dotenv is dotenv.load_dotenv


def test_settings_read_the_environment(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")
    monkeypatch.setenv("REFRESH_TOKEN_EXPIRE_DAYS", "2")
    monkeypatch.setenv("ENABLE_METRICS", "off")
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/coursedesk")
    settings = Settings()
    assert settings.access_token_ttl_seconds == 900
    assert settings.refresh_token_ttl_seconds == 2 * 86400
    assert settings.ENABLE_METRICS is False
    assert settings.DATABASE_URL == "postgres://u:p@db/coursedesk"


def test_defaults(monkeypatch):
    for name in ("ACCESS_TOKEN_EXPIRE_MINUTES", "KV_URL", "API_PREFIX", "SUBSCRIPTION_CACHE_TTL_DAYS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 1440
    assert settings.KV_URL == "memory://"
    assert settings.API_PREFIX == "/api"
    assert settings.SUBSCRIPTION_CACHE_TTL_DAYS == 30
