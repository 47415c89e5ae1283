# coursedesk/core/config.py
import os
from typing import ClassVar

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url and url.strip():
        return url
    os.makedirs(Settings.DATA_DIR, exist_ok=True)
    return f"sqlite:///{os.path.join(Settings.DATA_DIR, 'coursedesk.db')}"


class Settings(BaseModel):
    # Constante (não vira campo Pydantic)
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    VERSION: ClassVar[str] = "1.0.0"

    DATABASE_URL: str = Field(default_factory=_default_database_url)

    # sem default: a ausência é erro de configuração (ver TokenService)
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", ""))
    ADMIN_SECRET_KEY: str = Field(default_factory=lambda: os.getenv("ADMIN_SECRET_KEY", ""))
    JWT_ALGORITHM: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256"))
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440")))
    REFRESH_TOKEN_EXPIRE_DAYS: int = Field(default_factory=lambda: int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", "7")))

    KV_URL: str = Field(default_factory=lambda: os.getenv("KV_URL", "memory://"))
    SUBSCRIPTION_CACHE_TTL_DAYS: int = Field(default_factory=lambda: int(os.getenv("SUBSCRIPTION_CACHE_TTL_DAYS", "30")))
    ADMIN_SUBSCRIPTION_TTL_DAYS: int = Field(default_factory=lambda: int(os.getenv("ADMIN_SUBSCRIPTION_TTL_DAYS", "365")))

    API_PREFIX: str = Field(default_factory=lambda: os.getenv("API_PREFIX", "/api"))
    CORS_ALLOW_ORIGIN: str = Field(default_factory=lambda: os.getenv("CORS_ALLOW_ORIGIN", "*"))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", "true"))
    ENABLE_METRICS: bool = Field(default_factory=lambda: _env_bool("ENABLE_METRICS", "true"))

    SEED_DEMO_TENANT: bool = Field(default_factory=lambda: _env_bool("SEED_DEMO_TENANT", "false"))
    DEMO_ADMIN_EMAIL: str = Field(default_factory=lambda: os.getenv("DEMO_ADMIN_EMAIL", "admin@demo.example.com"))
    DEMO_ADMIN_PASSWORD: str = Field(default_factory=lambda: os.getenv("DEMO_ADMIN_PASSWORD", ""))

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 86400


settings = Settings()
