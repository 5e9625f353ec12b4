"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class RateLimitConfig(BaseSettings):
    max_requests: int = 3
    window_seconds: float = 60.0
    storage_key: str = "echosphere_rate_limit"


class SyncConfig(BaseSettings):
    page_size: int = 50
    live_feed_size: int = 3


class DuplicateConfig(BaseSettings):
    radius: float = 0.001
    debounce_seconds: float = 1.5
    min_content_length: int = 10


class AIConfig(BaseSettings):
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-sonnet-4-20250514"
    default_language: str = "en-US"


class StorageConfig(BaseSettings):
    upload_dir: str = "data/uploads"
    # Empty means object storage is unconfigured: uploads come back as data: URIs
    public_base_url: str = ""
    max_upload_bytes: int = 10 * 1024 * 1024
    blur_radius: int = 12


class EmailConfig(BaseSettings):
    resend_api_key: str = ""
    sender: str = "EchoSphere <noreply@echosphere.ai>"


class BillingConfig(BaseSettings):
    stripe_secret_key: str = ""
    prices: dict[str, str] = Field(default_factory=lambda: {
        "pro": "",
        "enterprise": "",
    })


class ClientConfig(BaseSettings):
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 30.0
    store_path: str = "data/client_store.json"


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/echosphere.db"
    app_url: str = "http://localhost:8000"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    resend_api_key: str = ""
    stripe_secret_key: str = ""
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    billing: BillingConfig = Field(default_factory=BillingConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides.

    Top-level credentials (OPENAI_API_KEY, RESEND_API_KEY, STRIPE_SECRET_KEY, ...)
    come from the environment and take precedence over the YAML sections.
    """
    y = _yaml
    env = Settings()
    ai = AIConfig(**y.get("ai", {}))
    ai.openai_api_key = env.openai_api_key or ai.openai_api_key
    ai.anthropic_api_key = env.anthropic_api_key or ai.anthropic_api_key
    email = EmailConfig(**y.get("email", {}))
    email.resend_api_key = env.resend_api_key or email.resend_api_key
    billing = BillingConfig(**y.get("billing", {}))
    billing.stripe_secret_key = env.stripe_secret_key or billing.stripe_secret_key
    db_url = y.get("database", {}).get("url", env.database_url)
    return Settings(
        database_url=db_url,
        app_url=y.get("app_url", env.app_url),
        openai_api_key=ai.openai_api_key,
        anthropic_api_key=ai.anthropic_api_key,
        resend_api_key=email.resend_api_key,
        stripe_secret_key=billing.stripe_secret_key,
        rate_limit=RateLimitConfig(**y.get("rate_limit", {})),
        sync=SyncConfig(**y.get("sync", {})),
        duplicates=DuplicateConfig(**y.get("duplicates", {})),
        ai=ai,
        storage=StorageConfig(**y.get("storage", {})),
        email=email,
        billing=billing,
        client=ClientConfig(**y.get("client", {})),
    )
