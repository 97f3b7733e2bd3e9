from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env from repo root if present
ENV_PATH = Path(__file__).resolve().parents[3] / ".env"
if ENV_PATH.exists():
    load_dotenv(dotenv_path=ENV_PATH)


class Settings(BaseSettings):
    """Storefront client settings (loaded from env).

    Groups:
      - Remote API: where orders/catalog/user live and how patiently we talk to it.
      - Store: where the cart snapshot, bearer token and user id are persisted.
      - Checkout: submission timeout for the one-shot order creation.
    """

    # --- service ---
    service_name: str = Field(default="storefront", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")
    environment: str = Field(default="dev", description="Environment name (dev/staging/prod)")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="text", description="text|json")

    # --- Remote storefront API ---
    api_base_url: str = Field(
        default="http://localhost:3333",
        description="Base URL of the remote order/catalog API",
    )
    api_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Per-request HTTP timeout (reads and writes)"
    )
    api_read_attempts: int = Field(
        default=3, ge=1, le=10,
        description="Attempts for idempotent reads on transport errors (order creation is never retried)",
    )

    # --- Checkout ---
    checkout_timeout_seconds: float = Field(
        default=30.0, gt=0,
        description="Wall-clock limit for a single order submission before it resolves as failed",
    )

    # --- Persistent store ---
    store_backend: str = Field(default="file", description="memory|file|redis")
    store_dir: Path = Field(
        default=Path("workspace/.storefront"),
        description="Directory for the file store (one JSON file per key)",
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    redis_key_prefix: str = Field(default="storefront:", description="Prefix for persisted keys in Redis")

    # Persisted key names (kept compatible with the browser client)
    cart_key: str = Field(default="cartItems", description="Key holding the serialized cart")
    token_key: str = Field(default="token", description="Key holding the bearer token")
    user_id_key: str = Field(default="userId", description="Key holding the current user id")

    # --- Notifications ---
    notifications_backend: str = Field(default="memory", description="memory|redis")

    # --- Order history ---
    history_latest_limit: int = Field(default=5, ge=1, description="Orders shown as 'latest' on the dashboard")

    # --- CORS (browser UI) ---
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_methods: List[str] = Field(default_factory=lambda: ["*"])
    cors_allow_headers: List[str] = Field(default_factory=lambda: ["*"])

    # pydantic-settings v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ---- Convenience helpers ----
    @property
    def api_root(self) -> str:
        """Base URL without a trailing slash."""
        return self.api_base_url.rstrip("/")

    @property
    def uses_redis(self) -> bool:
        return "redis" in (self.store_backend.lower(), self.notifications_backend.lower())


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
