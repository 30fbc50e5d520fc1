"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    pawapay_base_url: str = "https://api.sandbox.pawapay.io"
    pawapay_api_token: str = ""
    pawapay_webhook_secret: str = ""
    webhook_require_signature: bool = False
    callback_base_url: str = "http://localhost:3000"

    request_timeout_s: float = 30.0
    max_retries: int = 3
    retry_base_delay_s: float = 1.0
    session_ttl_minutes: int = 30
    default_language: str = "FR"

    database_url: str = "sqlite+aiosqlite:///./checkout.db"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency so tests can swap in their own settings."""
    return settings
