import logging
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly (e.g., provider SDKs).
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    ANTHROPIC_API_KEY: str | None = None
    LLM_DEFAULT_MODEL: str = "claude-3-haiku-20240307"
    LLM_REQUEST_TIMEOUT: float = 60.0
    PRICING_MAX_TOKENS: int = 150
    WEAPON_MAX_TOKENS: int = 300

    STRIPE_SECRET_KEY: str | None = None
    CHECKOUT_DEFAULT_ORIGIN: str = "https://i-like-mangos.vercel.app"
    CHECKOUT_CURRENCY: str = "usd"

    CORS_ALLOW_METHODS: str = "GET, POST, OPTIONS"
    GAME_TITLE: str = "ShatterRealms"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper() or "INFO"
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got {value!r}")
        return level

    @field_validator("CHECKOUT_DEFAULT_ORIGIN")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
