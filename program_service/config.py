from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    GEMINI_API_KEY: str = Field(min_length=1)
    CLERK_WEBHOOK_SECRET: str = Field(min_length=1)
    DATABASE_URL: str = "sqlite:///./program_service.db"
    LLM_MODEL: str = "gemini-2.0-flash-001"
    LLM_TEMPERATURE: float = 0.4
    LLM_TOP_P: float = 0.9
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        str_strip_whitespace=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """Resolve settings once; raises ``ValidationError`` when a required secret is absent or blank."""
    return Settings()
