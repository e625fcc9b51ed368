"""
Central configuration. All API keys and settings in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # --- Gemini ---
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    chat_model: str = Field(default="gemini-3-flash-preview", alias="DIRECTOR_CHAT_MODEL")
    text_model: str = Field(default="gemini-3-flash-preview", alias="DIRECTOR_TEXT_MODEL")
    image_model: str = Field(default="gemini-3-pro-image-preview", alias="DIRECTOR_IMAGE_MODEL")
    image_size: str = Field(default="1K", alias="DIRECTOR_IMAGE_SIZE")
    chat_temperature: float = Field(default=0.7, alias="DIRECTOR_CHAT_TEMPERATURE")

    # --- Brief ---
    # Language the summary, suggestion and analysis calls are asked to answer in.
    brief_language: str = Field(default="Traditional Chinese", alias="DIRECTOR_BRIEF_LANGUAGE")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
