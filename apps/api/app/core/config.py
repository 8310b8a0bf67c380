from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    env: str = "development"
    cors_origins: list[str] = ["http://localhost:5173"]

    # The caller always supplies the credential; only the model and endpoint are fixed here.
    groq_model: str = Field(
        default="llama-3.3-70b-versatile",
        validation_alias=AliasChoices("GROQ_MODEL", "AI_MODEL"),
    )
    groq_base_url: str = "https://api.groq.com/openai/v1"
    api_key_prefix: str = "gsk_"
    ai_request_timeout_sec: int = 30

    rate_limit_default: str = "40/minute"
    rate_limit_enabled: bool = True

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = True

    model_config = SettingsConfigDict(env_file="../../.env", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
