from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    project_name: str = "AI Travel Planner"
    api_v1_prefix: str = "/api/v1"

    ai_provider: Literal["gemini", "openai"] = "gemini"
    gemini_model: str = "gemini-2.5-flash"
    openai_model: str = "gpt-4.1-mini"
    request_timeout_seconds: float = Field(default=120.0, gt=0, description="Upper bound for one model call")

    storage_path: str = ".trip_planner/storage.json"
    public_base_url: str = "http://localhost:8000/"
    address_bar_writable: bool = True

    default_locale: Literal["en", "ar"] = "en"
    log_level: str = "INFO"

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TRIP_PLANNER_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
