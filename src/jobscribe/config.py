from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Jobscribe"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8788
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/jobscribe.db"
    data_dir: Path = Path("./data")
    preferences_path: Path = Path("./data/preferences.json")
    store_schema_version: int = 2

    scrape_settle_delay_sec: float = 0.5
    scrape_observe_window_sec: float = 10.0
    surface_relay_delay_sec: float = 0.5
    fetch_timeout_sec: int = 30

    generation_provider: Literal["openai", "local"] = "openai"
    generation_temperature: float = 0.7

    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o"
    openai_timeout_sec: int = 60

    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_api_key: str = "local"
    local_llm_model: str = "qwen2.5:14b-instruct"
    local_llm_timeout_sec: int = 90

    cors_origins: str = "http://127.0.0.1:8788"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("store_schema_version")
    @classmethod
    def validate_schema_version(cls, value: int) -> int:
        if value < 1:
            raise ValueError("store_schema_version must be >= 1")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def generation_model(self) -> str:
        if self.generation_provider == "local":
            return self.local_llm_model
        return self.openai_model


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
