import os
from pydantic import BaseModel
from functools import lru_cache
from dotenv import load_dotenv
load_dotenv()


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    return float(raw) if raw else None


class Settings(BaseModel):
    APP_NAME: str = os.getenv("APP_NAME", "Skills Assessment Generator")
    ENV: str = os.getenv("ENV", "development")
    API_V1_PREFIX: str = os.getenv("API_V1_PREFIX", "/api/v1")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    SQLITE_PATH: str = os.getenv("SQLITE_PATH", "taxonomy.sqlite3")
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY") or None
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY") or None
    OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "openai/gpt-4o-mini")
    LLM_TEMPERATURE: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    # unset: wait for the provider indefinitely, callers own timeouts
    LLM_TIMEOUT_SECONDS: float | None = _optional_float("LLM_TIMEOUT_SECONDS")
    JOB_DESCRIPTION_MAX_CHARS: int = int(os.getenv("JOB_DESCRIPTION_MAX_CHARS", "8000"))


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
