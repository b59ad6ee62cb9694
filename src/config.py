"""Runtime settings, read from AVIARY_* environment variables or a .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Hard cap on pedigree depth; requests above it are rejected.
MAX_GENERATIONS = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AVIARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    db_path: Path = Path("aviary.db")

    # ── Pedigree ─────────────────────────────────────────────────
    default_generations: int = Field(default=5, ge=1, le=MAX_GENERATIONS)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
