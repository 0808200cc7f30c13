"""Process settings loaded from ARCHGUARD_* environment variables (and .env)."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from archguard.policy import DEFAULT_POLICY_FILE


class Settings(BaseSettings):
    """Server and CLI defaults; per-call tool options override them."""

    model_config = SettingsConfigDict(
        env_prefix="ARCHGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Used when a tool call omits `path`.
    project_root: Optional[Path] = None
    policy_file: str = Field(
        default=DEFAULT_POLICY_FILE,
        validation_alias=AliasChoices("ARCHGUARD_POLICY_FILE", "DEPENDENCY_POLICY_FILE"),
    )
    debug: bool = False

    # HTTP transport
    host: str = "127.0.0.1"
    port: int = 8765

    jobs: int = 1
    ci_strict: bool = False

    @field_validator("jobs", mode="after")
    @classmethod
    def validate_jobs(cls, v: int) -> int:
        if v < 1:
            raise ValueError("jobs must be at least 1")
        return v

    def default_root(self) -> Path:
        return self.project_root or Path.cwd()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
