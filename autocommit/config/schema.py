"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from autocommit.errors import InvalidScheduleError
from autocommit.scheduler.cron import validate_cron_expression


class ScheduleConfig(BaseModel):
    """When commits happen."""
    commit_time: str = "0 18 * * *"  # 6 PM daily
    full_cron: bool = False  # Honor day/month/weekday fields via croniter
    state_file: str = "~/.autocommit/scheduler-state.json"

    @field_validator("commit_time")
    @classmethod
    def _valid_cron(cls, value: str) -> str:
        try:
            return validate_cron_expression(value)
        except InvalidScheduleError as e:
            raise ValueError(str(e)) from e

    @property
    def state_path(self) -> Path:
        return Path(self.state_file).expanduser()


class CommitConfig(BaseModel):
    """How commits are made."""
    message_template: str = Field(default="chore: daily auto-commit - {summary}", min_length=10, max_length=200)
    max_message_length: int = Field(default=72, ge=20, le=200)
    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_delay_ms: int = Field(default=5000, ge=0)
    exclude_patterns: list[str] = Field(default_factory=list)  # Pathspecs never staged


class GitConfig(BaseModel):
    """Git process settings."""
    timeout_s: float = Field(default=30.0, gt=0)


class Config(BaseSettings):
    """Root configuration for autocommit. Environment variables override the file."""
    enabled: bool = True
    log_level: Literal["debug", "info", "error"] = "info"
    repository_path: str | None = None  # None = current directory
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    commit: CommitConfig = Field(default_factory=CommitConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    model_config = SettingsConfigDict(env_prefix="AUTOCOMMIT_", env_nested_delimiter="__")

    @field_validator("log_level", mode="before")
    @classmethod
    def _lower_level(cls, value):
        return value.lower() if isinstance(value, str) else value

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @property
    def repository(self) -> Path:
        """Get expanded repository path."""
        return Path(self.repository_path or ".").expanduser().resolve()
