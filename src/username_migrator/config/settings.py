"""Application settings using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="USERNAME_MIGRATOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    log_level: str = "INFO"
    json_logs: bool = False

    # Per-user application data (audit logs live under <app_data_dir>/logs)
    app_data_dir: str = "~/.github-username-migrator"

    # Scanning
    default_scan_root: str = "~"
    max_depth: int = Field(default=20, ge=0)
    progress_interval_ms: int = Field(default=100, ge=0)

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.app_data_dir = str(Path(self.app_data_dir).expanduser())
        self.default_scan_root = str(Path(self.default_scan_root).expanduser())

    @property
    def logs_dir(self) -> Path:
        return Path(self.app_data_dir) / "logs"

    @property
    def progress_interval(self) -> float:
        """Progress throttle in seconds."""
        return self.progress_interval_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
