"""Engine settings via pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables with KLIO_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="KLIO_",
        env_file=".env",
        case_sensitive=False,
    )

    # --- Core ---
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"

    # --- Remote backend ---
    api_url: str = "http://localhost:8000"
    api_token: str | None = None
    api_timeout_seconds: float = 10.0

    # --- Local state ---
    state_path: str = "~/.klio/state.json"

    # --- Badge toast timings ---
    toast_enter_delay_ms: int = 50
    toast_visible_ms: int = 3950
    toast_exit_ms: int = 500

    # --- Progression ---
    xp_per_page: int = 10
    race_winner_xp: int = 100

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @model_validator(mode="after")
    def _check_toast_schedule(self) -> "Settings":
        if self.toast_enter_delay_ms <= 0:
            msg = "toast_enter_delay_ms must be positive"
            raise ValueError(msg)
        if self.toast_enter_delay_ms >= self.toast_visible_ms:
            msg = "toast_enter_delay_ms must be shorter than toast_visible_ms"
            raise ValueError(msg)
        if self.toast_exit_ms >= self.toast_visible_ms:
            msg = "toast_exit_ms must be shorter than toast_visible_ms"
            raise ValueError(msg)
        return self

    @property
    def resolved_state_path(self) -> Path:
        return Path(self.state_path).expanduser()


@lru_cache
def get_settings() -> Settings:
    """Get cached engine settings."""
    return Settings()
