"""Configuration management with Pydantic and YAML support."""

from __future__ import annotations

import os
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PomodoroConfig(BaseModel):
    """Durations for the focus timer."""

    focus_minutes: int = Field(default=25, ge=1, le=180)
    short_break_minutes: int = Field(default=5, ge=1, le=60)
    long_break_minutes: int = Field(default=15, ge=1, le=120)
    pomodoros_until_long_break: int = Field(default=4, ge=1, description="Focus intervals per long break")

    def duration_seconds(self, mode: str) -> int:
        """Duration in seconds for a timer mode value."""
        if mode == "focus":
            return self.focus_minutes * 60
        elif mode == "short_break":
            return self.short_break_minutes * 60
        return self.long_break_minutes * 60


class DelayPolicyConfig(BaseModel):
    """Postponement rules applied by the delay gate."""

    cooldown_minutes: int = Field(default=60, ge=0, description="Minimum gap between two delays")
    max_delays: int = Field(default=5, ge=1, description="Last postponement ever allowed")

    @property
    def cooldown(self) -> timedelta:
        return timedelta(minutes=self.cooldown_minutes)


class NotificationConfig(BaseModel):
    """Where timer notifications are delivered."""

    enabled: bool = True
    backend: str = Field(default="console", pattern="^(console|macos|none)$")


class Config(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PROCRASTINOT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/procrastinot")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".local/state/procrastinot")
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config/procrastinot")

    # Log level
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Sub-configurations
    pomodoro: PomodoroConfig = Field(default_factory=PomodoroConfig)
    delay_policy: DelayPolicyConfig = Field(default_factory=DelayPolicyConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    @property
    def db_path(self) -> Path:
        """Path to SQLite database."""
        return self.data_dir / "procrastinot.db"

    @property
    def config_file(self) -> Path:
        """Path to YAML config file."""
        return self.config_dir / "config.yaml"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        os.chmod(self.data_dir, 0o700)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """Load configuration from YAML file, environment variables, and defaults.

        Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values
        """
        config_path = config_path or Path.home() / ".config/procrastinot/config.yaml"

        yaml_config: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        return cls(**yaml_config)

    def save(self, config_path: Path | None = None) -> None:
        """Save current configuration to YAML file."""
        config_path = config_path or self.config_file
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump(exclude_none=True)

        # Convert Path objects to strings for YAML
        for key in ["data_dir", "log_dir", "config_dir"]:
            if key in data:
                data[key] = str(data[key])

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        os.chmod(config_path, 0o600)


@lru_cache
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.load()
