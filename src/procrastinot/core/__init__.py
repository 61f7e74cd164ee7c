"""Core application components."""

from procrastinot.core.config import Config, get_config

__all__ = ["Config", "get_config"]
