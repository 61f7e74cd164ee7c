"""Delivery of timer notifications to the user."""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget notification sink."""

    def notify(self, title: str, body: str) -> None: ...


class NullNotifier:
    """Drops notifications."""

    def notify(self, title: str, body: str) -> None:
        logger.debug(f"Notification suppressed: {title}")


class ConsoleNotifier:
    """Prints notifications to the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def notify(self, title: str, body: str) -> None:
        self.console.print(f"\n[bold magenta]🔔 {title}[/bold magenta] {body}")


class MacNotifier:
    """Native macOS notification via AppleScript."""

    def notify(self, title: str, body: str) -> None:
        script = f'display notification "{_escape(body)}" with title "{_escape(title)}"'
        try:
            subprocess.Popen(
                ["osascript", "-e", script],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.debug(f"Error sending notification: {e}")


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def create_notifier(backend: str, enabled: bool = True, console: Console | None = None) -> Notifier:
    """Build the notifier named in the configuration."""
    if not enabled or backend == "none":
        return NullNotifier()
    if backend == "macos":
        return MacNotifier()
    return ConsoleNotifier(console)
