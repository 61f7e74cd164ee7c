"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError as PydanticValidationError

from procrastinot.core.config import Config, PomodoroConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("DATA_DIR", "LOG_DIR", "CONFIG_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(f"PROCRASTINOT_{name}", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_defaults(tmp_path):
    config = Config.load(tmp_path / "missing.yaml")

    assert config.pomodoro.focus_minutes == 25
    assert config.pomodoro.short_break_minutes == 5
    assert config.pomodoro.long_break_minutes == 15
    assert config.pomodoro.pomodoros_until_long_break == 4
    assert config.delay_policy.cooldown_minutes == 60
    assert config.delay_policy.max_delays == 5
    assert config.notifications.backend == "console"


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "log_level": "DEBUG",
                "pomodoro": {"focus_minutes": 50, "pomodoros_until_long_break": 3},
                "notifications": {"backend": "none"},
            }
        )
    )

    config = Config.load(path)

    assert config.log_level == "DEBUG"
    assert config.pomodoro.focus_minutes == 50
    assert config.pomodoro.short_break_minutes == 5
    assert config.pomodoro.pomodoros_until_long_break == 3
    assert config.notifications.backend == "none"


def test_nested_environment_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("PROCRASTINOT_POMODORO__FOCUS_MINUTES", "45")
    monkeypatch.setenv("PROCRASTINOT_DELAY_POLICY__COOLDOWN_MINUTES", "30")

    config = Config.load(tmp_path / "missing.yaml")

    assert config.pomodoro.focus_minutes == 45
    assert config.delay_policy.cooldown.total_seconds() == 1800


def test_save_and_reload(tmp_path):
    config = Config(data_dir=tmp_path / "data", pomodoro=PomodoroConfig(focus_minutes=30))
    path = tmp_path / "saved.yaml"

    config.save(path)
    reloaded = Config.load(path)

    assert reloaded.data_dir == tmp_path / "data"
    assert reloaded.pomodoro.focus_minutes == 30
    assert oct(path.stat().st_mode & 0o777) == "0o600"


def test_derived_paths(tmp_path):
    config = Config(data_dir=tmp_path / "data", config_dir=tmp_path / "conf")

    assert config.db_path == tmp_path / "data" / "procrastinot.db"
    assert config.config_file == tmp_path / "conf" / "config.yaml"


def test_mode_durations():
    pomodoro = PomodoroConfig(focus_minutes=1, short_break_minutes=2, long_break_minutes=3)

    assert pomodoro.duration_seconds("focus") == 60
    assert pomodoro.duration_seconds("short_break") == 120
    assert pomodoro.duration_seconds("long_break") == 180


@pytest.mark.parametrize(
    "overrides",
    [
        {"pomodoro": {"focus_minutes": 0}},
        {"delay_policy": {"max_delays": 0}},
        {"notifications": {"backend": "pager"}},
        {"log_level": "LOUD"},
    ],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(PydanticValidationError):
        Config(**overrides)


def test_ensure_directories(tmp_path):
    config = Config(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", config_dir=tmp_path / "conf")

    config.ensure_directories()

    assert (tmp_path / "logs").is_dir()
    assert (tmp_path / "conf").is_dir()
    assert oct((tmp_path / "data").stat().st_mode & 0o777) == "0o700"
