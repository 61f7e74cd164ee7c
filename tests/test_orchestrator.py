"""Tests for wiring the components over one database."""

import pytest

from procrastinot.core.config import Config, DelayPolicyConfig, NotificationConfig, PomodoroConfig
from procrastinot.core.orchestrator import Orchestrator
from procrastinot.focus.delay_gate import DenialReason
from procrastinot.focus.notifier import NullNotifier
from procrastinot.storage.database import GOALS_KEY

from conftest import ManualTicker

pytestmark = pytest.mark.anyio


@pytest.fixture
def config(tmp_path):
    return Config(
        data_dir=tmp_path / "data",
        log_dir=tmp_path / "logs",
        config_dir=tmp_path / "conf",
        pomodoro=PomodoroConfig(focus_minutes=1),
        delay_policy=DelayPolicyConfig(cooldown_minutes=10, max_delays=2),
        notifications=NotificationConfig(backend="none"),
    )


async def test_state_survives_restart(config, clock, ticker):
    first = Orchestrator(config, clock=clock, ticker=ticker)
    await first.start()
    goal = await first.controller.create("Write report", 5)
    await first.binder.bind_and_start(goal.id)
    await ticker.run_out()
    await first.stop()

    second = Orchestrator(config, clock=clock, ticker=ticker)
    await second.start()
    try:
        reloaded = second.controller.get(goal.id)
        assert reloaded.pomodoro_sessions == 1
        assert second.engine.daily_stats.today_sessions == 1
        assert second.engine.daily_stats.total_focus_minutes == 1
    finally:
        await second.stop()


async def test_delay_policy_from_config(config, clock, ticker):
    orchestrator = Orchestrator(config, clock=clock, ticker=ticker)
    await orchestrator.start()
    try:
        goal = await orchestrator.controller.create("Write report", 1)
        clock.advance(minutes=2)
        await orchestrator.controller.delay(goal.id)
        clock.advance(minutes=11)
        await orchestrator.controller.delay(goal.id)

        assert goal.in_final_regime is True
        clock.advance(minutes=11)
        decision = await orchestrator.controller.delay(goal.id)
        assert decision.reason == DenialReason.MAX_DELAYS_REACHED
    finally:
        await orchestrator.stop()


async def test_statistics(config, clock, ticker):
    orchestrator = Orchestrator(config, clock=clock, ticker=ticker)
    await orchestrator.start()
    try:
        goal = await orchestrator.controller.create("Write report", 1)
        await orchestrator.controller.create("Other", 1)
        await orchestrator.controller.complete(goal.id)

        stats = orchestrator.statistics()
        assert stats.total_completed == 1
        assert stats.completion_rate == 50
        assert stats.current_streak == 1
    finally:
        await orchestrator.stop()


async def test_start_and_stop_are_idempotent(config, clock, ticker):
    orchestrator = Orchestrator(config, clock=clock, ticker=ticker)

    await orchestrator.start()
    await orchestrator.start()
    assert orchestrator.is_running is True

    await orchestrator.stop()
    await orchestrator.stop()
    assert orchestrator.is_running is False
    assert orchestrator.db.is_connected is False


def test_disabled_notifications_use_null_notifier(config):
    orchestrator = Orchestrator(config)

    assert isinstance(orchestrator.engine.notifier, NullNotifier)


async def test_writes_from_another_process_survive_focus_credit(config, clock, ticker):
    focusing = Orchestrator(config, clock=clock, ticker=ticker)
    other = Orchestrator(config, clock=clock, ticker=ManualTicker())
    await focusing.start()
    await other.start()
    try:
        bound = await focusing.controller.create("Bound", 5)
        await focusing.binder.bind_and_start(bound.id)

        await other.controller.create("Added elsewhere", 5)
        assert await other.controller.delete(bound.id) is True

        await ticker.run_out()

        stored = await focusing.db.get_json(GOALS_KEY)
        assert [g["text"] for g in stored] == ["Added elsewhere"]
        assert [g.text for g in focusing.store.all()] == ["Added elsewhere"]
        assert focusing.engine.daily_stats.today_sessions == 1
    finally:
        await other.stop()
        await focusing.stop()
