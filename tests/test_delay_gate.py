"""Tests for the postponement rules."""

from datetime import timedelta

import pytest

from procrastinot.focus.delay_gate import DelayPolicy, DenialReason, evaluate
from procrastinot.focus.goals import Goal, GoalStatus

from conftest import T0


@pytest.fixture
def goal():
    return Goal(id=1, text="Write report", estimated_minutes=25, created_at=T0)


class TestEstimateGate:
    def test_denied_immediately_after_creation(self, goal):
        decision = evaluate(goal, T0)

        assert decision.allowed is False
        assert decision.reason == DenialReason.ESTIMATE_NOT_ELAPSED
        assert decision.retry_after_minutes == 25

    def test_retry_rounds_up_to_next_minute(self, goal):
        decision = evaluate(goal, T0 + timedelta(minutes=10, seconds=1))

        assert decision.reason == DenialReason.ESTIMATE_NOT_ELAPSED
        assert decision.retry_after_minutes == 15

    def test_allowed_exactly_when_estimate_elapsed(self, goal):
        assert evaluate(goal, T0 + timedelta(minutes=25)).allowed is True


class TestCooldownGate:
    def test_denied_within_an_hour_of_last_delay(self, goal):
        goal.delay_count = 1
        goal.last_delayed_at = T0 + timedelta(minutes=30)

        decision = evaluate(goal, T0 + timedelta(minutes=30 + 59, seconds=30))

        assert decision.allowed is False
        assert decision.reason == DenialReason.COOLDOWN_ACTIVE
        assert decision.retry_after_minutes == 1

    def test_allowed_after_cooldown(self, goal):
        goal.delay_count = 1
        goal.last_delayed_at = T0 + timedelta(minutes=30)

        assert evaluate(goal, T0 + timedelta(minutes=90)).allowed is True

    def test_custom_cooldown(self, goal):
        goal.delay_count = 1
        goal.last_delayed_at = T0 + timedelta(minutes=30)
        policy = DelayPolicy(cooldown=timedelta(minutes=10))

        assert evaluate(goal, T0 + timedelta(minutes=40), policy).allowed is True


class TestCap:
    def test_fifth_delay_is_the_last(self, goal):
        goal.delay_count = 5
        goal.last_delayed_at = T0 + timedelta(hours=5)
        goal.final_timer_started_at = goal.last_delayed_at

        decision = evaluate(goal, T0 + timedelta(hours=10))

        assert decision.allowed is False
        assert decision.reason == DenialReason.MAX_DELAYS_REACHED
        assert decision.retry_after_minutes is None
        assert decision.message == "Maximum postponements reached"

    def test_timing_rules_reported_before_cap(self, goal):
        goal.delay_count = 5
        goal.last_delayed_at = T0 + timedelta(hours=5)

        decision = evaluate(goal, T0 + timedelta(hours=5, minutes=1))

        assert decision.reason == DenialReason.COOLDOWN_ACTIVE


def test_completed_goal_cannot_be_delayed(goal):
    goal.status = GoalStatus.COMPLETED

    decision = evaluate(goal, T0 + timedelta(hours=2))

    assert decision.allowed is False
    assert decision.reason == DenialReason.ALREADY_COMPLETED


def test_denial_message_includes_retry_time(goal):
    decision = evaluate(goal, T0)

    assert "25 min" in decision.message
    assert decision.message.startswith("Estimated time not yet elapsed")
