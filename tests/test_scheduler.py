"""Tests for the adaptive poll schedule."""

from datetime import UTC, datetime, timedelta, timezone

from custom_components.schluter_thermostat.scheduler import (
    PollMode,
    PollState,
    next_fixed_slot,
)

LOCAL = timezone(timedelta(hours=1))


class TestNextFixedSlot:
    """Tests for next_fixed_slot function."""

    def test_next_slot_is_noon_before_midday(self) -> None:
        """Test that a morning time resolves to noon the same day."""
        now = datetime(2024, 1, 15, 11, 59, 30, tzinfo=LOCAL)
        assert next_fixed_slot(now) == datetime(2024, 1, 15, 12, 0, tzinfo=LOCAL)

    def test_next_slot_is_strictly_after_now(self) -> None:
        """Test that exactly noon resolves to the following midnight."""
        now = datetime(2024, 1, 15, 12, 0, tzinfo=LOCAL)
        assert next_fixed_slot(now) == datetime(2024, 1, 16, 0, 0, tzinfo=LOCAL)

    def test_next_slot_rolls_over_to_next_day(self) -> None:
        """Test that a late evening time resolves to midnight."""
        now = datetime(2024, 12, 31, 23, 30, tzinfo=LOCAL)
        assert next_fixed_slot(now) == datetime(2025, 1, 1, 0, 0, tzinfo=LOCAL)

    def test_next_slot_with_custom_hours(self) -> None:
        """Test that custom hours are honoured in ascending order."""
        now = datetime(2024, 1, 15, 7, 0, tzinfo=LOCAL)
        assert next_fixed_slot(now, (18, 6)) == datetime(2024, 1, 15, 18, 0, tzinfo=LOCAL)


class TestPollState:
    """Tests for PollState class."""

    def test_initial_state(self) -> None:
        """Test that a new schedule starts in normal mode at the base interval."""
        state = PollState(60)

        assert state.mode is PollMode.NORMAL
        assert state.interval == 60
        assert state.failures == 0

    def test_base_interval_has_minimum(self) -> None:
        """Test that the base interval is raised to the minimum."""
        state = PollState(5)

        assert state.base_interval == 10
        assert state.interval == 10

    def test_failures_double_interval_up_to_fixed_mode(self) -> None:
        """Test the interval sequence of consecutive failures."""
        state = PollState(60)
        intervals = []
        modes = []

        for _ in range(8):
            state.record_failure()
            intervals.append(state.interval)
            modes.append(state.mode)

        assert intervals == [120, 240, 480, 960, 1920, 3600, 3600, 3600]
        assert modes[:6] == [PollMode.BACKOFF] * 6
        assert modes[6:] == [PollMode.FIXED, PollMode.FIXED]
        assert state.failures == 8

    def test_success_with_online_thermostat_resets(self) -> None:
        """Test that one good cycle returns to normal from fixed mode."""
        state = PollState(60)
        for _ in range(10):
            state.record_failure()
        assert state.mode is PollMode.FIXED

        state.record_success(any_online=True)

        assert state.mode is PollMode.NORMAL
        assert state.interval == 60
        assert state.failures == 0

    def test_success_without_online_thermostat_degrades(self) -> None:
        """Test that a cycle with every thermostat offline backs off."""
        state = PollState(60)
        state.record_failure()

        state.record_success(any_online=False)

        assert state.mode is PollMode.BACKOFF
        assert state.interval == 240
        assert state.failures == 0

    def test_reset(self) -> None:
        """Test that reset restores the base interval."""
        state = PollState(30)
        state.record_failure()
        state.record_failure()

        state.reset()

        assert state.interval == 30
        assert state.mode is PollMode.NORMAL

    def test_next_delay_uses_interval(self) -> None:
        """Test that normal and backoff modes wait for the interval."""
        state = PollState(60)
        now = datetime(2024, 1, 15, 10, 0, tzinfo=LOCAL)

        assert state.next_delay(now) == timedelta(seconds=60)
        state.record_failure()
        assert state.next_delay(now) == timedelta(seconds=120)

    def test_next_delay_in_fixed_mode_targets_slot(self) -> None:
        """Test that fixed mode waits until the next midnight or noon."""
        state = PollState(60, max_interval=120)
        state.record_failure()
        state.record_failure()
        assert state.mode is PollMode.FIXED

        now = datetime(2024, 1, 15, 10, 30, tzinfo=LOCAL)
        assert state.next_delay(now) == timedelta(hours=1, minutes=30)

    def test_next_delay_in_fixed_mode_across_zones(self) -> None:
        """Test that the delay is computed between absolute instants."""
        state = PollState(60, max_interval=60)
        state.record_failure()
        assert state.mode is PollMode.FIXED

        now = datetime(2024, 1, 15, 23, 0, tzinfo=UTC)
        assert state.next_delay(now) == timedelta(hours=1)
