"""Tests for the Schlüter thermostat coordinator."""

import asyncio
import logging
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest
from homeassistant.helpers.update_coordinator import UpdateFailed

from custom_components.schluter_thermostat import api
from custom_components.schluter_thermostat.apply import StagedValueStore
from custom_components.schluter_thermostat.const import (
    STAGED_NAME,
    STAGED_VACATION_BEGIN,
    STAGED_VACATION_TEMPERATURE,
)
from custom_components.schluter_thermostat.coordinator import SchluterCoordinator
from custom_components.schluter_thermostat.models import ThermostatRegistry
from custom_components.schluter_thermostat.scheduler import PollMode


def create_raw(
    thermostat_id: int = 1001,
    online: bool = True,
    **overrides: Any,
) -> dict[str, Any]:
    """Create a flattened raw thermostat as returned by the client."""
    raw: dict[str, Any] = {
        "Id": thermostat_id,
        "SerialNumber": f"SN{thermostat_id}",
        "ThermostatName": "Bathroom",
        "GroupId": 501,
        "GroupName": "Ground floor",
        "Online": online,
        "Heating": True,
        "RoomTemperature": 2150,
        "FloorTemperature": 2675,
        "RegulationMode": 3,
        "ManualModeSetpoint": 2100,
        "ComfortSetpoint": 2300,
        "ComfortEndTime": "2024-01-15T10:00:00Z",
        "BoostEndTime": "2024-01-15T12:30:00.500",
        "VacationEnabled": False,
        "VacationBeginDay": "2024-02-01",
        "VacationEndDay": "2024-02-10",
        "VacationTemperature": 1200,
        "TimeZone": 3600,
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    return Mock()


@pytest.fixture
def mock_client() -> Mock:
    """Create a mock API client."""
    client = Mock(spec=api.SchluterApiClient)
    client.async_get_thermostats = AsyncMock(return_value=[create_raw()])
    return client


@pytest.fixture
def staged() -> StagedValueStore:
    """Create an empty staged value store."""
    return StagedValueStore()


@pytest.fixture
def coordinator(
    mock_hass: Mock,
    mock_client: Mock,
    staged: StagedValueStore,
) -> SchluterCoordinator:
    """Create a coordinator with a 60s base interval."""
    return SchluterCoordinator(
        mock_hass,
        mock_client,
        ThermostatRegistry(),
        staged,
        config_entry=Mock(),
        poll_interval=60,
    )


class TestSchluterCoordinatorInit:
    """Tests for SchluterCoordinator initialization."""

    def test_initial_state(self, coordinator: SchluterCoordinator) -> None:
        """Test that the coordinator starts idle and disconnected."""
        assert coordinator.update_interval == timedelta(seconds=60)
        assert coordinator.connected is False
        assert coordinator.cycle_in_flight is False
        assert coordinator.data == {}


class TestSchluterCoordinatorUpdate:
    """Tests for SchluterCoordinator poll cycles."""

    @pytest.mark.asyncio
    async def test_update_builds_thermostat_states(self, coordinator: SchluterCoordinator) -> None:
        """Test that a poll converts raw thermostats to states."""
        data = await coordinator._async_update_data()  # Accessing private member for testing purposes

        state = data["1001"]
        assert state.serial_number == "SN1001"
        assert state.group_id == "501"
        assert state.group_name == "Ground floor"
        assert state.room_temperature == 21.5
        assert state.floor_temperature == 26.75
        assert state.manual_setpoint == 21.0
        assert state.regulation_mode == 3
        assert state.comfort_end_time == "2024-01-15T11:00:00"
        assert state.boost_end_time == "2024-01-15T12:30:00"
        assert state.timezone_offset == 3600
        assert coordinator.connected is True

    @pytest.mark.asyncio
    async def test_update_prefills_staged_values(
        self,
        coordinator: SchluterCoordinator,
        staged: StagedValueStore,
    ) -> None:
        """Test that empty staged values are filled from the first read."""
        staged.set("1001", STAGED_VACATION_BEGIN, "2030-01-01")

        await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert staged.get("1001", STAGED_NAME) == "Bathroom"
        assert staged.get("1001", STAGED_VACATION_BEGIN) == "2030-01-01"
        assert staged.get("1001", STAGED_VACATION_TEMPERATURE) == 12.0

    @pytest.mark.asyncio
    async def test_update_tolerates_unrepresentable_end_times(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that bad time fields on one thermostat do not fail the cycle."""
        mock_client.async_get_thermostats.return_value = [
            create_raw(1001, TimeZone=10**20),
            create_raw(1002, ComfortEndTime="9999-12-31T23:30:00Z"),
        ]

        data = await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert data["1001"].comfort_end_time == "2024-01-15T10:00:00"
        assert data["1002"].comfort_end_time == ""
        assert coordinator.connected is True
        assert coordinator.poll_state.mode is PollMode.NORMAL

    @pytest.mark.asyncio
    async def test_update_uses_serial_when_id_missing(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that the serial number identifies thermostats without an id."""
        mock_client.async_get_thermostats.return_value = [create_raw(Id=None)]

        data = await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert list(data) == ["SN1001"]

    @pytest.mark.asyncio
    async def test_update_keeps_cached_serial(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that a read omitting the serial keeps the cached one."""
        await coordinator._async_update_data()  # Accessing private member for testing purposes
        raw = create_raw()
        del raw["SerialNumber"]
        mock_client.async_get_thermostats.return_value = [raw]

        data = await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert data["1001"].serial_number == "SN1001"
        assert coordinator.registry.resolve_serial("1001") == "SN1001"

    @pytest.mark.asyncio
    async def test_tick_is_dropped_while_cycle_running(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that a tick during a running cycle does not start another."""
        release = asyncio.Event()

        async def slow_read() -> list[dict[str, Any]]:
            await release.wait()
            return [create_raw()]

        mock_client.async_get_thermostats.side_effect = slow_read
        first = asyncio.create_task(coordinator._async_update_data())  # Accessing private member for testing purposes
        await asyncio.sleep(0)
        assert coordinator.cycle_in_flight is True

        dropped = await coordinator._async_update_data()  # Accessing private member for testing purposes
        assert dropped == {}

        release.set()
        data = await first

        assert "1001" in data
        mock_client.async_get_thermostats.assert_awaited_once()
        assert coordinator.cycle_in_flight is False

    @pytest.mark.asyncio
    async def test_communication_failure_backs_off(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that a failed poll raises UpdateFailed and doubles the interval."""
        mock_client.async_get_thermostats.side_effect = api.SchluterCommunicationError("timeout")

        with pytest.raises(UpdateFailed):
            await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert coordinator.poll_state.failures == 1
        assert coordinator.poll_state.mode is PollMode.BACKOFF
        assert coordinator.update_interval == timedelta(seconds=120)
        assert coordinator.cycle_in_flight is False

    @pytest.mark.asyncio
    async def test_unreachable_login_counts_as_failure(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that an unreachable login endpoint backs off."""
        mock_client.async_get_thermostats.side_effect = api.SchluterAuthError(
            "down", unreachable=True
        )

        with pytest.raises(UpdateFailed):
            await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert coordinator.poll_state.failures == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            api.SchluterAuthError("rejected"),
            api.SchluterAuthExpiredError("HTTP 401"),
            api.SchluterBusinessError("rejected", 5),
        ],
    )
    async def test_other_errors_do_not_back_off(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
        error: Exception,
    ) -> None:
        """Test that rejected requests fail the cycle without backing off."""
        mock_client.async_get_thermostats.side_effect = error

        with pytest.raises(UpdateFailed):
            await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert coordinator.poll_state.failures == 0
        assert coordinator.poll_state.mode is PollMode.NORMAL
        assert coordinator.update_interval == timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_all_offline_degrades_interval(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that a cycle with no thermostat online backs off."""
        mock_client.async_get_thermostats.return_value = [create_raw(online=False)]

        await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert coordinator.poll_state.mode is PollMode.BACKOFF
        assert coordinator.update_interval == timedelta(seconds=120)
        assert coordinator.connected is True

    @pytest.mark.asyncio
    async def test_success_resets_interval(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that one good cycle returns to the base interval."""
        mock_client.async_get_thermostats.side_effect = api.SchluterCommunicationError("timeout")
        for _ in range(3):
            with pytest.raises(UpdateFailed):
                await coordinator._async_update_data()  # Accessing private member for testing purposes
        assert coordinator.update_interval == timedelta(seconds=480)

        mock_client.async_get_thermostats.side_effect = None
        mock_client.async_get_thermostats.return_value = [create_raw()]
        await coordinator._async_update_data()  # Accessing private member for testing purposes

        assert coordinator.poll_state.mode is PollMode.NORMAL
        assert coordinator.update_interval == timedelta(seconds=60)

    @pytest.mark.asyncio
    async def test_connectivity_cleared_after_threshold(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that the connection flag drops after three consecutive failures."""
        await coordinator._async_update_data()  # Accessing private member for testing purposes
        assert coordinator.connected is True

        mock_client.async_get_thermostats.side_effect = api.SchluterCommunicationError("timeout")
        for expected in (True, True, False):
            with pytest.raises(UpdateFailed):
                await coordinator._async_update_data()  # Accessing private member for testing purposes
            assert coordinator.connected is expected

        assert any("Lost connection" in r.getMessage() for r in caplog.records)

        mock_client.async_get_thermostats.side_effect = None
        with caplog.at_level(logging.INFO):
            await coordinator._async_update_data()  # Accessing private member for testing purposes
        assert coordinator.connected is True


class TestSchluterCoordinatorMirror:
    """Tests for SchluterCoordinator.async_mirror_value."""

    @pytest.mark.asyncio
    async def test_mirror_value_updates_state(self, coordinator: SchluterCoordinator) -> None:
        """Test that a sent value is shown before the next poll."""
        coordinator.data = await coordinator._async_update_data()  # Accessing private member for testing purposes
        previous = coordinator.data["1001"]

        with patch.object(coordinator, "async_update_listeners") as mock_update:
            coordinator.async_mirror_value("1001", "manual_setpoint", 23.5)

        assert coordinator.data["1001"].manual_setpoint == 23.5
        assert previous.manual_setpoint == 21.0
        mock_update.assert_called_once()

    def test_mirror_value_ignores_unknown_thermostat(self, coordinator: SchluterCoordinator) -> None:
        """Test that mirroring for an unknown thermostat is a no-op."""
        with patch.object(coordinator, "async_update_listeners") as mock_update:
            coordinator.async_mirror_value("missing", "manual_setpoint", 23.5)

        assert coordinator.data == {}
        mock_update.assert_not_called()


class TestSchluterCoordinatorShutdown:
    """Tests for SchluterCoordinator.async_shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_without_running_cycle(self, coordinator: SchluterCoordinator) -> None:
        """Test that shutdown returns immediately when idle."""
        await coordinator.async_shutdown()
        assert coordinator.cycle_in_flight is False

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_running_cycle(
        self,
        coordinator: SchluterCoordinator,
        mock_client: Mock,
    ) -> None:
        """Test that shutdown lets a running cycle finish."""
        release = asyncio.Event()

        async def slow_read() -> list[dict[str, Any]]:
            await release.wait()
            return [create_raw()]

        mock_client.async_get_thermostats.side_effect = slow_read
        cycle = asyncio.create_task(coordinator._async_update_data())  # Accessing private member for testing purposes
        await asyncio.sleep(0)

        shutdown = asyncio.create_task(coordinator.async_shutdown())
        await asyncio.sleep(0)
        release.set()
        await shutdown
        await cycle

        assert coordinator.cycle_in_flight is False

    @pytest.mark.asyncio
    async def test_shutdown_grace_period_is_bounded(
        self,
        coordinator: SchluterCoordinator,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that shutdown gives up on a hung cycle after the grace period."""
        coordinator._cycle_done.clear()  # Accessing private member for testing purposes

        with patch(
            "custom_components.schluter_thermostat.coordinator.SHUTDOWN_GRACE_PERIOD",
            0.01,
        ):
            await coordinator.async_shutdown()

        assert any("shutting down anyway" in r.getMessage() for r in caplog.records)
