"""Coordinator for Schlüter thermostat integration."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from . import api
from .const import (
    DEFAULT_FAILURE_THRESHOLD,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
    SHUTDOWN_GRACE_PERIOD,
    STAGED_NAME,
    STAGED_VACATION_BEGIN,
    STAGED_VACATION_ENABLED,
    STAGED_VACATION_END,
    STAGED_VACATION_TEMPERATURE,
)
from .models import ThermostatRegistry, ThermostatState
from .scheduler import PollMode, PollState
from .timecodec import decode_to_local

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .apply import StagedValueStore

_LOGGER = logging.getLogger(__name__)


def _as_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SchluterCoordinator(DataUpdateCoordinator[dict[str, ThermostatState]]):
    """Coordinator that polls all thermostats with an adaptive interval."""

    def __init__(
        self,
        hass: HomeAssistant,
        client: api.SchluterApiClient,
        registry: ThermostatRegistry,
        staged: StagedValueStore | None = None,
        config_entry: ConfigEntry | None = None,
        poll_interval: int = DEFAULT_POLL_INTERVAL,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
    ) -> None:
        """Initialize the coordinator."""
        self.poll_state = PollState(base_interval=poll_interval)
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=self.poll_state.interval),
        )
        self.client = client
        self.registry = registry
        self.staged = staged
        self.failure_threshold = max(1, failure_threshold)
        self.connected = False
        self.data = {}
        self._cycle_done = asyncio.Event()
        self._cycle_done.set()

    @property
    def cycle_in_flight(self) -> bool:
        """Return True while a poll cycle is running."""
        return not self._cycle_done.is_set()

    async def _async_update_data(self) -> dict[str, ThermostatState]:
        if self.cycle_in_flight:
            _LOGGER.debug("Previous poll cycle still running, dropping tick")
            return self.data

        self._cycle_done.clear()
        try:
            return await self._async_poll_cycle()
        finally:
            self.update_interval = self.poll_state.next_delay(dt_util.now())
            self._cycle_done.set()

    async def _async_poll_cycle(self) -> dict[str, ThermostatState]:
        try:
            thermostats = await self.client.async_get_thermostats()
        except api.SchluterCommunicationError as err:
            self._record_communication_failure(err)
            raise UpdateFailed(f"Connection error while polling thermostats: {err}") from err
        except api.SchluterAuthError as err:
            if err.unreachable:
                self._record_communication_failure(err)
            raise UpdateFailed(f"Authentication error while polling thermostats: {err}") from err
        except api.SchluterAuthExpiredError as err:
            raise UpdateFailed(f"Session rejected after re-login: {err}") from err
        except api.SchluterBusinessError as err:
            raise UpdateFailed(f"API error while polling thermostats: {err}") from err

        states: dict[str, ThermostatState] = {}
        for raw in thermostats:
            state = self._update_thermostat(raw)
            if state is not None:
                states[state.thermostat_id] = state

        any_online = any(state.online for state in states.values())
        self._record_success(any_online)
        _LOGGER.debug("Polled %d thermostats (%s online)", len(states), any_online)
        return states

    def _record_success(self, any_online: bool) -> None:
        previous_mode = self.poll_state.mode
        self.poll_state.record_success(any_online)
        if not self.connected:
            _LOGGER.info("Connection to Schlüter cloud established")
        self.connected = True

        if any_online:
            if previous_mode is not PollMode.NORMAL:
                _LOGGER.info(
                    "Thermostat online again, polling every %ss",
                    self.poll_state.interval,
                )
            return
        self._log_degraded("No thermostat online")

    def _record_communication_failure(self, err: Exception) -> None:
        self.poll_state.record_failure()
        if self.connected and self.poll_state.failures >= self.failure_threshold:
            _LOGGER.warning(
                "Lost connection to Schlüter cloud after %d failed polls",
                self.poll_state.failures,
            )
            self.connected = False
        self._log_degraded(f"Poll failed ({err})")

    def _log_degraded(self, reason: str) -> None:
        if self.poll_state.mode is PollMode.FIXED:
            _LOGGER.warning("%s; polling at 00:00 and 12:00 only", reason)
        else:
            _LOGGER.warning("%s; next poll in %ss", reason, self.poll_state.interval)

    def _update_thermostat(self, raw: dict[str, Any]) -> ThermostatState | None:
        thermostat_id = _as_str(raw.get("Id")) or _as_str(raw.get("SerialNumber"))
        if thermostat_id is None:
            _LOGGER.debug("Skipping thermostat without id: %s", raw)
            return None

        record = self.registry.upsert(
            thermostat_id,
            online=bool(raw.get("Online")),
            group_id=_as_str(raw.get("GroupId")),
            serial_number=_as_str(raw.get("SerialNumber")),
            name=_as_str(raw.get("ThermostatName")),
            timezone_offset=_as_int(raw.get("TimeZone")),
        )
        offset = self.registry.timezone_offset(thermostat_id)

        state = ThermostatState(
            thermostat_id=thermostat_id,
            group_id=record.group_id,
            group_name=_as_str(raw.get("GroupName")),
            serial_number=record.serial_number,
            name=record.name,
            online=record.online,
            heating=bool(raw.get("Heating")),
            room_temperature=api.hundredths_to_celsius(raw.get("RoomTemperature")),
            floor_temperature=api.hundredths_to_celsius(raw.get("FloorTemperature")),
            manual_setpoint=api.hundredths_to_celsius(raw.get("ManualModeSetpoint")),
            comfort_setpoint=api.hundredths_to_celsius(raw.get("ComfortSetpoint")),
            regulation_mode=_as_int(raw.get("RegulationMode")),
            comfort_end_time=decode_to_local(raw.get("ComfortEndTime"), offset),
            boost_end_time=decode_to_local(raw.get("BoostEndTime"), offset),
            vacation_enabled=bool(raw.get("VacationEnabled")),
            vacation_begin=_as_str(raw.get("VacationBeginDay")) or "",
            vacation_end=_as_str(raw.get("VacationEndDay")) or "",
            vacation_temperature=api.hundredths_to_celsius(raw.get("VacationTemperature")),
            timezone_offset=offset,
        )
        self._prefill_staged(state)
        return state

    def _prefill_staged(self, state: ThermostatState) -> None:
        if self.staged is None:
            return
        thermostat_id = state.thermostat_id
        self.staged.prefill(thermostat_id, STAGED_NAME, state.name)
        self.staged.prefill(thermostat_id, STAGED_VACATION_ENABLED, state.vacation_enabled)
        self.staged.prefill(thermostat_id, STAGED_VACATION_BEGIN, state.vacation_begin)
        self.staged.prefill(thermostat_id, STAGED_VACATION_END, state.vacation_end)
        if state.vacation_temperature is not None:
            self.staged.prefill(
                thermostat_id, STAGED_VACATION_TEMPERATURE, state.vacation_temperature
            )

    def async_mirror_value(self, thermostat_id: str, field_name: str, value: Any) -> None:
        """Show a value that was just sent, ahead of the next poll.

        Args:
            thermostat_id: Thermostat the value belongs to.
            field_name: ThermostatState attribute to overwrite.
            value: Value that was sent.

        """
        state = (self.data or {}).get(thermostat_id)
        if state is None:
            return
        self.data = {
            **self.data,
            thermostat_id: dataclasses.replace(state, **{field_name: value}),
        }
        self.async_update_listeners()

    async def async_shutdown(self) -> None:
        """Stop polling and give a running cycle a short grace period."""
        await super().async_shutdown()
        if not self.cycle_in_flight:
            return
        try:
            async with asyncio.timeout(SHUTDOWN_GRACE_PERIOD):
                await self._cycle_done.wait()
        except TimeoutError:
            _LOGGER.warning(
                "Poll cycle still running after %ss, shutting down anyway",
                SHUTDOWN_GRACE_PERIOD,
            )
