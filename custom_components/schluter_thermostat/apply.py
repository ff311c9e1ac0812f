"""Apply commands for Schlüter thermostats.

User input is staged per thermostat in a :class:`StagedValueStore`. When an
apply control is switched on, :class:`ApplyRouter` reads the staged values
for that mode, sanitises them, sends exactly one UpdateThermostat call and
finally resets the control.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from homeassistant.util import dt as dt_util

from . import api
from .const import (
    DEFAULT_BOOST_DURATION,
    DEFAULT_COMFORT_DURATION,
    DEFAULT_COMFORT_SETPOINT,
    DEFAULT_MANUAL_SETPOINT,
    DEFAULT_VACATION_TEMPERATURE,
    END_TIME_CORRECTION_SECONDS,
    FIELD_BOOST_END_TIME,
    FIELD_COMFORT_END_TIME,
    FIELD_COMFORT_SETPOINT,
    FIELD_MANUAL_SETPOINT,
    FIELD_REGULATION_MODE,
    FIELD_THERMOSTAT_NAME,
    FIELD_VACATION_BEGIN,
    FIELD_VACATION_ENABLED,
    FIELD_VACATION_END,
    FIELD_VACATION_TEMPERATURE,
    MAX_DURATION,
    MAX_SETPOINT,
    MAX_VACATION_TEMPERATURE,
    MIN_DURATION,
    MIN_SETPOINT,
    MIN_VACATION_TEMPERATURE,
    STAGED_BOOST_DURATION,
    STAGED_COMFORT_DURATION,
    STAGED_COMFORT_SETPOINT,
    STAGED_MANUAL_SETPOINT,
    STAGED_NAME,
    STAGED_VACATION_BEGIN,
    STAGED_VACATION_ENABLED,
    STAGED_VACATION_END,
    STAGED_VACATION_TEMPERATURE,
)
from .models import ApplyMode, RegulationMode, ThermostatRegistry
from .timecodec import encode_future_local

_LOGGER = logging.getLogger(__name__)

_DAY = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MirrorCallback = Callable[[str, str, Any], None]


class StagedValueStore:
    """Holds user-entered control values until an apply control fires."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._values: dict[tuple[str, str], Any] = {}

    def get(self, thermostat_id: str, key: str, default: Any = None) -> Any:
        """Return a staged value, or ``default`` when nothing is staged."""
        return self._values.get((thermostat_id, key), default)

    def set(self, thermostat_id: str, key: str, value: Any) -> None:
        """Stage a value."""
        self._values[(thermostat_id, key)] = value

    def prefill(self, thermostat_id: str, key: str, value: Any) -> None:
        """Stage a value only if the slot is empty, keeping user edits."""
        current = self._values.get((thermostat_id, key))
        if current is None or current == "":
            self._values[(thermostat_id, key)] = value


@dataclass(frozen=True)
class ApplyCommand:
    """One triggered command, built fresh for each apply.

    Carries the mode and the cached thermostat identity. Staged values are
    read from the store by the mode handler when the command runs, so the
    payload reflects what the user entered at trigger time.
    """

    mode: ApplyMode
    thermostat_id: str
    serial_number: str
    name: str
    timezone_offset: int


def _clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def _coerce_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value in (1, "1", "true", "on"):
        return True
    if value in (0, "0", "false", "off"):
        return False
    return default


class ApplyRouter:
    """Turns an apply trigger into a single thermostat update."""

    def __init__(
        self,
        client: api.SchluterApiClient,
        registry: ThermostatRegistry,
        staged: StagedValueStore,
        mirror: MirrorCallback,
        now: Callable[[], datetime] = dt_util.utcnow,
        end_time_correction: int = END_TIME_CORRECTION_SECONDS,
    ) -> None:
        """Initialize the router.

        Args:
            client: Cloud client used for the update call.
            registry: Registry with serial numbers, names and offsets.
            staged: Store with user-entered values.
            mirror: Callback showing sent values before the next poll.
            now: Clock returning the current UTC instant.
            end_time_correction: Extra seconds added to outgoing end times.

        """
        self._client = client
        self._registry = registry
        self._staged = staged
        self._mirror = mirror
        self._now = now
        self._end_time_correction = end_time_correction
        self._handlers: dict[ApplyMode, Callable[[ApplyCommand], Awaitable[None]]] = {
            ApplyMode.SCHEDULE: self._async_apply_schedule,
            ApplyMode.COMFORT: self._async_apply_comfort,
            ApplyMode.MANUAL: self._async_apply_manual,
            ApplyMode.BOOST: self._async_apply_boost,
            ApplyMode.ECO: self._async_apply_eco,
            ApplyMode.VACATION: self._async_apply_vacation,
            ApplyMode.NAME: self._async_apply_name,
        }

    async def async_apply(
        self,
        mode: str,
        thermostat_id: str,
        reset_control: Callable[[], None],
    ) -> None:
        """Execute one apply command and always reset its control.

        Args:
            mode: Apply mode tag; unknown tags are ignored.
            thermostat_id: Target thermostat.
            reset_control: Called when the command is finished, whatever
                the outcome.

        """
        try:
            await self._async_dispatch(mode, thermostat_id)
        except api.SchluterApiClientError as err:
            _LOGGER.error("Apply %s failed for thermostat %s: %s", mode, thermostat_id, err)
        except Exception:
            _LOGGER.exception("Unexpected error applying %s to thermostat %s", mode, thermostat_id)
        finally:
            reset_control()

    async def _async_dispatch(self, mode: str, thermostat_id: str) -> None:
        try:
            apply_mode = ApplyMode(mode)
        except ValueError:
            _LOGGER.debug("Apply ignored: unknown mode %s (%s)", mode, thermostat_id)
            return

        record = self._registry.get(thermostat_id)
        if record is None or not record.serial_number:
            _LOGGER.warning("Apply %s ignored: thermostat %s is unknown", mode, thermostat_id)
            return
        if not record.name and apply_mode is not ApplyMode.NAME:
            _LOGGER.warning(
                "Apply %s ignored: no display name known for thermostat %s yet",
                mode,
                thermostat_id,
            )
            return

        command = ApplyCommand(
            mode=apply_mode,
            thermostat_id=thermostat_id,
            serial_number=record.serial_number,
            name=record.name,
            timezone_offset=self._registry.timezone_offset(thermostat_id),
        )
        await self._handlers[apply_mode](command)

    def _read_number(self, thermostat_id: str, key: str, default: float) -> float:
        value = self._staged.get(thermostat_id, key)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return default
        return number if math.isfinite(number) else default

    def _read_duration(self, thermostat_id: str, key: str, default: int) -> int:
        minutes = int(self._read_number(thermostat_id, key, default))
        return int(_clamp(minutes, MIN_DURATION, MAX_DURATION))

    def _read_setpoint(self, thermostat_id: str, key: str, default: float) -> float:
        return _clamp(self._read_number(thermostat_id, key, default), MIN_SETPOINT, MAX_SETPOINT)

    def _read_text(self, thermostat_id: str, key: str, default: str = "") -> str:
        value = self._staged.get(thermostat_id, key)
        return default if value is None else str(value).strip()

    def _end_time(self, command: ApplyCommand, minutes: int) -> str:
        return encode_future_local(
            self._now(),
            minutes,
            command.timezone_offset,
            correction_seconds=self._end_time_correction,
        )

    async def _async_send(self, command: ApplyCommand, fields: dict[str, Any]) -> None:
        await self._client.async_update_thermostat(command.serial_number, fields)
        _LOGGER.info(
            "Applied %s to thermostat %s (%s)",
            command.mode,
            command.name,
            command.thermostat_id,
        )

    async def _async_apply_schedule(self, command: ApplyCommand) -> None:
        await self._async_send(
            command,
            {
                FIELD_THERMOSTAT_NAME: command.name,
                FIELD_REGULATION_MODE: int(RegulationMode.SCHEDULE),
            },
        )

    async def _async_apply_comfort(self, command: ApplyCommand) -> None:
        thermostat_id = command.thermostat_id
        setpoint = self._read_setpoint(
            thermostat_id, STAGED_COMFORT_SETPOINT, DEFAULT_COMFORT_SETPOINT
        )
        duration = self._read_duration(
            thermostat_id, STAGED_COMFORT_DURATION, DEFAULT_COMFORT_DURATION
        )
        end_time = self._end_time(command, duration)

        await self._async_send(
            command,
            {
                FIELD_THERMOSTAT_NAME: command.name,
                FIELD_REGULATION_MODE: int(RegulationMode.COMFORT),
                FIELD_COMFORT_SETPOINT: api.celsius_to_hundredths(setpoint),
                FIELD_COMFORT_END_TIME: end_time,
            },
        )
        self._mirror(thermostat_id, "comfort_setpoint", setpoint)
        self._mirror(thermostat_id, "comfort_end_time", end_time)

    async def _async_apply_manual(self, command: ApplyCommand) -> None:
        setpoint = self._read_setpoint(
            command.thermostat_id, STAGED_MANUAL_SETPOINT, DEFAULT_MANUAL_SETPOINT
        )
        await self._async_send(
            command,
            {
                FIELD_THERMOSTAT_NAME: command.name,
                FIELD_REGULATION_MODE: int(RegulationMode.MANUAL),
                FIELD_MANUAL_SETPOINT: api.celsius_to_hundredths(setpoint),
            },
        )

    async def _async_apply_boost(self, command: ApplyCommand) -> None:
        duration = self._read_duration(
            command.thermostat_id, STAGED_BOOST_DURATION, DEFAULT_BOOST_DURATION
        )
        end_time = self._end_time(command, duration)

        await self._async_send(
            command,
            {
                FIELD_THERMOSTAT_NAME: command.name,
                FIELD_REGULATION_MODE: int(RegulationMode.BOOST),
                FIELD_BOOST_END_TIME: end_time,
            },
        )
        self._mirror(command.thermostat_id, "boost_end_time", end_time)

    async def _async_apply_eco(self, command: ApplyCommand) -> None:
        await self._async_send(
            command,
            {
                FIELD_THERMOSTAT_NAME: command.name,
                FIELD_REGULATION_MODE: int(RegulationMode.ECO),
            },
        )

    async def _async_apply_name(self, command: ApplyCommand) -> None:
        thermostat_id = command.thermostat_id
        new_name = self._read_text(thermostat_id, STAGED_NAME, command.name)
        if not new_name:
            _LOGGER.warning("Apply ignored: empty thermostat name (%s)", thermostat_id)
            return

        await self._async_send(command, {FIELD_THERMOSTAT_NAME: new_name})
        self._registry.set_name(thermostat_id, new_name)
        self._staged.set(thermostat_id, STAGED_NAME, new_name)
        self._mirror(thermostat_id, "name", new_name)

    async def _async_apply_vacation(self, command: ApplyCommand) -> None:
        thermostat_id = command.thermostat_id
        enabled = _coerce_bool(self._staged.get(thermostat_id, STAGED_VACATION_ENABLED))
        begin = self._read_text(thermostat_id, STAGED_VACATION_BEGIN)
        end = self._read_text(thermostat_id, STAGED_VACATION_END)
        temperature = _clamp(
            self._read_number(
                thermostat_id, STAGED_VACATION_TEMPERATURE, DEFAULT_VACATION_TEMPERATURE
            ),
            MIN_VACATION_TEMPERATURE,
            MAX_VACATION_TEMPERATURE,
        )

        if begin and not _DAY.match(begin):
            _LOGGER.warning("Vacation begin is not YYYY-MM-DD: %r", begin)
        if end and not _DAY.match(end):
            _LOGGER.warning("Vacation end is not YYYY-MM-DD: %r", end)

        fields: dict[str, Any] = {
            FIELD_THERMOSTAT_NAME: command.name,
            FIELD_VACATION_ENABLED: enabled,
        }
        if begin:
            fields[FIELD_VACATION_BEGIN] = begin
        if end:
            fields[FIELD_VACATION_END] = end
        fields[FIELD_VACATION_TEMPERATURE] = api.celsius_to_hundredths(temperature)

        await self._async_send(command, fields)
        self._mirror(thermostat_id, "vacation_enabled", enabled)
        if begin:
            self._mirror(thermostat_id, "vacation_begin", begin)
        if end:
            self._mirror(thermostat_id, "vacation_end", end)
        self._mirror(thermostat_id, "vacation_temperature", temperature)
