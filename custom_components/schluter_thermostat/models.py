"""Data models for Schlüter thermostat integration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Represents an authenticated cloud session.

    The vendor does not report an expiry, so a session is considered valid
    until a request is answered with 401/403.
    """

    token: str
    created_at: datetime


class RegulationMode(IntEnum):
    """Vendor regulation modes."""

    SCHEDULE = 1
    COMFORT = 2
    MANUAL = 3
    VACATION = 4
    FROST_PROTECTION = 6
    BOOST = 8
    ECO = 9


class ApplyMode(StrEnum):
    """Commands a user can trigger from an apply control."""

    SCHEDULE = "schedule"
    COMFORT = "comfort"
    MANUAL = "manual"
    BOOST = "boost"
    ECO = "eco"
    VACATION = "vacation"
    NAME = "name"


@dataclass(slots=True)
class ThermostatState:
    """Represents the values reported for one thermostat in a poll cycle."""

    thermostat_id: str
    group_id: str | None
    group_name: str | None
    serial_number: str | None
    name: str
    online: bool
    heating: bool
    room_temperature: float | None
    floor_temperature: float | None
    manual_setpoint: float | None
    comfort_setpoint: float | None
    regulation_mode: int | None
    comfort_end_time: str
    boost_end_time: str
    vacation_enabled: bool
    vacation_begin: str
    vacation_end: str
    vacation_temperature: float | None
    timezone_offset: int


@dataclass
class ThermostatRecord:
    """Cached identity of a thermostat, kept across poll cycles."""

    thermostat_id: str
    group_id: str | None = None
    serial_number: str | None = None
    name: str = ""
    timezone_offset: int | None = None
    online: bool = False
    previous_online: bool | None = None


@dataclass
class ThermostatRegistry:
    """Single owner of per-thermostat identity, name, timezone and online flag."""

    _records: dict[str, ThermostatRecord] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, thermostat_id: object) -> bool:
        return thermostat_id in self._records

    def get(self, thermostat_id: str) -> ThermostatRecord | None:
        """Return the record for a thermostat, if known."""
        return self._records.get(thermostat_id)

    def upsert(
        self,
        thermostat_id: str,
        *,
        online: bool,
        group_id: str | None = None,
        serial_number: str | None = None,
        name: str | None = None,
        timezone_offset: int | None = None,
    ) -> ThermostatRecord:
        """Create or update a record from a poll cycle.

        Serial number, name and timezone keep their cached values when the
        read omits them. Online transitions are logged once per edge.
        """
        record = self._records.get(thermostat_id)
        if record is None:
            record = ThermostatRecord(thermostat_id=thermostat_id)
            self._records[thermostat_id] = record
            record.previous_online = None
        else:
            record.previous_online = record.online

        if group_id:
            record.group_id = group_id
        if serial_number:
            record.serial_number = serial_number
        if name:
            record.name = name
        if timezone_offset is not None:
            record.timezone_offset = timezone_offset
        record.online = online

        if not online and record.previous_online is not False:
            _LOGGER.warning("Thermostat %s (%s) is offline", record.name, thermostat_id)
        elif online and record.previous_online is False:
            _LOGGER.info("Thermostat %s (%s) is back online", record.name, thermostat_id)

        return record

    def set_name(self, thermostat_id: str, name: str) -> None:
        """Update the cached display name after a successful rename."""
        record = self._records.get(thermostat_id)
        if record is not None:
            record.name = name

    def resolve_serial(self, thermostat_id: str) -> str | None:
        """Return the cached serial number of a thermostat."""
        record = self._records.get(thermostat_id)
        return record.serial_number if record else None

    def is_online(self, thermostat_id: str) -> bool:
        """Return True if the thermostat reported online in the last cycle."""
        record = self._records.get(thermostat_id)
        return bool(record and record.online)

    def timezone_offset(self, thermostat_id: str) -> int:
        """Return the cached UTC offset in seconds, 0 when unknown."""
        record = self._records.get(thermostat_id)
        if record is None or record.timezone_offset is None:
            return 0
        return record.timezone_offset
