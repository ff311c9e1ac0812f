"""Sensor entities for Schlüter thermostats."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import UnitOfTemperature

from .const import DOMAIN
from .entity import SchluterEntity
from .models import RegulationMode, ThermostatState

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .coordinator import SchluterCoordinator


@dataclass(frozen=True, kw_only=True)
class SchluterSensorDescription(SensorEntityDescription):
    """Describes a read-only thermostat value."""

    value_fn: Callable[[ThermostatState], float | int | str | None]


def _regulation_mode(state: ThermostatState) -> str | None:
    try:
        return RegulationMode(state.regulation_mode).name.lower()
    except ValueError:
        return None


def _temperature(key: str, value_fn: Callable[[ThermostatState], float | None]) -> SchluterSensorDescription:
    return SchluterSensorDescription(
        key=key,
        device_class=SensorDeviceClass.TEMPERATURE,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        state_class=SensorStateClass.MEASUREMENT,
        value_fn=value_fn,
    )


SENSOR_DESCRIPTIONS: tuple[SchluterSensorDescription, ...] = (
    _temperature("room_temperature", lambda state: state.room_temperature),
    _temperature("floor_temperature", lambda state: state.floor_temperature),
    _temperature("manual_setpoint", lambda state: state.manual_setpoint),
    _temperature("comfort_setpoint", lambda state: state.comfort_setpoint),
    _temperature("vacation_temperature", lambda state: state.vacation_temperature),
    SchluterSensorDescription(
        key="regulation_mode",
        device_class=SensorDeviceClass.ENUM,
        options=[mode.name.lower() for mode in RegulationMode],
        value_fn=_regulation_mode,
    ),
    # End times are thermostat-local wall clock, not instants, so plain text.
    SchluterSensorDescription(
        key="comfort_end_time",
        value_fn=lambda state: state.comfort_end_time or None,
    ),
    SchluterSensorDescription(
        key="boost_end_time",
        value_fn=lambda state: state.boost_end_time or None,
    ),
    SchluterSensorDescription(
        key="vacation_begin",
        value_fn=lambda state: state.vacation_begin or None,
    ),
    SchluterSensorDescription(
        key="vacation_end",
        value_fn=lambda state: state.vacation_end or None,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up sensors for every thermostat."""
    coordinator: SchluterCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]

    async_add_entities(
        SchluterSensor(coordinator, thermostat_id, description)
        for thermostat_id in coordinator.data
        for description in SENSOR_DESCRIPTIONS
    )


class SchluterSensor(SchluterEntity, SensorEntity):
    """Read-only value of a thermostat."""

    entity_description: SchluterSensorDescription

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        thermostat_id: str,
        description: SchluterSensorDescription,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, thermostat_id, description.key)
        self.entity_description = description

    @property
    def native_value(self) -> float | int | str | None:
        """Return the value from the latest poll or mirrored write."""
        state = self.thermostat
        if state is None:
            return None
        return self.entity_description.value_fn(state)
