"""Number entities staging apply inputs for Schlüter thermostats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.components.number import (
    NumberDeviceClass,
    NumberEntity,
    NumberEntityDescription,
    NumberMode,
)
from homeassistant.const import EntityCategory, UnitOfTemperature, UnitOfTime

from .const import (
    DEFAULT_BOOST_DURATION,
    DEFAULT_COMFORT_DURATION,
    DEFAULT_COMFORT_SETPOINT,
    DEFAULT_MANUAL_SETPOINT,
    DEFAULT_VACATION_TEMPERATURE,
    DOMAIN,
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
    STAGED_VACATION_TEMPERATURE,
)
from .entity import SchluterEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .apply import StagedValueStore
    from .coordinator import SchluterCoordinator


@dataclass(frozen=True, kw_only=True)
class SchluterNumberDescription(NumberEntityDescription):
    """Describes a staged numeric input."""

    default: float


def _temperature(key: str, default: float, low: float, high: float) -> SchluterNumberDescription:
    return SchluterNumberDescription(
        key=key,
        device_class=NumberDeviceClass.TEMPERATURE,
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        native_min_value=low,
        native_max_value=high,
        native_step=0.5,
        default=default,
    )


def _duration(key: str, default: int) -> SchluterNumberDescription:
    return SchluterNumberDescription(
        key=key,
        device_class=NumberDeviceClass.DURATION,
        native_unit_of_measurement=UnitOfTime.MINUTES,
        native_min_value=MIN_DURATION,
        native_max_value=MAX_DURATION,
        native_step=1,
        default=default,
    )


NUMBER_DESCRIPTIONS: tuple[SchluterNumberDescription, ...] = (
    _temperature(STAGED_COMFORT_SETPOINT, DEFAULT_COMFORT_SETPOINT, MIN_SETPOINT, MAX_SETPOINT),
    _duration(STAGED_COMFORT_DURATION, DEFAULT_COMFORT_DURATION),
    _temperature(STAGED_MANUAL_SETPOINT, DEFAULT_MANUAL_SETPOINT, MIN_SETPOINT, MAX_SETPOINT),
    _duration(STAGED_BOOST_DURATION, DEFAULT_BOOST_DURATION),
    _temperature(
        STAGED_VACATION_TEMPERATURE,
        DEFAULT_VACATION_TEMPERATURE,
        MIN_VACATION_TEMPERATURE,
        MAX_VACATION_TEMPERATURE,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up staged number inputs for every thermostat."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    coordinator: SchluterCoordinator = entry_data["coordinator"]
    staged: StagedValueStore = entry_data["staged"]

    async_add_entities(
        SchluterStagedNumber(coordinator, staged, thermostat_id, description)
        for thermostat_id in coordinator.data
        for description in NUMBER_DESCRIPTIONS
    )


class SchluterStagedNumber(SchluterEntity, NumberEntity):
    """Number input whose value is sent by the matching apply switch."""

    _attr_entity_category = EntityCategory.CONFIG
    _attr_mode = NumberMode.BOX
    entity_description: SchluterNumberDescription

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        staged: StagedValueStore,
        thermostat_id: str,
        description: SchluterNumberDescription,
    ) -> None:
        """Initialize the staged number."""
        super().__init__(coordinator, thermostat_id, f"staged_{description.key}")
        self.entity_description = description
        self._staged = staged

    @property
    def native_value(self) -> float:
        """Return the staged value or the mode default."""
        return self._staged.get(
            self._thermostat_id,
            self.entity_description.key,
            self.entity_description.default,
        )

    async def async_set_native_value(self, value: float) -> None:
        """Stage a new value."""
        self._staged.set(self._thermostat_id, self.entity_description.key, value)
        self.async_write_ha_state()
