"""Binary sensor entities for Schlüter thermostats."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
    BinarySensorEntityDescription,
)
from homeassistant.const import EntityCategory
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import SchluterCoordinator
from .entity import SchluterEntity
from .models import ThermostatState

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback


@dataclass(frozen=True, kw_only=True)
class SchluterBinarySensorDescription(BinarySensorEntityDescription):
    """Describes a boolean thermostat value."""

    value_fn: Callable[[ThermostatState], bool]


BINARY_SENSOR_DESCRIPTIONS: tuple[SchluterBinarySensorDescription, ...] = (
    SchluterBinarySensorDescription(
        key="online",
        device_class=BinarySensorDeviceClass.CONNECTIVITY,
        entity_category=EntityCategory.DIAGNOSTIC,
        value_fn=lambda state: state.online,
    ),
    SchluterBinarySensorDescription(
        key="heating",
        device_class=BinarySensorDeviceClass.HEAT,
        value_fn=lambda state: state.heating,
    ),
    SchluterBinarySensorDescription(
        key="vacation_enabled",
        value_fn=lambda state: state.vacation_enabled,
    ),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up binary sensors for every thermostat and the cloud connection."""
    coordinator: SchluterCoordinator = hass.data[DOMAIN][entry.entry_id]["coordinator"]

    entities: list[BinarySensorEntity] = [
        SchluterBinarySensor(coordinator, thermostat_id, description)
        for thermostat_id in coordinator.data
        for description in BINARY_SENSOR_DESCRIPTIONS
    ]
    entities.append(SchluterCloudConnectionSensor(coordinator, entry.entry_id))
    async_add_entities(entities)


class SchluterBinarySensor(SchluterEntity, BinarySensorEntity):
    """Boolean value of a thermostat."""

    entity_description: SchluterBinarySensorDescription

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        thermostat_id: str,
        description: SchluterBinarySensorDescription,
    ) -> None:
        """Initialize the binary sensor."""
        super().__init__(coordinator, thermostat_id, description.key)
        self.entity_description = description

    @property
    def is_on(self) -> bool | None:
        """Return the value from the latest poll or mirrored write."""
        state = self.thermostat
        if state is None:
            return None
        return self.entity_description.value_fn(state)


class SchluterCloudConnectionSensor(CoordinatorEntity[SchluterCoordinator], BinarySensorEntity):
    """Connectivity flag of the cloud account.

    Stays available while polling fails, since reporting the outage is its
    whole purpose.
    """

    _attr_has_entity_name = True
    _attr_translation_key = "cloud_connection"
    _attr_device_class = BinarySensorDeviceClass.CONNECTIVITY
    _attr_entity_category = EntityCategory.DIAGNOSTIC

    def __init__(self, coordinator: SchluterCoordinator, entry_id: str) -> None:
        """Initialize the connection sensor."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry_id}_cloud_connection"

    @property
    def available(self) -> bool:
        """Return True, the flag itself reports the outage."""
        return True

    @property
    def is_on(self) -> bool:
        """Return True while the cloud is reachable."""
        return self.coordinator.connected
