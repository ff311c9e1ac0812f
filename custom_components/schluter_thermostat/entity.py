"""Base entity for Schlüter thermostat integration."""

from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, MANUFACTURER
from .coordinator import SchluterCoordinator
from .models import ThermostatState


class SchluterEntity(CoordinatorEntity[SchluterCoordinator]):
    """Entity bound to one thermostat of the coordinator data."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        thermostat_id: str,
        key: str,
    ) -> None:
        """Initialize the entity.

        Args:
            coordinator: Coordinator polling the thermostats.
            thermostat_id: Thermostat this entity belongs to.
            key: Entity key, unique per thermostat.

        """
        super().__init__(coordinator)
        self._thermostat_id = thermostat_id
        self._attr_unique_id = f"{thermostat_id}_{key}"
        self._attr_translation_key = key

        state = self.thermostat
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, thermostat_id)},
            name=state.name if state else thermostat_id,
            manufacturer=MANUFACTURER,
            serial_number=state.serial_number if state else None,
        )

    @property
    def thermostat(self) -> ThermostatState | None:
        """Return the latest polled state of the thermostat."""
        return (self.coordinator.data or {}).get(self._thermostat_id)

    @property
    def available(self) -> bool:
        """Return True if the thermostat is part of the coordinator data."""
        return super().available and self.thermostat is not None
