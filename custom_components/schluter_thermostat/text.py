"""Text entities staging apply inputs for Schlüter thermostats."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.components.text import TextEntity, TextEntityDescription
from homeassistant.const import EntityCategory

from .const import DOMAIN, STAGED_NAME, STAGED_VACATION_BEGIN, STAGED_VACATION_END
from .entity import SchluterEntity

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .apply import StagedValueStore
    from .coordinator import SchluterCoordinator

TEXT_DESCRIPTIONS: tuple[TextEntityDescription, ...] = (
    TextEntityDescription(key=STAGED_NAME, native_max=64),
    # Free text on purpose: malformed days are only warned about on apply.
    TextEntityDescription(key=STAGED_VACATION_BEGIN, native_max=10),
    TextEntityDescription(key=STAGED_VACATION_END, native_max=10),
)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up staged text inputs for every thermostat."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    coordinator: SchluterCoordinator = entry_data["coordinator"]
    staged: StagedValueStore = entry_data["staged"]

    async_add_entities(
        SchluterStagedText(coordinator, staged, thermostat_id, description)
        for thermostat_id in coordinator.data
        for description in TEXT_DESCRIPTIONS
    )


class SchluterStagedText(SchluterEntity, TextEntity):
    """Text input whose value is sent by the matching apply switch."""

    _attr_entity_category = EntityCategory.CONFIG

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        staged: StagedValueStore,
        thermostat_id: str,
        description: TextEntityDescription,
    ) -> None:
        """Initialize the staged text."""
        super().__init__(coordinator, thermostat_id, f"staged_{description.key}")
        self.entity_description = description
        self._staged = staged

    @property
    def native_value(self) -> str:
        """Return the staged text."""
        return str(self._staged.get(self._thermostat_id, self.entity_description.key, ""))

    async def async_set_value(self, value: str) -> None:
        """Stage a new text."""
        self._staged.set(self._thermostat_id, self.entity_description.key, value)
        self.async_write_ha_state()
