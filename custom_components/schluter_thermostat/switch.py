"""Switch entities for Schlüter thermostats.

Apply switches trigger one command each and turn themselves off again. The
vacation switch only stages the enabled flag for the vacation apply.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from homeassistant.components.switch import SwitchEntity
from homeassistant.const import EntityCategory

from .const import DOMAIN, STAGED_VACATION_ENABLED
from .entity import SchluterEntity
from .models import ApplyMode

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

    from .apply import ApplyRouter, StagedValueStore
    from .coordinator import SchluterCoordinator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up apply and staging switches for every thermostat."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    coordinator: SchluterCoordinator = entry_data["coordinator"]
    router: ApplyRouter = entry_data["router"]
    staged: StagedValueStore = entry_data["staged"]

    entities: list[SwitchEntity] = []
    for thermostat_id in coordinator.data:
        entities.extend(
            SchluterApplySwitch(coordinator, router, thermostat_id, mode)
            for mode in ApplyMode
        )
        entities.append(SchluterVacationEnabledSwitch(coordinator, staged, thermostat_id))
    async_add_entities(entities)


class SchluterApplySwitch(SchluterEntity, SwitchEntity):
    """Momentary control that applies one mode to a thermostat."""

    _attr_entity_category = EntityCategory.CONFIG

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        router: ApplyRouter,
        thermostat_id: str,
        mode: ApplyMode,
    ) -> None:
        """Initialize the apply switch."""
        super().__init__(coordinator, thermostat_id, f"apply_{mode}")
        self._router = router
        self._mode = mode
        self._attr_is_on = False

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Apply the mode, then reset the switch."""
        self._attr_is_on = True
        self.async_write_ha_state()

        registry = self.coordinator.registry
        if not registry.is_online(self._thermostat_id):
            _LOGGER.warning(
                "Apply %s refused: thermostat %s is offline",
                self._mode,
                self._thermostat_id,
            )
            self._reset()
            return
        if not registry.resolve_serial(self._thermostat_id):
            _LOGGER.warning(
                "Apply %s refused: no serial number for thermostat %s",
                self._mode,
                self._thermostat_id,
            )
            self._reset()
            return

        await self._router.async_apply(self._mode, self._thermostat_id, self._reset)

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Reset the switch."""
        self._reset()

    def _reset(self) -> None:
        self._attr_is_on = False
        self.async_write_ha_state()


class SchluterVacationEnabledSwitch(SchluterEntity, SwitchEntity):
    """Staged vacation on/off flag, sent by the vacation apply."""

    _attr_entity_category = EntityCategory.CONFIG

    def __init__(
        self,
        coordinator: SchluterCoordinator,
        staged: StagedValueStore,
        thermostat_id: str,
    ) -> None:
        """Initialize the staging switch."""
        super().__init__(coordinator, thermostat_id, f"staged_{STAGED_VACATION_ENABLED}")
        self._staged = staged

    @property
    def is_on(self) -> bool:
        """Return the staged vacation flag."""
        return bool(self._staged.get(self._thermostat_id, STAGED_VACATION_ENABLED, False))

    async def async_turn_on(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Stage vacation enabled."""
        self._staged.set(self._thermostat_id, STAGED_VACATION_ENABLED, True)
        self.async_write_ha_state()

    async def async_turn_off(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Stage vacation disabled."""
        self._staged.set(self._thermostat_id, STAGED_VACATION_ENABLED, False)
        self.async_write_ha_state()
