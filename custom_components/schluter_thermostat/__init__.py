from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    CONF_API_KEY,
    CONF_PASSWORD,
    CONF_SCAN_INTERVAL,
    CONF_USERNAME,
    Platform,
)
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import api
from .api import create_session_client
from .apply import ApplyRouter, StagedValueStore
from .const import CONF_CUSTOMER_ID, DEFAULT_POLL_INTERVAL, DOMAIN
from .coordinator import SchluterCoordinator
from .models import ThermostatRegistry

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [
    Platform.BINARY_SENSOR,
    Platform.NUMBER,
    Platform.SENSOR,
    Platform.SWITCH,
    Platform.TEXT,
]


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up Schlüter thermostat integration for entry %s", entry.entry_id)

    client = api.SchluterApiClient(
        create_session_client(hass),
        entry.data[CONF_USERNAME],
        entry.data[CONF_PASSWORD],
        entry.data[CONF_API_KEY],
        entry.data[CONF_CUSTOMER_ID],
    )

    try:
        await client.async_login()
    except api.SchluterAuthError as err:
        if err.unreachable:
            raise ConfigEntryNotReady(str(err)) from err
        _LOGGER.warning(
            "Authentication failed for entry %s: %s", entry.entry_id, str(err)
        )
        return False

    registry = ThermostatRegistry()
    staged = StagedValueStore()
    coordinator = SchluterCoordinator(
        hass,
        client,
        registry,
        staged,
        config_entry=entry,
        poll_interval=entry.data.get(CONF_SCAN_INTERVAL, DEFAULT_POLL_INTERVAL),
    )
    router = ApplyRouter(client, registry, staged, coordinator.async_mirror_value)

    await coordinator.async_config_entry_first_refresh()
    _LOGGER.info(
        "Successfully retrieved %d thermostats from Schlüter cloud",
        len(coordinator.data),
    )

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "client": client,
        "coordinator": coordinator,
        "registry": registry,
        "staged": staged,
        "router": router,
    }

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _LOGGER.info(
        "Successfully setup Schlüter thermostat integration for entry %s", entry.entry_id
    )
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading Schlüter thermostat integration for entry %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not unload_ok:
        _LOGGER.warning("Failed to unload some platforms for entry %s", entry.entry_id)
        return False

    entry_data = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if entry_data is not None:
        await entry_data["coordinator"].async_shutdown()
        _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)

    _LOGGER.info(
        "Successfully unloaded Schlüter thermostat integration for entry %s",
        entry.entry_id,
    )
    return True
