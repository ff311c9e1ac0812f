"""
Configuration flow for Schlüter thermostat integration.

This module handles the setup and configuration of the Schlüter thermostat
integration through Home Assistant's config flow system.
"""

import logging
from typing import Any

import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import (
    CONF_API_KEY,
    CONF_PASSWORD,
    CONF_SCAN_INTERVAL,
    CONF_USERNAME,
)
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_CUSTOMER_ID,
    DEFAULT_POLL_INTERVAL,
    DOMAIN,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_AUTH,
    ERROR_UNKNOWN,
    MIN_POLL_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_USERNAME): str,
        vol.Required(CONF_PASSWORD): str,
        vol.Required(CONF_API_KEY): str,
        vol.Required(CONF_CUSTOMER_ID): vol.Coerce(int),
        vol.Optional(CONF_SCAN_INTERVAL, default=DEFAULT_POLL_INTERVAL): vol.All(
            vol.Coerce(int), vol.Range(min=MIN_POLL_INTERVAL)
        ),
    }
)


class SchluterThermostatConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for Schlüter thermostat integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: User input data with credentials and poll interval.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            username = user_input[CONF_USERNAME]

            try:
                client = api.SchluterApiClient(
                    get_async_client(self.hass),
                    username,
                    user_input[CONF_PASSWORD],
                    user_input[CONF_API_KEY],
                    user_input[CONF_CUSTOMER_ID],
                )
                await client.async_login()
                _LOGGER.info("Successfully authenticated with Schlüter cloud")

            except api.SchluterAuthError as err:
                if err.unreachable:
                    _LOGGER.warning("Cannot reach Schlüter cloud (%s): %s", ERROR_CANNOT_CONNECT, err)
                    errors["base"] = ERROR_CANNOT_CONNECT
                else:
                    _LOGGER.warning("Authentication failed (%s): %s", ERROR_INVALID_AUTH, err)
                    errors["base"] = ERROR_INVALID_AUTH
            except Exception:
                _LOGGER.exception(
                    "Unexpected error during authentication (%s)",
                    ERROR_UNKNOWN,
                )
                errors["base"] = ERROR_UNKNOWN

            else:
                await self.async_set_unique_id(username.lower())
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title=f"Schlüter ({username})",
                    data={
                        CONF_USERNAME: username,
                        CONF_PASSWORD: user_input[CONF_PASSWORD],
                        CONF_API_KEY: user_input[CONF_API_KEY],
                        CONF_CUSTOMER_ID: user_input[CONF_CUSTOMER_ID],
                        CONF_SCAN_INTERVAL: user_input.get(
                            CONF_SCAN_INTERVAL, DEFAULT_POLL_INTERVAL
                        ),
                    },
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )
