"""Config flow for Barrel Calculator integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .calculator import BarrelProfile
from .const import (
    DOMAIN,
    CALCULATION_MODES,
    CONF_PROFILE,
    CONF_CALCULATION_MODE,
    CONF_MAX_HEIGHT,
    CONF_CAPACITY,
    CONF_RADIUS,
    CONF_HEIGHT_SENSOR,
    CONF_MAX_HISTORY,
    CONF_EXPORT_DIRECTORY,
    DEFAULT_NAME,
    DEFAULT_PROFILE,
    DEFAULT_CALCULATION_MODE,
    DEFAULT_MAX_HEIGHT,
    DEFAULT_CAPACITY,
    DEFAULT_RADIUS,
    DEFAULT_MAX_HISTORY,
    DEFAULT_EXPORT_DIRECTORY,
    MAX_CAPACITY_LIMIT,
    MAX_HEIGHT_LIMIT,
    MAX_RADIUS_LIMIT,
    PROFILE_CUSTOM,
    PROFILE_PRESETS,
    PROFILES,
)

_LOGGER = logging.getLogger(__name__)


def _build_geometry_schema(defaults: dict[str, Any]) -> dict:
    """Build the barrel geometry fields."""
    return {
        vol.Required(
            CONF_CALCULATION_MODE,
            default=defaults.get(CONF_CALCULATION_MODE, DEFAULT_CALCULATION_MODE),
        ): selector.SelectSelector(
            selector.SelectSelectorConfig(
                options=CALCULATION_MODES,
                translation_key=CONF_CALCULATION_MODE,
            )
        ),
        vol.Required(
            CONF_MAX_HEIGHT,
            default=defaults.get(CONF_MAX_HEIGHT, DEFAULT_MAX_HEIGHT),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=1,
                max=MAX_HEIGHT_LIMIT,
                step=0.1,
                mode=selector.NumberSelectorMode.BOX,
                unit_of_measurement="cm",
            )
        ),
        vol.Required(
            CONF_CAPACITY,
            default=defaults.get(CONF_CAPACITY, DEFAULT_CAPACITY),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=1,
                max=MAX_CAPACITY_LIMIT,
                step=0.1,
                mode=selector.NumberSelectorMode.BOX,
                unit_of_measurement="L",
            )
        ),
        vol.Required(
            CONF_RADIUS,
            default=defaults.get(CONF_RADIUS, DEFAULT_RADIUS),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=1,
                max=MAX_RADIUS_LIMIT,
                step=0.1,
                mode=selector.NumberSelectorMode.BOX,
                unit_of_measurement="cm",
            )
        ),
    }


def _build_settings_schema(defaults: dict[str, Any]) -> dict:
    """Build the fields shared by every barrel regardless of geometry."""
    return {
        vol.Optional(
            CONF_HEIGHT_SENSOR,
            description={"suggested_value": defaults.get(CONF_HEIGHT_SENSOR)},
        ): selector.EntitySelector(
            selector.EntitySelectorConfig(domain=["sensor", "input_number", "number"])
        ),
        vol.Optional(
            CONF_MAX_HISTORY,
            default=defaults.get(CONF_MAX_HISTORY, DEFAULT_MAX_HISTORY),
        ): selector.NumberSelector(
            selector.NumberSelectorConfig(
                min=0,
                max=10000,
                mode=selector.NumberSelectorMode.BOX,
            )
        ),
        vol.Optional(
            CONF_EXPORT_DIRECTORY,
            default=defaults.get(CONF_EXPORT_DIRECTORY, DEFAULT_EXPORT_DIRECTORY),
        ): selector.TextSelector(),
    }


def _build_schema(defaults: dict[str, Any]) -> vol.Schema:
    """Build the full schema used by the options flow."""
    return vol.Schema(
        {
            **_build_geometry_schema(defaults),
            **_build_settings_schema(defaults),
        }
    )


def _validate_input(
    hass, user_input: dict[str, Any], errors: dict[str, str]
) -> dict[str, Any]:
    """Normalize user input and collect field errors."""
    data = dict(user_input)

    if CONF_MAX_HISTORY in data:
        data[CONF_MAX_HISTORY] = int(data[CONF_MAX_HISTORY])

    sensor = data.get(CONF_HEIGHT_SENSOR)
    if sensor and not hass.states.get(sensor):
        errors[CONF_HEIGHT_SENSOR] = "sensor_not_found"

    try:
        BarrelProfile.from_config(data)
    except (TypeError, ValueError) as exc:
        _LOGGER.debug("Rejected barrel profile: %s", exc)
        errors["base"] = "invalid_profile"

    return data


class BarrelCalculatorConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Barrel Calculator."""

    VERSION = 1

    def __init__(self) -> None:
        """Initialize the flow."""
        self._data: dict[str, Any] = {}

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}

        if user_input is not None:
            data = _validate_input(self.hass, user_input, errors)
            if not errors:
                profile = data.get(CONF_PROFILE, DEFAULT_PROFILE)
                self._data = data
                if profile == PROFILE_CUSTOM:
                    return await self.async_step_geometry()

                self._data = {**PROFILE_PRESETS[profile], **data}
                return await self._async_create_barrel()

        data_schema = vol.Schema(
            {
                vol.Required(CONF_NAME, default=DEFAULT_NAME): selector.TextSelector(),
                vol.Required(
                    CONF_PROFILE, default=DEFAULT_PROFILE
                ): selector.SelectSelector(
                    selector.SelectSelectorConfig(
                        options=PROFILES,
                        translation_key=CONF_PROFILE,
                    )
                ),
                **_build_settings_schema({}),
            }
        )

        return self.async_show_form(
            step_id="user",
            data_schema=data_schema,
            errors=errors,
        )

    async def async_step_geometry(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle custom barrel dimensions."""
        errors: dict[str, str] = {}

        if user_input is not None:
            data = _validate_input(self.hass, {**self._data, **user_input}, errors)
            if not errors:
                self._data = data
                return await self._async_create_barrel()

        return self.async_show_form(
            step_id="geometry",
            data_schema=vol.Schema(_build_geometry_schema(self._data)),
            errors=errors,
        )

    async def _async_create_barrel(self) -> FlowResult:
        """Create the config entry for the collected barrel data."""
        sensor = self._data.get(CONF_HEIGHT_SENSOR)
        if sensor:
            await self.async_set_unique_id(sensor)
            self._abort_if_unique_id_configured()

        return self.async_create_entry(
            title=self._data.get(CONF_NAME, DEFAULT_NAME),
            data=self._data,
        )

    async def async_step_import(self, import_config: dict[str, Any]) -> FlowResult:
        """Handle import from configuration.yaml."""
        data = dict(import_config)
        data.setdefault(CONF_PROFILE, DEFAULT_PROFILE)
        if data[CONF_PROFILE] != PROFILE_CUSTOM:
            data = {**PROFILE_PRESETS[data[CONF_PROFILE]], **data}

        try:
            BarrelProfile.from_config(data)
        except (TypeError, ValueError) as exc:
            _LOGGER.error("Invalid barrel configuration in YAML: %s", exc)
            return self.async_abort(reason="invalid_profile")

        self._data = data
        return await self._async_create_barrel()

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Get the options flow for this handler."""
        return BarrelCalculatorOptionsFlow()


class BarrelCalculatorOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for Barrel Calculator."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options."""
        errors: dict[str, str] = {}
        current = {**self.config_entry.data, **self.config_entry.options}

        if user_input is not None:
            data = _validate_input(self.hass, user_input, errors)
            if not errors:
                # Dimensions entered here replace the preset picked at setup
                data[CONF_PROFILE] = PROFILE_CUSTOM
                if CONF_HEIGHT_SENSOR not in user_input:
                    data[CONF_HEIGHT_SENSOR] = None
                return self.async_create_entry(title="", data=data)

        defaults = {
            **PROFILE_PRESETS.get(current.get(CONF_PROFILE), {}),
            **{key: value for key, value in current.items() if value is not None},
        }

        return self.async_show_form(
            step_id="init",
            data_schema=_build_schema(defaults),
            errors=errors,
        )
