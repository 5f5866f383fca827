"""Barrel Calculator Integration."""

from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_NAME, Platform
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .calculator import BarrelProfile, InputError
from .const import (
    DOMAIN,
    ATTR_ENTRY_ID,
    ATTR_FORMAT,
    ATTR_HEIGHT,
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
    DEFAULT_MAX_HISTORY,
    DEFAULT_EXPORT_DIRECTORY,
    EXPORT_FORMAT_CSV,
    EXPORT_FORMATS,
    MAX_CAPACITY_LIMIT,
    MAX_HEIGHT_LIMIT,
    MAX_RADIUS_LIMIT,
    PROFILES,
    SERVICE_CALCULATE,
    SERVICE_CLEAR_HISTORY,
    SERVICE_EXPORT_HISTORY,
)
from .coordinator import BarrelCalculatorCoordinator

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR]

# Keep YAML config support for backward compatibility
CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Optional(CONF_NAME, default=DEFAULT_NAME): cv.string,
                vol.Optional(CONF_PROFILE, default=DEFAULT_PROFILE): vol.In(PROFILES),
                vol.Optional(CONF_CALCULATION_MODE): vol.In(CALCULATION_MODES),
                vol.Optional(CONF_MAX_HEIGHT): vol.All(
                    cv.positive_float, vol.Range(max=MAX_HEIGHT_LIMIT)
                ),
                vol.Optional(CONF_CAPACITY): vol.All(
                    cv.positive_float, vol.Range(max=MAX_CAPACITY_LIMIT)
                ),
                vol.Optional(CONF_RADIUS): vol.All(
                    cv.positive_float, vol.Range(max=MAX_RADIUS_LIMIT)
                ),
                vol.Optional(CONF_HEIGHT_SENSOR): cv.entity_id,
                vol.Optional(
                    CONF_MAX_HISTORY, default=DEFAULT_MAX_HISTORY
                ): cv.positive_int,
                vol.Optional(
                    CONF_EXPORT_DIRECTORY, default=DEFAULT_EXPORT_DIRECTORY
                ): cv.string,
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)


def _not_bool(value):
    """Reject booleans, which float() would turn into 0 or 1."""
    if isinstance(value, bool):
        raise vol.Invalid("Height must be a number, not a boolean")
    return value


CALCULATE_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_HEIGHT): vol.All(
            _not_bool, vol.Any(vol.Coerce(float), cv.string)
        ),
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

CLEAR_HISTORY_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)

EXPORT_HISTORY_SCHEMA = vol.Schema(
    {
        vol.Optional(ATTR_FORMAT, default=EXPORT_FORMAT_CSV): vol.In(EXPORT_FORMATS),
        vol.Optional(ATTR_ENTRY_ID): cv.string,
    }
)


def _resolve_coordinators(
    hass: HomeAssistant, entry_id: str | None
) -> list[BarrelCalculatorCoordinator]:
    """Return the coordinator for *entry_id*, or all coordinators."""
    coordinators = hass.data.get(DOMAIN, {})
    if entry_id:
        coord = coordinators.get(entry_id)
        if isinstance(coord, BarrelCalculatorCoordinator):
            return [coord]
        raise ServiceValidationError(f"No barrel configured with entry_id {entry_id}")

    found = [
        c for c in coordinators.values() if isinstance(c, BarrelCalculatorCoordinator)
    ]
    if not found:
        raise ServiceValidationError("No barrel is configured")
    return found


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the Barrel Calculator component from YAML."""
    hass.data.setdefault(DOMAIN, {})

    async def handle_calculate(call: ServiceCall) -> ServiceResponse:
        """Handle the calculate service call."""
        height = call.data[ATTR_HEIGHT]
        coordinators = _resolve_coordinators(hass, call.data.get(ATTR_ENTRY_ID))

        # Every barrel must accept the height before any of them records it
        for coord in coordinators:
            try:
                coord.check_height(height)
            except InputError as exc:
                raise ServiceValidationError(str(exc)) from exc

        results = {}
        for coord in coordinators:
            await coord.async_wait_loaded()
            record = await coord.async_calculate(height)
            results[coord.entry_id or DOMAIN] = record.as_dict()
        return {"results": results}

    async def handle_clear_history(call: ServiceCall) -> None:
        """Handle the clear_history service call."""
        for coord in _resolve_coordinators(hass, call.data.get(ATTR_ENTRY_ID)):
            await coord.async_wait_loaded()
            await coord.async_clear_history()

    async def handle_export_history(call: ServiceCall) -> ServiceResponse:
        """Handle the export_history service call."""
        fmt = call.data[ATTR_FORMAT]
        exports = {}
        for coord in _resolve_coordinators(hass, call.data.get(ATTR_ENTRY_ID)):
            await coord.async_wait_loaded()
            exported = await coord.async_write_export(fmt)
            if exported is None:
                _LOGGER.info("No calculations to export for %s", coord.barrel_name)
                continue
            exports[coord.entry_id or DOMAIN] = exported
        return {"exports": exports}

    hass.services.async_register(
        DOMAIN,
        SERVICE_CALCULATE,
        handle_calculate,
        schema=CALCULATE_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_CLEAR_HISTORY,
        handle_clear_history,
        schema=CLEAR_HISTORY_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_EXPORT_HISTORY,
        handle_export_history,
        schema=EXPORT_HISTORY_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    # Support YAML configuration (legacy)
    if DOMAIN in config:
        hass.async_create_task(
            hass.config_entries.flow.async_init(
                DOMAIN,
                context={"source": "import"},
                data=config[DOMAIN],
            )
        )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Barrel Calculator from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    # Merge entry.data and entry.options (options take precedence)
    config = {**entry.data, **entry.options}

    try:
        profile = BarrelProfile.from_config(config)
    except (TypeError, ValueError) as exc:
        _LOGGER.error(
            "Invalid barrel configuration for entry %s: %s", entry.entry_id, exc
        )
        return False

    coordinator = BarrelCalculatorCoordinator(
        hass,
        profile,
        barrel_name=config.get(CONF_NAME) or entry.title or DEFAULT_NAME,
        height_sensor=config.get(CONF_HEIGHT_SENSOR),
        max_history=int(config.get(CONF_MAX_HISTORY, DEFAULT_MAX_HISTORY)),
        export_directory=config.get(CONF_EXPORT_DIRECTORY, DEFAULT_EXPORT_DIRECTORY),
        entry_id=entry.entry_id,
    )

    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Register update listener for options changes
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    entry.async_on_unload(coordinator.async_shutdown_listeners)

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        hass.data[DOMAIN].pop(entry.entry_id)

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload config entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)
