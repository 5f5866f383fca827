"""Tests for config_flow.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

pytest.importorskip("homeassistant")

import voluptuous as vol

from homeassistant.const import CONF_NAME

from custom_components.barrel_calculator.config_flow import (
    _build_schema,
    _validate_input,
    BarrelCalculatorConfigFlow,
)
from custom_components.barrel_calculator.const import (
    CONF_PROFILE,
    CONF_CALCULATION_MODE,
    CONF_MAX_HEIGHT,
    CONF_CAPACITY,
    CONF_RADIUS,
    CONF_HEIGHT_SENSOR,
    CONF_MAX_HISTORY,
    CONF_EXPORT_DIRECTORY,
    MODE_CYLINDRICAL,
    PROFILE_CUSTOM,
    PROFILE_CYLINDRICAL_208,
)


# ---------------------------------------------------------------------------
# Schema building
# ---------------------------------------------------------------------------

class TestBuildSchema:
    """Tests for the shared _build_schema helper."""

    def test_build_schema_returns_schema(self):
        assert isinstance(_build_schema({}), vol.Schema)

    def test_build_schema_includes_all_config_keys(self):
        schema_keys = {str(k) for k in _build_schema({}).schema}
        for key in (
            CONF_CALCULATION_MODE,
            CONF_MAX_HEIGHT,
            CONF_CAPACITY,
            CONF_RADIUS,
            CONF_HEIGHT_SENSOR,
            CONF_MAX_HISTORY,
            CONF_EXPORT_DIRECTORY,
        ):
            assert key in schema_keys, f"Missing key: {key}"

    def test_build_schema_uses_defaults(self):
        schema = _build_schema({CONF_MAX_HEIGHT: 82.0})
        defaults = {
            str(key): key.default()
            for key in schema.schema
            if key.default is not vol.UNDEFINED
        }
        assert defaults[CONF_MAX_HEIGHT] == 82.0


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class TestValidateInput:
    """Tests for _validate_input."""

    def test_valid_preset(self, mock_hass):
        errors = {}
        data = _validate_input(
            mock_hass, {CONF_PROFILE: PROFILE_CYLINDRICAL_208, CONF_MAX_HISTORY: 50.0}, errors
        )
        assert errors == {}
        assert data[CONF_MAX_HISTORY] == 50

    def test_missing_sensor(self, mock_hass):
        errors = {}
        mock_hass.states.get.return_value = None
        _validate_input(mock_hass, {CONF_HEIGHT_SENSOR: "sensor.nope"}, errors)
        assert errors[CONF_HEIGHT_SENSOR] == "sensor_not_found"

    def test_invalid_geometry(self, mock_hass):
        errors = {}
        _validate_input(
            mock_hass,
            {CONF_CALCULATION_MODE: MODE_CYLINDRICAL, CONF_RADIUS: 0},
            errors,
        )
        assert errors["base"] == "invalid_profile"


# ---------------------------------------------------------------------------
# Config flow class
# ---------------------------------------------------------------------------

class TestConfigFlow:
    """Tests for the config flow class."""

    def test_config_flow_has_version(self):
        assert BarrelCalculatorConfigFlow.VERSION == 1

    @pytest.mark.asyncio
    async def test_preset_creates_entry(self, mock_hass):
        flow = BarrelCalculatorConfigFlow()
        flow.hass = mock_hass
        flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})

        await flow.async_step_user(
            {CONF_NAME: "Garage drum", CONF_PROFILE: PROFILE_CYLINDRICAL_208}
        )

        kwargs = flow.async_create_entry.call_args.kwargs
        assert kwargs["title"] == "Garage drum"
        assert kwargs["data"][CONF_CALCULATION_MODE] == MODE_CYLINDRICAL
        assert kwargs["data"][CONF_MAX_HEIGHT] == 82.0

    @pytest.mark.asyncio
    async def test_custom_profile_asks_for_geometry(self, mock_hass):
        flow = BarrelCalculatorConfigFlow()
        flow.hass = mock_hass
        flow.async_show_form = MagicMock(return_value={"type": "form"})

        await flow.async_step_user({CONF_NAME: "Tank", CONF_PROFILE: PROFILE_CUSTOM})

        assert flow.async_show_form.call_args.kwargs["step_id"] == "geometry"

    @pytest.mark.asyncio
    async def test_sensor_sets_unique_id(self, mock_hass):
        mock_hass.states.get.return_value = MagicMock()
        flow = BarrelCalculatorConfigFlow()
        flow.hass = mock_hass
        flow.async_set_unique_id = AsyncMock()
        flow._abort_if_unique_id_configured = MagicMock()
        flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})

        await flow.async_step_user(
            {CONF_NAME: "Tank", CONF_HEIGHT_SENSOR: "sensor.barrel_level"}
        )

        flow.async_set_unique_id.assert_awaited_once_with("sensor.barrel_level")

    @pytest.mark.asyncio
    async def test_import_creates_entry(self, mock_hass):
        flow = BarrelCalculatorConfigFlow()
        flow.hass = mock_hass
        flow.async_create_entry = MagicMock(return_value={"type": "create_entry"})

        await flow.async_step_import({CONF_NAME: "Yard drum"})

        data = flow.async_create_entry.call_args.kwargs["data"]
        assert data[CONF_MAX_HEIGHT] == 87.0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "config",
        [
            {CONF_PROFILE: PROFILE_CUSTOM, CONF_CAPACITY: 1e30},
            {CONF_PROFILE: PROFILE_CYLINDRICAL_208, CONF_RADIUS: 1000},
        ],
    )
    async def test_import_rejects_invalid_dimensions(self, mock_hass, config):
        flow = BarrelCalculatorConfigFlow()
        flow.hass = mock_hass
        flow.async_abort = MagicMock(return_value={"type": "abort"})
        flow.async_create_entry = MagicMock()

        await flow.async_step_import({CONF_NAME: "Yard drum", **config})

        flow.async_abort.assert_called_once_with(reason="invalid_profile")
        flow.async_create_entry.assert_not_called()
