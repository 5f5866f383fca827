"""Shared fixtures for barrel calculator tests."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock, AsyncMock, patch

import pytest

# Ensure custom_components is importable
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def mock_hass(tmp_path):
    """Create a mocked HomeAssistant instance."""
    hass = MagicMock()
    hass.states.get.return_value = None
    hass.async_create_task.return_value = None
    hass.data = {}
    hass.config.path.side_effect = lambda *parts: str(tmp_path.joinpath(*parts))

    async def _run_executor(func, *args):
        return func(*args)

    hass.async_add_executor_job = AsyncMock(side_effect=_run_executor)
    return hass


def make_store(data=None):
    """Create a mocked homeassistant Store holding *data*."""
    store = MagicMock()
    store.async_load = AsyncMock(return_value=data)
    store.async_save = AsyncMock()
    store.async_remove = AsyncMock()
    return store


def make_history_store(mock_hass, data=None, entry_id="test_entry_id", **kwargs):
    """Create a HistoryStore backed by a mocked Store."""
    from custom_components.barrel_calculator.history import HistoryStore

    store = make_store(data)
    with patch(
        "custom_components.barrel_calculator.history.Store", return_value=store
    ):
        history = HistoryStore(mock_hass, entry_id, **kwargs)
    return history, store


def make_coordinator(
    mock_hass,
    profile=None,
    height_sensor=None,
    entry_id="test_entry_id",
    initial_height=None,
    stored=None,
    **kwargs,
):
    """Create a BarrelCalculatorCoordinator with mocked HA dependencies.

    This patches Store and async_track_state_change_event to avoid
    real HA interactions.
    """
    from custom_components.barrel_calculator.calculator import BarrelProfile
    from custom_components.barrel_calculator.coordinator import (
        BarrelCalculatorCoordinator,
    )

    if initial_height is not None:
        mock_state = MagicMock()
        mock_state.state = str(initial_height)
        mock_hass.states.get.return_value = mock_state
    else:
        mock_hass.states.get.return_value = None

    with (
        patch(
            "custom_components.barrel_calculator.coordinator.async_track_state_change_event"
        ) as mock_track,
        patch(
            "custom_components.barrel_calculator.history.Store"
        ) as mock_store_cls,
        patch(
            "homeassistant.helpers.frame.report_usage"
        ),
    ):
        mock_store = make_store(stored)
        mock_store_cls.return_value = mock_store

        coordinator = BarrelCalculatorCoordinator(
            mock_hass,
            profile or BarrelProfile(),
            height_sensor=height_sensor,
            entry_id=entry_id,
            **kwargs,
        )

        # Keep the mocks around for assertions
        coordinator._store = mock_store
        coordinator._track = mock_track

    return coordinator
