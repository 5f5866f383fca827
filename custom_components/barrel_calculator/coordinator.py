"""Coordinator for Barrel Calculator data and updates."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any

from homeassistant.core import Event, HomeAssistant
from homeassistant.helpers.event import async_track_state_change_event
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .calculator import (
    BarrelProfile,
    CalculationResult,
    ExceedsCapacityError,
    InputError,
    calculate,
)
from .const import (
    DEFAULT_EXPORT_DIRECTORY,
    DEFAULT_MAX_HISTORY,
    DEFAULT_NAME,
    DOMAIN,
)
from .history import HistoryStore, PersistenceError, export_filename
from .models import CalculationRecord

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BarrelData:
    """Snapshot of barrel calculator data for sensors."""

    height: float | None
    volume: float | None
    percentage: float | None
    error: str | None
    exceeded: bool
    max_volume: float
    history_count: int
    last_record: CalculationRecord | None


class BarrelCalculatorCoordinator(DataUpdateCoordinator[BarrelData]):
    """Coordinator to manage barrel calculations and their history."""

    def __init__(
        self,
        hass: HomeAssistant,
        profile: BarrelProfile,
        barrel_name: str = DEFAULT_NAME,
        height_sensor: str | None = None,
        max_history: int = DEFAULT_MAX_HISTORY,
        export_directory: str = DEFAULT_EXPORT_DIRECTORY,
        entry_id: str | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, _LOGGER, name=DOMAIN)

        self.hass = hass
        self.profile = profile
        self.barrel_name = barrel_name
        self.height_sensor = height_sensor
        self.export_directory = export_directory
        self.entry_id = entry_id

        self._result: CalculationResult | None = None
        self._error: str | None = None
        self._exceeded: bool = False

        self._history = HistoryStore(hass, entry_id, max_history)
        self._history_load_task = hass.async_create_task(self._async_load_history())

        self._unsub_height: Any = None
        if height_sensor:
            self._unsub_height = async_track_state_change_event(
                hass, [height_sensor], self._handle_height_change
            )
            self._initialize_height()

        self._publish()

    async def _async_update_data(self) -> BarrelData:
        """Provide data for coordinator refresh requests."""
        self._publish()
        return self.data

    @property
    def history(self) -> HistoryStore:
        """Return the history store."""
        return self._history

    async def _async_load_history(self) -> None:
        """Load persisted history from storage."""
        await self._history.async_load()
        self._publish()

    async def async_wait_loaded(self) -> None:
        """Wait until persisted history has been loaded."""
        if isinstance(self._history_load_task, asyncio.Future):
            await self._history_load_task

    def async_shutdown_listeners(self) -> None:
        """Stop tracking the height sensor."""
        if self._unsub_height is not None:
            self._unsub_height()
            self._unsub_height = None

    def _initialize_height(self) -> None:
        """Initialize the live result from the height sensor's current state."""
        state = self.hass.states.get(self.height_sensor)
        if state and state.state not in ("unknown", "unavailable"):
            self._apply_live_height(state.state)

    async def _handle_height_change(self, event: Event) -> None:
        """Handle height sensor state change."""
        new_state = event.data.get("new_state")
        if new_state is None or new_state.state in ("unknown", "unavailable"):
            return

        self._apply_live_height(new_state.state)
        self._publish()

    def _apply_live_height(self, value: Any) -> None:
        """Recalculate from a sensor reading without touching history."""
        try:
            self._set_result(calculate(value, self.profile))
        except InputError as exc:
            _LOGGER.warning("Invalid height reading from %s: %s", self.height_sensor, exc)
            self._set_error(exc)

    def _set_result(self, result: CalculationResult) -> None:
        self._result = result
        self._error = None
        self._exceeded = False

    def _set_error(self, exc: InputError) -> None:
        self._error = str(exc)
        self._exceeded = isinstance(exc, ExceedsCapacityError)

    def check_height(self, height_input: Any) -> CalculationResult:
        """Calculate a submitted height without recording it.

        InputError is published to sensors and re-raised.
        """
        try:
            return calculate(height_input, self.profile)
        except InputError as exc:
            _LOGGER.debug("Rejected height %r: %s", height_input, exc)
            self._set_error(exc)
            self._publish()
            raise

    async def async_calculate(self, height_input: Any) -> CalculationRecord:
        """Calculate volume for a submitted height and record it in history.

        InputError is published to sensors and re-raised; history is not
        modified in that case.
        """
        result = self.check_height(height_input)
        self._set_result(result)
        record = CalculationRecord.from_result(result)

        try:
            await self._history.async_append(record)
        except PersistenceError as exc:
            _LOGGER.warning("Calculation kept in memory only: %s", exc)

        _LOGGER.info(
            "Calculation recorded: %.2f cm -> %.2f L (%.2f%%)",
            record.height,
            record.volume,
            record.percentage,
        )
        self._publish()
        return record

    async def async_clear_history(self) -> None:
        """Clear calculation history."""
        try:
            await self._history.async_clear()
        except PersistenceError as exc:
            _LOGGER.warning("History cleared in memory only: %s", exc)
        _LOGGER.info("Calculation history cleared for %s", self.barrel_name)
        self._publish()

    def async_export_history(self, fmt: str) -> tuple[str, bytes] | None:
        """Return file name and content for an export, or None if history is empty."""
        content = self._history.export_as(fmt)
        if content is None:
            _LOGGER.debug("Nothing to export for %s: history is empty", self.barrel_name)
            return None
        return export_filename(fmt, dt_util.now().date()), content

    async def async_write_export(self, fmt: str) -> dict[str, Any] | None:
        """Write an export file into the configured directory."""
        export = self.async_export_history(fmt)
        if export is None:
            return None

        filename, content = export
        directory = Path(self.hass.config.path(self.export_directory))
        path = directory / filename
        await self.hass.async_add_executor_job(_write_file, path, content)

        _LOGGER.info("Exported %s calculation records to %s", len(self._history), path)
        return {
            "filename": filename,
            "path": str(path),
            "records": len(self._history),
        }

    def _publish(self) -> None:
        """Publish updated data to listeners."""
        result = self._result
        records = self._history.records

        data = BarrelData(
            height=result.height if result else None,
            volume=result.volume_liters if result else None,
            percentage=result.percentage if result else None,
            error=self._error,
            exceeded=self._exceeded,
            max_volume=self.profile.max_volume_liters,
            history_count=len(records),
            last_record=records[0] if records else None,
        )

        self.async_set_updated_data(data)


def _write_file(path: Path, content: bytes) -> None:
    """Write export content, creating the directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
