"""Calculation history persistence and export."""

from __future__ import annotations

import csv
from datetime import date
import io
import json
import logging

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util

from .const import (
    CSV_DATETIME_FORMAT,
    CSV_HEADER,
    DEFAULT_MAX_HISTORY,
    EXPORT_FILENAME_PREFIX,
    EXPORT_FORMAT_CSV,
    EXPORT_FORMAT_JSON,
    STORAGE_KEY,
    STORAGE_VERSION,
)
from .models import CalculationRecord

_LOGGER = logging.getLogger(__name__)


class PersistenceError(HomeAssistantError):
    """History could not be written to storage."""


def export_filename(fmt: str, today: date | None = None) -> str:
    """Return the download file name for an export format."""
    if fmt not in (EXPORT_FORMAT_CSV, EXPORT_FORMAT_JSON):
        raise ValueError(f"Unsupported export format: {fmt}")
    day = today or dt_util.now().date()
    return f"{EXPORT_FILENAME_PREFIX}_{day.isoformat()}.{fmt}"


def records_to_csv(records: list[CalculationRecord]) -> bytes:
    """Serialize records as CSV with a fixed header row and local timestamps."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(
            [
                dt_util.as_local(record.timestamp).strftime(CSV_DATETIME_FORMAT),
                record.height,
                record.volume,
                record.percentage,
            ]
        )
    return buffer.getvalue().encode("utf-8")


def records_to_json(records: list[CalculationRecord]) -> bytes:
    """Serialize records as a pretty-printed JSON array with ISO 8601 timestamps."""
    payload = [record.as_dict() for record in records]
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


class HistoryStore:
    """Own the calculation history for one barrel, newest record first."""

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str | None = None,
        max_history: int = DEFAULT_MAX_HISTORY,
    ) -> None:
        """Initialize the history store."""
        storage_key = f"{STORAGE_KEY}_{entry_id}" if entry_id else STORAGE_KEY
        self._store = Store(hass, STORAGE_VERSION, storage_key)
        self.max_history = max_history
        self._records: list[CalculationRecord] = []

    @property
    def records(self) -> list[CalculationRecord]:
        """Return a copy of the history, newest first."""
        return list(self._records)

    @property
    def is_empty(self) -> bool:
        """Return True when there is no recorded calculation."""
        return not self._records

    def __len__(self) -> int:
        return len(self._records)

    def _serialize(self) -> list[dict]:
        return [record.as_dict() for record in self._records]

    async def async_load(self) -> list[CalculationRecord]:
        """Load persisted history; anything unreadable yields an empty history."""
        try:
            data = await self._store.async_load()
        except (HomeAssistantError, OSError, ValueError) as exc:
            _LOGGER.warning("Could not read calculation history, starting empty: %s", exc)
            self._records = []
            return self.records

        if data is None:
            self._records = []
            return self.records

        if not isinstance(data, list):
            _LOGGER.warning(
                "Ignoring malformed calculation history of type %s",
                type(data).__name__,
            )
            self._records = []
            return self.records

        records: list[CalculationRecord] = []
        for idx, item in enumerate(data):
            if not isinstance(item, dict):
                _LOGGER.debug("Skipping history entry %s: not an object", idx)
                continue
            try:
                records.append(CalculationRecord.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                _LOGGER.debug("Skipping history entry %s: %s", idx, exc)

        self._records = self._trim(records)
        _LOGGER.debug("Loaded %s calculation records", len(self._records))
        return self.records

    def _trim(self, records: list[CalculationRecord]) -> list[CalculationRecord]:
        if self.max_history and len(records) > self.max_history:
            return records[: self.max_history]
        return records

    async def async_append(self, record: CalculationRecord) -> None:
        """Prepend a record and persist the full history immediately.

        The in-memory history is updated even when saving fails; in that
        case PersistenceError is raised for the caller to report.
        """
        self._records = self._trim([record, *self._records])
        await self._async_save()

    async def async_clear(self) -> None:
        """Empty the history and remove the persisted state."""
        self._records = []
        try:
            await self._store.async_remove()
        except OSError as exc:
            raise PersistenceError(f"Could not remove calculation history: {exc}") from exc

    async def _async_save(self) -> None:
        try:
            await self._store.async_save(self._serialize())
        except (HomeAssistantError, OSError) as exc:
            raise PersistenceError(f"Could not save calculation history: {exc}") from exc

    def export_as(self, fmt: str) -> bytes | None:
        """Serialize the current history, or return None when it is empty."""
        if fmt == EXPORT_FORMAT_CSV:
            serializer = records_to_csv
        elif fmt == EXPORT_FORMAT_JSON:
            serializer = records_to_json
        else:
            raise ValueError(f"Unsupported export format: {fmt}")

        if not self._records:
            return None
        return serializer(self._records)
