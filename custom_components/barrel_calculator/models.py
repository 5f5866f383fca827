"""History record model for Barrel Calculator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from homeassistant.util import dt as dt_util
from homeassistant.util.ulid import ulid_now

from .calculator import CalculationResult


@dataclass(frozen=True)
class CalculationRecord:
    """A successful calculation, as kept in history."""

    id: str
    height: float
    volume: float
    percentage: float
    timestamp: datetime

    @classmethod
    def from_result(
        cls, result: CalculationResult, timestamp: datetime | None = None
    ) -> CalculationRecord:
        """Create a new record for a calculation result."""
        return cls(
            id=ulid_now(),
            height=result.height,
            volume=result.volume_liters,
            percentage=result.percentage,
            timestamp=timestamp or dt_util.now(),
        )

    def as_dict(self) -> dict[str, Any]:
        """Serialize for storage and JSON export."""
        return {
            "id": self.id,
            "height": self.height,
            "volume": self.volume,
            "percentage": self.percentage,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CalculationRecord:
        """Deserialize a stored record.

        Raises KeyError, TypeError or ValueError for malformed data.
        """
        timestamp = dt_util.parse_datetime(data["timestamp"])
        if timestamp is None:
            raise ValueError(f"Invalid timestamp: {data['timestamp']!r}")

        record_id = data["id"]
        if not isinstance(record_id, str) or not record_id:
            raise ValueError(f"Invalid record id: {record_id!r}")

        return cls(
            id=record_id,
            height=float(data["height"]),
            volume=float(data["volume"]),
            percentage=float(data["percentage"]),
            timestamp=timestamp,
        )
