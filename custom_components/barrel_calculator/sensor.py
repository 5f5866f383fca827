"""Sensor platform for Barrel Calculator."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import PERCENTAGE, UnitOfLength, UnitOfVolume
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN, HISTORY_ATTRIBUTE_RECORDS
from .coordinator import BarrelCalculatorCoordinator

_LOGGER = logging.getLogger(__name__)

STATUS_IDLE = "idle"
STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_EXCEEDED = "exceeded"


def _build_sensors(coordinator: BarrelCalculatorCoordinator) -> list[SensorEntity]:
    """Build the sensor entities for a coordinator."""
    return [
        BarrelVolumeSensor(coordinator),
        BarrelFillLevelSensor(coordinator),
        BarrelHeightSensor(coordinator),
        BarrelStatusSensor(coordinator),
        BarrelHistorySensor(coordinator),
    ]


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the sensor platform from a config entry."""
    coordinator = hass.data[DOMAIN].get(entry.entry_id)
    if not isinstance(coordinator, BarrelCalculatorCoordinator):
        _LOGGER.error("No coordinator found for entry %s", entry.entry_id)
        return

    async_add_entities(_build_sensors(coordinator))


class BarrelSensorBase(CoordinatorEntity[BarrelCalculatorCoordinator], SensorEntity):
    """Common device and naming setup for barrel sensors."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: BarrelCalculatorCoordinator, key: str) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        device_id = coordinator.entry_id or DOMAIN
        self._attr_unique_id = f"{device_id}_{key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, device_id)},
            name=coordinator.barrel_name,
            manufacturer="Barrel Calculator",
            model=f"{coordinator.profile.capacity_liters:g} L ({coordinator.profile.mode})",
        )


class BarrelVolumeSensor(BarrelSensorBase):
    """Liquid volume from the last valid calculation."""

    def __init__(self, coordinator: BarrelCalculatorCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "volume")
        self._attr_name = "Volume"
        self._attr_device_class = SensorDeviceClass.VOLUME
        self._attr_state_class = SensorStateClass.MEASUREMENT
        self._attr_native_unit_of_measurement = UnitOfVolume.LITERS
        self._attr_icon = "mdi:barrel"

    @property
    def native_value(self) -> float | None:
        """Return the state of the sensor."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.volume

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return additional attributes."""
        profile = self.coordinator.profile
        return {
            "calculation_mode": profile.mode,
            "max_height_cm": profile.max_height_cm,
            "capacity_liters": profile.capacity_liters,
            "radius_cm": profile.radius_cm,
        }


class BarrelFillLevelSensor(BarrelSensorBase):
    """Fill percentage from the last valid calculation."""

    def __init__(self, coordinator: BarrelCalculatorCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "fill_level")
        self._attr_name = "Fill level"
        self._attr_state_class = SensorStateClass.MEASUREMENT
        self._attr_native_unit_of_measurement = PERCENTAGE
        self._attr_icon = "mdi:gauge"

    @property
    def native_value(self) -> float | None:
        """Return the state of the sensor."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.percentage


class BarrelHeightSensor(BarrelSensorBase):
    """Measured liquid height of the last valid calculation."""

    def __init__(self, coordinator: BarrelCalculatorCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "height")
        self._attr_name = "Liquid height"
        self._attr_device_class = SensorDeviceClass.DISTANCE
        self._attr_state_class = SensorStateClass.MEASUREMENT
        self._attr_native_unit_of_measurement = UnitOfLength.CENTIMETERS
        self._attr_icon = "mdi:arrow-expand-vertical"

    @property
    def native_value(self) -> float | None:
        """Return the state of the sensor."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.height


class BarrelStatusSensor(BarrelSensorBase):
    """Outcome of the last calculation, including input errors."""

    def __init__(self, coordinator: BarrelCalculatorCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "status")
        self._attr_name = "Status"
        self._attr_device_class = SensorDeviceClass.ENUM
        self._attr_options = [STATUS_IDLE, STATUS_OK, STATUS_ERROR, STATUS_EXCEEDED]
        self._attr_icon = "mdi:information-outline"

    @property
    def native_value(self) -> str | None:
        """Return the state of the sensor."""
        data = self.coordinator.data
        if data is None:
            return None
        if data.exceeded:
            return STATUS_EXCEEDED
        if data.error:
            return STATUS_ERROR
        if data.volume is None:
            return STATUS_IDLE
        return STATUS_OK

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return additional attributes."""
        data = self.coordinator.data
        if data is None:
            return {}

        attrs: dict[str, Any] = {
            "max_volume_liters": data.max_volume,
            "capacity_liters": self.coordinator.profile.capacity_liters,
        }
        if data.error:
            attrs["message"] = data.error
        return attrs


class BarrelHistorySensor(BarrelSensorBase):
    """Number of recorded calculations, with the most recent as attributes."""

    def __init__(self, coordinator: BarrelCalculatorCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "history")
        self._attr_name = "Calculations"
        self._attr_state_class = SensorStateClass.MEASUREMENT
        self._attr_icon = "mdi:history"

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.history_count

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return additional attributes."""
        records = self.coordinator.history.records[:HISTORY_ATTRIBUTE_RECORDS]
        attrs: dict[str, Any] = {
            "recent": [record.as_dict() for record in records],
        }
        if records:
            attrs["last_calculation"] = records[0].timestamp.isoformat()
        return attrs
