"""Volume calculation for liquid in an upright barrel."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import math
from typing import Any, Mapping

from .const import (
    CONF_CALCULATION_MODE,
    CONF_CAPACITY,
    CONF_MAX_HEIGHT,
    CONF_PROFILE,
    CONF_RADIUS,
    DEFAULT_CALCULATION_MODE,
    DEFAULT_CAPACITY,
    DEFAULT_MAX_HEIGHT,
    DEFAULT_RADIUS,
    MAX_CAPACITY_LIMIT,
    MAX_HEIGHT_LIMIT,
    MAX_RADIUS_LIMIT,
    MODE_CYLINDRICAL,
    MODE_LINEAR,
    PROFILE_PRESETS,
)

_PI = Decimal(repr(math.pi))
_TWO_PLACES = Decimal("0.01")
_ONE_PLACE = Decimal("0.1")


class InputError(ValueError):
    """Base class for rejected height measurements."""


class NotANumberError(InputError):
    """Height could not be parsed as a finite decimal."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Height {value!r} is not a number")
        self.value = value


class NegativeHeightError(InputError):
    """Height is below zero."""

    def __init__(self, height: float) -> None:
        super().__init__(f"Height {height} cm is negative")
        self.height = height


class ExceedsCapacityError(InputError):
    """Height is above the barrel's maximum fill height.

    Carries the maximum volume so callers can still render a
    "maximum exceeded" result.
    """

    def __init__(
        self, height: float, max_height_cm: float, max_volume_liters: float
    ) -> None:
        super().__init__(
            f"Height {height} cm exceeds the maximum ({max_height_cm} cm); "
            f"maximum volume is {max_volume_liters} L"
        )
        self.height = height
        self.max_height_cm = max_height_cm
        self.max_volume_liters = max_volume_liters


@dataclass(frozen=True)
class CalculationResult:
    """Volume and fill level derived from a single height measurement."""

    height: float
    volume_liters: float
    percentage: float


@dataclass(frozen=True)
class BarrelProfile:
    """Barrel geometry and the formula used to turn height into volume."""

    mode: str = DEFAULT_CALCULATION_MODE
    max_height_cm: float = DEFAULT_MAX_HEIGHT
    capacity_liters: float = DEFAULT_CAPACITY
    radius_cm: float = DEFAULT_RADIUS

    def __post_init__(self) -> None:
        if self.mode not in (MODE_LINEAR, MODE_CYLINDRICAL):
            raise ValueError(f"Unknown calculation mode: {self.mode}")
        # NaN fails every comparison
        if not 0 < self.max_height_cm <= MAX_HEIGHT_LIMIT:
            raise ValueError(f"max_height_cm must be in (0, {MAX_HEIGHT_LIMIT:g}]")
        linear = self.mode == MODE_LINEAR
        if linear and not 0 < self.capacity_liters <= MAX_CAPACITY_LIMIT:
            raise ValueError(
                f"capacity_liters must be in (0, {MAX_CAPACITY_LIMIT:g}]"
            )
        if not linear and not 0 < self.radius_cm <= MAX_RADIUS_LIMIT:
            raise ValueError(f"radius_cm must be in (0, {MAX_RADIUS_LIMIT:g}]")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> BarrelProfile:
        """Build a profile from config entry data.

        Values missing from *config* are taken from the selected preset,
        then from the defaults.
        """
        preset = PROFILE_PRESETS.get(config.get(CONF_PROFILE), {})

        def _value(key: str, default: Any) -> Any:
            value = config.get(key)
            if value is None:
                value = preset.get(key, default)
            return value

        return cls(
            mode=_value(CONF_CALCULATION_MODE, DEFAULT_CALCULATION_MODE),
            max_height_cm=float(_value(CONF_MAX_HEIGHT, DEFAULT_MAX_HEIGHT)),
            capacity_liters=float(_value(CONF_CAPACITY, DEFAULT_CAPACITY)),
            radius_cm=float(_value(CONF_RADIUS, DEFAULT_RADIUS)),
        )

    @property
    def max_volume_liters(self) -> float:
        """Volume produced by the formula at maximum height."""
        return float(_volume(Decimal(repr(self.max_height_cm)), self))


def parse_height(height_input: Any) -> Decimal:
    """Parse a height measurement into a finite Decimal.

    Accepts numbers and strings; a decimal comma is treated as a point.
    """
    if height_input is None or isinstance(height_input, bool):
        raise NotANumberError(height_input)

    if isinstance(height_input, (int, float)):
        text = repr(height_input)
    else:
        text = str(height_input).strip().replace(",", ".")

    try:
        height = Decimal(text)
    except InvalidOperation as exc:
        raise NotANumberError(height_input) from exc

    if not height.is_finite():
        raise NotANumberError(height_input)
    return height


def _volume(height: Decimal, profile: BarrelProfile) -> Decimal:
    if profile.mode == MODE_CYLINDRICAL:
        radius = Decimal(repr(profile.radius_cm))
        liters = _PI * radius * radius * height / 1000
        return liters.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)

    ratio = height / Decimal(repr(profile.max_height_cm))
    liters = ratio * Decimal(repr(profile.capacity_liters))
    return liters.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate(height_input: Any, profile: BarrelProfile) -> CalculationResult:
    """Calculate liquid volume and fill percentage for a height in cm.

    Raises NotANumberError, NegativeHeightError or ExceedsCapacityError.
    No rounding is applied before the final quantize step.
    """
    height = parse_height(height_input)

    if height < 0:
        raise NegativeHeightError(float(height))
    # Drop the sign of "-0"
    height = abs(height)

    max_height = Decimal(repr(profile.max_height_cm))
    if height > max_height:
        raise ExceedsCapacityError(
            float(height), profile.max_height_cm, profile.max_volume_liters
        )

    percentage = (height / max_height * 100).quantize(
        _TWO_PLACES, rounding=ROUND_HALF_UP
    )

    return CalculationResult(
        height=float(height),
        volume_liters=float(_volume(height, profile)),
        percentage=float(percentage),
    )
