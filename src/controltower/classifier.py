"""Threshold-based sensor status classification.

Every function here is pure: the same reading (and thresholds) always
yields the same result. Bands are half-open ``[lower, upper)`` so a value
sitting exactly on a cut point belongs to the upper band, and every
float other than NaN lands in exactly one band.

Severity bands::

    LOW < NOMINAL < ELEVATED < CRITICAL

Raising a reading never lowers its band.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from numbers import Real

DEFAULT_CRITICAL_TEMPERATURE = 28.0
DEFAULT_CRITICAL_GAS = 300.0

# Temperature below this is a cold-chain excursion.
_TEMP_LOW_BELOW = 2.0
# Elevated band opens this many degrees under the critical threshold.
_TEMP_ELEVATED_MARGIN = 3.0

_HUMIDITY_LOW_BELOW = 60.0
_HUMIDITY_ELEVATED_FROM = 85.0
_HUMIDITY_CRITICAL_FROM = 95.0


class Severity(enum.IntEnum):
    """Ordered severity of a single reading."""

    LOW = 0
    NOMINAL = 1
    ELEVATED = 2
    CRITICAL = 3


class OverallLevel(enum.StrEnum):
    """Marker used by timelines and status dots."""

    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


@dataclass(frozen=True, slots=True)
class SensorStatus:
    """Classification of one reading: CSS class, label and severity."""

    css_class: str
    label: str
    severity: Severity


_LOW = "status-low"
_GOOD = "status-good"
_WARNING = "status-warning"
_CRITICAL = "status-critical"


def _coerce(value: float, dimension: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"{dimension} reading must be a number, got {value!r}")
    number = float(value)
    if math.isnan(number):
        raise ValueError(f"{dimension} reading is NaN")
    return number


def _band(value: float, bands: tuple[tuple[float, SensorStatus], ...], top: SensorStatus) -> SensorStatus:
    for upper, status in bands:
        if value < upper:
            return status
    return top


def classify_temperature(value: float, *, critical: float = DEFAULT_CRITICAL_TEMPERATURE) -> SensorStatus:
    """Classify a cargo temperature in °C.

    ``critical`` is the user's critical temperature threshold; the elevated
    band opens three degrees below it.
    """
    reading = _coerce(value, "temperature")
    limit = _coerce(critical, "critical temperature")
    elevated_from = max(_TEMP_LOW_BELOW, limit - _TEMP_ELEVATED_MARGIN)
    return _band(
        reading,
        (
            (_TEMP_LOW_BELOW, SensorStatus(_LOW, "Too Cold", Severity.LOW)),
            (elevated_from, SensorStatus(_GOOD, "Optimal", Severity.NOMINAL)),
            (max(elevated_from, limit), SensorStatus(_WARNING, "Warning", Severity.ELEVATED)),
        ),
        SensorStatus(_CRITICAL, "Critical", Severity.CRITICAL),
    )


def classify_gas(value: float, *, critical: float = DEFAULT_CRITICAL_GAS) -> SensorStatus:
    """Classify an ethylene reading in ppm."""
    reading = _coerce(value, "gas")
    limit = _coerce(critical, "critical gas")
    return _band(
        reading,
        (
            (limit / 2, SensorStatus(_GOOD, "Safe", Severity.NOMINAL)),
            (limit, SensorStatus(_WARNING, "Rising", Severity.ELEVATED)),
        ),
        SensorStatus(_CRITICAL, "Critical", Severity.CRITICAL),
    )


def classify_humidity(value: float) -> SensorStatus:
    """Classify relative humidity in percent."""
    reading = _coerce(value, "humidity")
    return _band(
        reading,
        (
            (_HUMIDITY_LOW_BELOW, SensorStatus(_LOW, "Dry", Severity.LOW)),
            (_HUMIDITY_ELEVATED_FROM, SensorStatus(_GOOD, "Optimal", Severity.NOMINAL)),
            (_HUMIDITY_CRITICAL_FROM, SensorStatus(_WARNING, "High", Severity.ELEVATED)),
        ),
        SensorStatus(_CRITICAL, "Saturated", Severity.CRITICAL),
    )


_LEVEL_BY_SEVERITY: dict[Severity, OverallLevel] = {
    Severity.LOW: OverallLevel.GREEN,
    Severity.NOMINAL: OverallLevel.GREEN,
    Severity.ELEVATED: OverallLevel.ORANGE,
    Severity.CRITICAL: OverallLevel.RED,
}


def classify_overall(
    temperature: float,
    gas: float,
    *,
    critical_temperature: float = DEFAULT_CRITICAL_TEMPERATURE,
    critical_gas: float = DEFAULT_CRITICAL_GAS,
) -> OverallLevel:
    """Combine temperature and gas into a single marker (worse of the two)."""
    worst = max(
        classify_temperature(temperature, critical=critical_temperature).severity,
        classify_gas(gas, critical=critical_gas).severity,
    )
    return _LEVEL_BY_SEVERITY[worst]
