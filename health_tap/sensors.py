from __future__ import annotations

from typing import Any, Callable, Iterable

from health_tap.exceptions import SensorFacilityError
from health_tap.models import SensorReading
from health_tap.parsers import prettify_label

DEFAULT_UNIT = "°C"
MAX_PLAUSIBLE_VALUE = 150.0


def filter_readings(
    raw: Iterable[tuple[str, float]],
    unit: str = DEFAULT_UNIT,
    max_value: float = MAX_PLAUSIBLE_VALUE,
) -> list[SensorReading]:
    """Drop implausible values and normalize keys into labels.

    Every emitted value lies in ``(0, max_value]``.
    """
    max_value = min(max_value, MAX_PLAUSIBLE_VALUE)
    readings: list[SensorReading] = []
    for key, value in raw:
        if value is None or not 0 < value <= max_value:
            continue
        readings.append(
            SensorReading(label=prettify_label(key), value=float(value), unit=unit)
        )
    return readings


def _flatten(temperatures: dict[str, list[Any]]) -> list[tuple[str, float]]:
    entries: list[tuple[str, float]] = []
    for chip, chip_entries in temperatures.items():
        for entry in chip_entries:
            key = getattr(entry, "label", "") or chip
            entries.append((key, entry.current))
    return entries


def read_sensor_temperatures(
    query: Callable[[], dict[str, list[Any]]] | None,
    unit: str = DEFAULT_UNIT,
    max_value: float = MAX_PLAUSIBLE_VALUE,
) -> list[SensorReading]:
    """Read temperatures through a psutil ``sensors_temperatures``-style query.

    Errors raised by the query propagate unchanged.
    """
    if query is None:
        raise SensorFacilityError("temperature sensors not supported on this platform")
    temperatures = query()
    return filter_readings(_flatten(temperatures or {}), unit=unit, max_value=max_value)
