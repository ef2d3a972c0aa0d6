"""Parsers for the loosely structured text printed by power and thermal tools.

All functions are pure: they take captured output and return typed values,
falling back to empty/zero results when an anchor line is missing.
"""
from __future__ import annotations

from typing import Callable

from health_tap.models import BatteryStatus

HealthLookup = Callable[[], "tuple[str, int]"]


def parse_pmset(
    raw: str, health_lookup: HealthLookup | None = None
) -> list[BatteryStatus]:
    """Parse ``pmset -g batt`` output into battery readings.

    Example input::

        Now drawing from 'Battery Power'
         -InternalBattery-0 (id=123)	87%; discharging; 4:12 remaining present: true

    ``health_lookup`` is called at most once, on the first reading, and its
    result is attached to every reading from this call.
    """
    batteries: list[BatteryStatus] = []
    time_left = ""
    health: tuple[str, int] | None = None

    for line in raw.splitlines():
        if "remaining" in line:
            parts = line.split()
            for index, part in enumerate(parts):
                if part == "remaining" and index > 0:
                    time_left = parts[index - 1]

        if "%" not in line:
            continue

        fields = line.split()
        percent: float | None = None
        status = "Unknown"
        for index, token in enumerate(fields):
            if "%" not in token:
                continue
            value = token.removesuffix(";").removesuffix("%")
            try:
                percent = float(value)
            except ValueError:
                break
            if index + 1 < len(fields):
                status = fields[index + 1].removesuffix(";") or "Unknown"
            break
        if percent is None:
            continue

        if health is None:
            health = health_lookup() if health_lookup is not None else ("", 0)
        batteries.append(
            BatteryStatus(
                percent=percent,
                status=status,
                time_left=time_left,
                health=health[0],
                cycle_count=health[1],
            )
        )
    return batteries


def _value_after_colon(line: str) -> str:
    return line.split(":", 1)[1].strip()


def parse_power_health(raw: str) -> tuple[str, int]:
    """Return ``(condition, cycle_count)`` from ``system_profiler SPPowerDataType``."""
    health = ""
    cycles = 0
    for line in raw.splitlines():
        if ":" not in line:
            continue
        lower = line.lower()
        if "cycle count" in lower:
            try:
                cycles = max(0, int(_value_after_colon(line)))
            except ValueError:
                cycles = 0
        if "condition" in lower:
            health = _value_after_colon(line)
    return health, cycles


def parse_fan_speed(raw: str) -> int:
    """Return the fan speed in RPM from a power data report, or 0."""
    speed = 0
    for line in raw.splitlines():
        lower = line.lower()
        if "fan" not in lower or "speed" not in lower or ":" not in line:
            continue
        tokens = _value_after_colon(line).split()
        if not tokens:
            speed = 0
            continue
        try:
            speed = max(0, int(tokens[0]))
        except ValueError:
            speed = 0
    return speed


def parse_cpu_temp(raw: str) -> float | None:
    """Parse ``osx-cpu-temp`` output such as ``42.1°C``."""
    value = raw.strip().removesuffix("°C").removesuffix("C").strip()
    try:
        temp = float(value)
    except ValueError:
        return None
    return temp if temp > 0 else None


def parse_die_temperature(raw: str) -> float | None:
    """Parse the ``CPU die temperature: 35.43 C`` line from powermetrics."""
    for line in raw.splitlines():
        if "CPU die temperature" not in line or ":" not in line:
            continue
        value = _value_after_colon(line).removesuffix(" C").removesuffix("C").strip()
        try:
            temp = float(value)
        except ValueError:
            continue
        if temp > 0:
            return temp
    return None


def estimate_from_thermal_level(
    raw: str, base_c: float = 45.0, step_c: float = 0.5
) -> float | None:
    """Estimate CPU temperature from ``machdep.xcpm.cpu_thermal_level``.

    This is an approximation, not a sensor reading: the kernel reports a
    throttling level and the level is mapped linearly to ``base + level * step``
    degrees. The calibration is unverified.
    """
    try:
        level = int(raw.strip())
    except ValueError:
        return None
    if level < 0:
        return None
    return base_c + level * step_c


def prettify_label(key: str) -> str:
    """Turn an SMC-style sensor key into a display label.

    >>> prettify_label("TCXC_PROC")
    'XC PROC'
    """
    key = key.strip()
    key = key.removeprefix("TC")
    return key.replace("_", " ")
