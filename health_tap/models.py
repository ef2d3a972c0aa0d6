from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class BatteryStatus:
    percent: float
    status: str
    time_left: str = ""
    health: str = ""
    cycle_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "charge_level_pct": self.percent,
            "status": self.status,
        }
        if self.time_left:
            data["time_left"] = self.time_left
        if self.health:
            data["health"] = self.health
        if self.cycle_count > 0:
            data["cycle_count"] = self.cycle_count
        return data


@dataclass(frozen=True)
class ThermalStatus:
    """CPU temperature and fan speed.

    Zero in either field means the value was not determined, not a reading
    of zero.
    """

    cpu_temp_c: float = 0.0
    fan_speed_rpm: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.cpu_temp_c > 0:
            data["cpu_temp_c"] = self.cpu_temp_c
        if self.fan_speed_rpm > 0:
            data["fan_speed_rpm"] = self.fan_speed_rpm
        return data


@dataclass(frozen=True)
class SensorReading:
    label: str
    value: float
    unit: str

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "value": self.value, "unit": self.unit}


@dataclass(frozen=True, eq=False)
class Result(Generic[T]):
    """Outcome of a collection call: either a value or an error.

    Failures compare by error type and arguments, so repeated calls on an
    unchanged host produce equal results.
    """

    value: T | None = None
    error: Exception | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def _key(self) -> tuple[Any, ...]:
        if self.error is None:
            return (self.value, None, ())
        return (self.value, type(self.error), self.error.args)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Result):
            return NotImplemented
        return self._key() == other._key()
