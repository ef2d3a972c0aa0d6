"""Exception hierarchy for hardware health collection."""


class HealthTapError(Exception):
    """Base exception for all health-tap errors."""


class CollectionError(HealthTapError):
    """A telemetry category could not be collected."""


class NoBatteryDataError(CollectionError):
    """No battery source produced a reading.

    Expected on desktops and servers without a battery.
    """

    def __init__(self, message: str = "no battery data found") -> None:
        super().__init__(message)


class BatteryProbeError(CollectionError):
    """A battery probe failed unexpectedly while running."""

    def __init__(self, probe: str, detail: str) -> None:
        self.probe = probe
        self.detail = detail
        super().__init__(f"battery collection failed: {detail}")


class SensorFacilityError(HealthTapError):
    """The host temperature sensor facility is not supported here."""
