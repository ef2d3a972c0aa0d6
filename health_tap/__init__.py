"""Health Tap hardware health telemetry."""

from health_tap.config import AppConfig, CollectorConfig, load_config
from health_tap.collector import TelemetryCollector
from health_tap.environment import ExecutionEnvironment
from health_tap.models import BatteryStatus, Result, SensorReading, ThermalStatus
from health_tap.schema import validate_payload

__all__ = [
    "AppConfig",
    "BatteryStatus",
    "CollectorConfig",
    "ExecutionEnvironment",
    "Result",
    "SensorReading",
    "TelemetryCollector",
    "ThermalStatus",
    "load_config",
    "validate_payload",
]
