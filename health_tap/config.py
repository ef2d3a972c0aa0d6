from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import configparser

MAX_SENSOR_C = 150.0


@dataclass(frozen=True)
class MqttConfig:
    host: str
    port: int
    base_topic: str
    client_id: str
    username: str | None
    password: str | None
    qos: int
    retain: bool
    tls_enabled: bool
    ca_cert: str | None
    keepalive: int = 60


@dataclass(frozen=True)
class PublishConfig:
    interval_s: int = 15


@dataclass(frozen=True)
class CollectorConfig:
    # Tool paths
    pmset_path: str = "pmset"
    system_profiler_path: str = "system_profiler"
    osx_cpu_temp_path: str = "osx-cpu-temp"
    powermetrics_path: str = "powermetrics"
    sysctl_path: str = "sysctl"
    power_supply_glob: str = "/sys/class/power_supply/BAT*/capacity"
    # Deadlines, in seconds
    pmset_timeout_s: float = 2.0
    profiler_timeout_s: float = 2.0
    cpu_temp_timeout_s: float = 0.5
    powermetrics_timeout_s: float = 2.0
    sysctl_timeout_s: float = 0.5
    # Sensor filtering and thermal-level estimate
    sensor_max_c: float = MAX_SENSOR_C
    thermal_level_base_c: float = 45.0
    thermal_level_step_c: float = 0.5


@dataclass(frozen=True)
class AppConfig:
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    mqtt: MqttConfig | None = None


def _get_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _load_mqtt(parser: configparser.ConfigParser) -> MqttConfig | None:
    if not parser.has_section("mqtt"):
        return None
    mqtt_section = parser["mqtt"]
    return MqttConfig(
        host=mqtt_section.get("host", "localhost"),
        port=mqtt_section.getint("port", 1883),
        base_topic=mqtt_section.get("base_topic", "telemetry/health"),
        client_id=mqtt_section.get("client_id", "health-tap"),
        username=_get_optional(mqtt_section.get("username")),
        password=_get_optional(mqtt_section.get("password")),
        qos=mqtt_section.getint("qos", 0),
        retain=mqtt_section.getboolean("retain", False),
        tls_enabled=mqtt_section.getboolean("tls", False),
        ca_cert=_get_optional(mqtt_section.get("ca_cert")),
        keepalive=mqtt_section.getint("keepalive", 60),
    )


def load_config(path: str | Path) -> AppConfig:
    parser = configparser.ConfigParser()
    read_files = parser.read(path)
    if not read_files:
        raise FileNotFoundError(f"Config file not found: {path}")

    defaults = CollectorConfig()
    # Use parser.get/getfloat with fallback to handle a missing [collector] section
    collector = CollectorConfig(
        pmset_path=parser.get("collector", "pmset_path", fallback=defaults.pmset_path),
        system_profiler_path=parser.get(
            "collector", "system_profiler_path", fallback=defaults.system_profiler_path
        ),
        osx_cpu_temp_path=parser.get(
            "collector", "osx_cpu_temp_path", fallback=defaults.osx_cpu_temp_path
        ),
        powermetrics_path=parser.get(
            "collector", "powermetrics_path", fallback=defaults.powermetrics_path
        ),
        sysctl_path=parser.get("collector", "sysctl_path", fallback=defaults.sysctl_path),
        power_supply_glob=parser.get(
            "collector", "power_supply_glob", fallback=defaults.power_supply_glob
        ),
        pmset_timeout_s=parser.getfloat(
            "collector", "pmset_timeout_s", fallback=defaults.pmset_timeout_s
        ),
        profiler_timeout_s=parser.getfloat(
            "collector", "profiler_timeout_s", fallback=defaults.profiler_timeout_s
        ),
        cpu_temp_timeout_s=parser.getfloat(
            "collector", "cpu_temp_timeout_s", fallback=defaults.cpu_temp_timeout_s
        ),
        powermetrics_timeout_s=parser.getfloat(
            "collector", "powermetrics_timeout_s", fallback=defaults.powermetrics_timeout_s
        ),
        sysctl_timeout_s=parser.getfloat(
            "collector", "sysctl_timeout_s", fallback=defaults.sysctl_timeout_s
        ),
        # The limit can only be lowered.
        sensor_max_c=min(
            parser.getfloat("collector", "sensor_max_c", fallback=defaults.sensor_max_c),
            MAX_SENSOR_C,
        ),
        thermal_level_base_c=parser.getfloat(
            "collector", "thermal_level_base_c", fallback=defaults.thermal_level_base_c
        ),
        thermal_level_step_c=parser.getfloat(
            "collector", "thermal_level_step_c", fallback=defaults.thermal_level_step_c
        ),
    )

    publish = PublishConfig(
        interval_s=parser.getint("publish", "interval_s", fallback=15),
    )

    return AppConfig(collector=collector, publish=publish, mqtt=_load_mqtt(parser))
