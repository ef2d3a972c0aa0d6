from __future__ import annotations

from datetime import datetime, timezone
import logging
import os
import platform
import socket
from typing import Any

from health_tap.config import CollectorConfig
from health_tap.environment import ExecutionEnvironment
from health_tap.exceptions import BatteryProbeError, NoBatteryDataError
from health_tap.models import BatteryStatus, Result, SensorReading, ThermalStatus
from health_tap.parsers import (
    estimate_from_thermal_level,
    parse_cpu_temp,
    parse_die_temperature,
    parse_fan_speed,
    parse_pmset,
    parse_power_health,
)
from health_tap.probes import CallableProbe, CommandProbe, first_success
from health_tap.sensors import read_sensor_temperatures

SCHEMA_NAME = "health-snapshot"
SCHEMA_VERSION = 1

DARWIN = frozenset({"darwin"})
LINUX = frozenset({"linux"})


class TelemetryCollector:
    """Collects battery, thermal and sensor readings for one refresh tick.

    Each category walks its own fallback chain and fails independently.
    """

    def __init__(
        self,
        config: CollectorConfig | None = None,
        env: ExecutionEnvironment | None = None,
    ) -> None:
        self.config = config or CollectorConfig()
        self.env = env or ExecutionEnvironment.detect()
        self.logger = logging.getLogger(self.__class__.__name__)

    def collect(self) -> dict[str, Any]:
        self.logger.debug("Collecting health snapshot.")
        payload: dict[str, Any] = {
            "schema": {"name": SCHEMA_NAME, "version": SCHEMA_VERSION},
            "ts": datetime.now(timezone.utc).isoformat(),
            "host": self._collect_host(),
        }

        batteries = self.collect_batteries()
        if batteries.ok:
            payload["batteries"] = [battery.to_dict() for battery in batteries.unwrap()]
        else:
            payload["battery_error"] = str(batteries.error)

        try:
            payload["thermal"] = self.collect_thermal().to_dict()
        except Exception as exc:  # keep the other categories alive
            self.logger.warning("Thermal collection failed: %s", exc)
            payload["thermal"] = {}

        sensors = self.collect_sensors()
        if sensors.ok:
            payload["sensors"] = [reading.to_dict() for reading in sensors.unwrap()]
        else:
            payload["sensors_error"] = str(sensors.error)

        return payload

    def _collect_host(self) -> dict[str, Any]:
        return {
            "name": socket.gethostname(),
            "system": self.env.system,
            "release": platform.release(),
            "privileged": self.env.privileged,
        }

    # Batteries

    def battery_probes(self) -> list[CommandProbe[Any] | CallableProbe[Any]]:
        return [
            CommandProbe(
                name="pmset",
                command=[self.config.pmset_path, "-g", "batt"],
                timeout_s=self.config.pmset_timeout_s,
                parse=lambda raw: parse_pmset(raw, self._battery_health),
                platforms=DARWIN,
            ),
            CallableProbe(
                name="sysfs",
                collect=self._read_sysfs_batteries,
                platforms=LINUX,
            ),
            CallableProbe(name="psutil", collect=self._read_psutil_battery),
        ]

    def collect_batteries(self) -> Result[list[BatteryStatus]]:
        try:
            found = first_success(self.battery_probes(), self.env)
        except Exception as exc:
            self.logger.warning("Battery probe raised unexpectedly: %s", exc)
            return Result.failure(BatteryProbeError("battery", str(exc)))
        if found is None:
            self.logger.debug("No battery data available.")
            return Result.failure(NoBatteryDataError())
        source, batteries = found
        self.logger.debug("Collected %s battery reading(s) from %s.", len(batteries), source)
        return Result.success(batteries)

    def _battery_health(self) -> tuple[str, int]:
        if self.env.system != "darwin":
            return "", 0
        output = self.env.run(
            [self.config.system_profiler_path, "SPPowerDataType"],
            self.config.profiler_timeout_s,
        )
        if output is None:
            return "", 0
        return parse_power_health(output)

    def _read_sysfs_batteries(self, env: ExecutionEnvironment) -> list[BatteryStatus]:
        batteries: list[BatteryStatus] = []
        for capacity_path in sorted(env.glob_paths(self.config.power_supply_glob)):
            capacity = env.read_file(capacity_path)
            if capacity is None:
                continue
            battery_dir = os.path.dirname(capacity_path)
            status = (env.read_file(os.path.join(battery_dir, "status")) or "").strip()
            try:
                percent = float(capacity.strip())
            except ValueError:
                percent = 0.0
            batteries.append(
                BatteryStatus(
                    percent=percent,
                    status=status or "Unknown",
                    cycle_count=self._read_cycle_count(env, battery_dir),
                )
            )
        return batteries

    @staticmethod
    def _read_cycle_count(env: ExecutionEnvironment, battery_dir: str) -> int:
        raw = env.read_file(os.path.join(battery_dir, "cycle_count"))
        if raw is None:
            return 0
        try:
            return max(0, int(raw.strip()))
        except ValueError:
            return 0

    def _read_psutil_battery(self, env: ExecutionEnvironment) -> list[BatteryStatus]:
        if env.sensors_battery is None:
            return []
        battery = env.sensors_battery()
        if battery is None:
            return []
        if battery.power_plugged is None:
            status = "Unknown"
        elif battery.power_plugged:
            status = "Charging" if battery.percent < 100 else "Charged"
        else:
            status = "Discharging"
        return [
            BatteryStatus(
                percent=float(battery.percent),
                status=status,
                time_left=self._format_secsleft(battery.secsleft),
            )
        ]

    @staticmethod
    def _format_secsleft(secsleft: Any) -> str:
        # psutil reports POWER_TIME_UNKNOWN/UNLIMITED as negative sentinels.
        if not isinstance(secsleft, int) or secsleft < 0:
            return ""
        hours, remainder = divmod(secsleft, 3600)
        return f"{hours}:{remainder // 60:02d}"

    # Thermal

    def cpu_temp_probes(self) -> list[CommandProbe[float]]:
        return [
            CommandProbe(
                name="osx-cpu-temp",
                command=[self.config.osx_cpu_temp_path],
                timeout_s=self.config.cpu_temp_timeout_s,
                parse=parse_cpu_temp,
            ),
            CommandProbe(
                name="powermetrics",
                command=[
                    self.config.powermetrics_path,
                    "-n", "1",
                    "--samplers", "thermal",
                    "-i", "100",
                ],
                timeout_s=self.config.powermetrics_timeout_s,
                parse=parse_die_temperature,
                requires_privilege=True,
            ),
            # Approximate: maps the kernel throttling level to degrees.
            CommandProbe(
                name="thermal-level",
                command=[self.config.sysctl_path, "-n", "machdep.xcpm.cpu_thermal_level"],
                timeout_s=self.config.sysctl_timeout_s,
                parse=lambda raw: estimate_from_thermal_level(
                    raw,
                    self.config.thermal_level_base_c,
                    self.config.thermal_level_step_c,
                ),
                check_available=False,
            ),
        ]

    def collect_thermal(self) -> ThermalStatus:
        if self.env.system != "darwin":
            return ThermalStatus()

        fan_speed = 0
        report = self.env.run(
            [self.config.system_profiler_path, "SPPowerDataType"],
            self.config.profiler_timeout_s,
        )
        if report is not None:
            fan_speed = parse_fan_speed(report)

        cpu_temp = 0.0
        found = first_success(self.cpu_temp_probes(), self.env)
        if found is not None:
            source, cpu_temp = found
            self.logger.debug("CPU temperature %.1fC from %s.", cpu_temp, source)

        return ThermalStatus(cpu_temp_c=cpu_temp, fan_speed_rpm=fan_speed)

    # Sensors

    def collect_sensors(self) -> Result[list[SensorReading]]:
        try:
            readings = read_sensor_temperatures(
                self.env.sensors_temperatures, max_value=self.config.sensor_max_c
            )
        except Exception as exc:
            self.logger.debug("Sensor facility failed: %s", exc)
            return Result.failure(exc)
        return Result.success(readings)
