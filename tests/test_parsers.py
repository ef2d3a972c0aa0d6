"""Tests for the text-output parsers."""
from __future__ import annotations

from unittest.mock import Mock

import pytest

from health_tap.exceptions import NoBatteryDataError, SensorFacilityError
from health_tap.models import BatteryStatus, Result
from health_tap.parsers import (
    estimate_from_thermal_level,
    parse_cpu_temp,
    parse_die_temperature,
    parse_fan_speed,
    parse_pmset,
    parse_power_health,
    prettify_label,
)

PMSET_DISCHARGING = """\
Now drawing from 'Battery Power'
 -InternalBattery-0 (id=4653155)	87%; Discharging; 1:45 remaining present: true
"""

PMSET_AC = """\
Now drawing from 'AC Power'
 -InternalBattery-0 (id=4653155)	100%; charged; 0:00 remaining present: true
"""

SYSTEM_PROFILER_POWER = """\
Power:

    Battery Information:

      Model Information:
          Manufacturer: SMP
          Device Name: bq40z651
      Charge Information:
          State of Charge (%): 87
      Health Information:
          Cycle Count: 312
          Condition: Normal
          Maximum Capacity: 89%
    System Power Settings:
      AC Power:
          Fan Speed: 1200 RPM
"""


class TestParsePmset:
    def test_percent_and_status(self):
        batteries = parse_pmset("InternalBattery-0 87% Discharging;")

        assert batteries == [BatteryStatus(percent=87.0, status="Discharging")]

    def test_time_remaining_before_percent_line(self):
        raw = "1:45 remaining\nInternalBattery-0 87%; Discharging;\n"

        batteries = parse_pmset(raw)

        assert len(batteries) == 1
        assert batteries[0].time_left == "1:45"

    def test_real_output(self):
        batteries = parse_pmset(PMSET_DISCHARGING)

        assert len(batteries) == 1
        assert batteries[0].percent == 87.0
        assert batteries[0].status == "Discharging"
        assert batteries[0].time_left == "1:45"

    def test_charged_lowercase_status_kept(self):
        batteries = parse_pmset(PMSET_AC)

        assert batteries[0].percent == 100.0
        assert batteries[0].status == "charged"

    def test_no_percent_yields_empty(self):
        assert parse_pmset("Now drawing from 'AC Power'\nno batteries here\n") == []

    def test_empty_input(self):
        assert parse_pmset("") == []

    def test_unparsable_percent_skips_line(self):
        raw = "battery ??%; charging;\nInternalBattery-1 42%; charging;\n"

        batteries = parse_pmset(raw)

        assert batteries == [BatteryStatus(percent=42.0, status="charging")]

    def test_missing_status_defaults_to_unknown(self):
        batteries = parse_pmset("InternalBattery-0 55%")

        assert batteries[0].status == "Unknown"

    def test_multiple_batteries_share_time_left(self):
        raw = (
            "2:10 remaining\n"
            "InternalBattery-0 80%; discharging;\n"
            "InternalBattery-1 60%; discharging;\n"
        )

        batteries = parse_pmset(raw)

        assert [b.percent for b in batteries] == [80.0, 60.0]
        assert all(b.time_left == "2:10" for b in batteries)

    def test_health_lookup_called_once_and_attached(self):
        lookup = Mock(return_value=("Normal", 312))
        raw = "InternalBattery-0 80%; discharging;\nInternalBattery-1 60%; charging;\n"

        batteries = parse_pmset(raw, lookup)

        lookup.assert_called_once_with()
        assert all(b.health == "Normal" and b.cycle_count == 312 for b in batteries)

    def test_health_lookup_not_called_without_readings(self):
        lookup = Mock(return_value=("Normal", 312))

        assert parse_pmset("no battery", lookup) == []
        lookup.assert_not_called()


class TestParsePowerHealth:
    def test_condition_and_cycles(self):
        assert parse_power_health(SYSTEM_PROFILER_POWER) == ("Normal", 312)

    def test_missing_lines(self):
        assert parse_power_health("Power:\n  AC Charger Information:\n") == ("", 0)

    def test_unparsable_cycle_count(self):
        assert parse_power_health("Cycle Count: lots\nCondition: Service Recommended") == (
            "Service Recommended",
            0,
        )


class TestParseFanSpeed:
    def test_fan_speed(self):
        assert parse_fan_speed(SYSTEM_PROFILER_POWER) == 1200

    def test_case_insensitive(self):
        assert parse_fan_speed("FAN SPEED: 2400 rpm") == 2400

    def test_no_fan_line(self):
        assert parse_fan_speed("Cycle Count: 10") == 0

    def test_non_numeric_value(self):
        assert parse_fan_speed("Fan Speed: unknown") == 0

    def test_later_unreadable_line_resets_speed(self):
        raw = "Fan Speed: 1800 RPM\nFan Speed: --\n"

        assert parse_fan_speed(raw) == 0


class TestParseCpuTemp:
    @pytest.mark.parametrize(
        "raw, expected",
        [("42.1°C\n", 42.1), ("55.0C", 55.0), (" 61.5 ", 61.5)],
    )
    def test_valid(self, raw, expected):
        assert parse_cpu_temp(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["", "0.0°C", "n/a"])
    def test_invalid(self, raw):
        assert parse_cpu_temp(raw) is None


class TestParseDieTemperature:
    def test_die_temperature(self):
        raw = "**** SMC sensors ****\n\nCPU die temperature: 35.43 C\nGPU die temperature: 30.1 C\n"

        assert parse_die_temperature(raw) == pytest.approx(35.43)

    def test_missing(self):
        assert parse_die_temperature("Current pressure level: Nominal\n") is None


class TestThermalLevelEstimate:
    def test_linear_mapping(self):
        assert estimate_from_thermal_level("0\n") == 45.0
        assert estimate_from_thermal_level("20") == 55.0

    def test_custom_calibration(self):
        assert estimate_from_thermal_level("10", base_c=40.0, step_c=1.0) == 50.0

    @pytest.mark.parametrize("raw", ["", "unknown oid", "-1"])
    def test_unusable(self, raw):
        assert estimate_from_thermal_level(raw) is None


class TestPrettifyLabel:
    def test_prefix_and_underscores(self):
        assert prettify_label("TCXC_PROC") == "XC PROC"

    def test_whitespace_trimmed(self):
        assert prettify_label("  TC0P ") == "0P"

    def test_plain_label_untouched(self):
        assert prettify_label("Package id 0") == "Package id 0"


class TestResultEquality:
    def test_failures_compare_by_type_and_args(self):

        assert Result.failure(NoBatteryDataError()) == Result.failure(NoBatteryDataError())
        assert Result.failure(NoBatteryDataError()) != Result.failure(
            SensorFacilityError("no battery data found")
        )
        assert Result.failure(NoBatteryDataError()) != Result.success([])
