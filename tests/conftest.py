"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import fnmatch
from typing import Callable

import pytest

from health_tap.environment import ExecutionEnvironment


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "darwin: mark test as macOS-specific")
    config.addinivalue_line("markers", "linux: mark test as Linux-specific")
    config.addinivalue_line("markers", "integration: mark test as integration test")


class FakeRunner:
    """Stands in for CommandRunner.

    ``outputs`` maps the program name to its stdout (or None for a failed
    run). Programs listed in ``forbidden`` fail the test if invoked.
    """

    def __init__(
        self,
        outputs: dict[str, str | None] | None = None,
        forbidden: set[str] | None = None,
    ) -> None:
        self.outputs = outputs or {}
        self.forbidden = forbidden or set()
        self.calls: list[tuple[list[str], float]] = []

    def run(self, command: list[str], timeout_s: float) -> str | None:
        if command[0] in self.forbidden:
            raise AssertionError(f"{command[0]} must not be invoked")
        self.calls.append((command, timeout_s))
        return self.outputs.get(command[0])

    def programs(self) -> list[str]:
        return [command[0] for command, _ in self.calls]


@pytest.fixture
def make_env() -> Callable[..., ExecutionEnvironment]:
    """Build an ExecutionEnvironment with no access to the real host."""

    def factory(
        system: str = "linux",
        privileged: bool = False,
        runner: FakeRunner | None = None,
        installed: set[str] | None = None,
        files: dict[str, str] | None = None,
        sensors_temperatures=None,
        sensors_battery=None,
    ) -> ExecutionEnvironment:
        installed = installed or set()
        files = files or {}

        def glob_paths(pattern: str) -> list[str]:
            return [path for path in files if fnmatch.fnmatch(path, pattern)]

        return ExecutionEnvironment(
            system=system,
            privileged=privileged,
            runner=runner or FakeRunner(),
            which=lambda name: f"/usr/bin/{name}" if name in installed else None,
            read_file=files.get,
            glob_paths=glob_paths,
            sensors_temperatures=sensors_temperatures,
            sensors_battery=sensors_battery,
        )

    return factory
