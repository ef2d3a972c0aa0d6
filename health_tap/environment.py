"""Execution context handed to the collectors.

Platform, privilege and every outside capability (processes, files, globbing,
command lookup, psutil sensors) live here so tests can simulate any host.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import glob
import os
from pathlib import Path
import platform
import shutil
from typing import Any, Callable

import psutil

from health_tap.runner import CommandRunner, command_exists


def read_text(path: str) -> str | None:
    """Read a file and return its contents, or None if it can't be read."""
    try:
        return Path(path).read_text()
    except (FileNotFoundError, PermissionError, OSError):
        return None


def is_privileged() -> bool:
    geteuid = getattr(os, "geteuid", None)
    if geteuid is None:
        return False
    return geteuid() == 0


@dataclass(frozen=True)
class ExecutionEnvironment:
    system: str
    privileged: bool = False
    runner: CommandRunner = field(default_factory=CommandRunner)
    which: Callable[[str], str | None] = shutil.which
    read_file: Callable[[str], str | None] = read_text
    glob_paths: Callable[[str], list[str]] = glob.glob
    sensors_temperatures: Callable[[], Any] | None = None
    sensors_battery: Callable[[], Any] | None = None

    @classmethod
    def detect(cls, runner: CommandRunner | None = None) -> ExecutionEnvironment:
        return cls(
            system=platform.system().lower(),
            privileged=is_privileged(),
            runner=runner or CommandRunner(),
            sensors_temperatures=getattr(psutil, "sensors_temperatures", None),
            sensors_battery=getattr(psutil, "sensors_battery", None),
        )

    def command_exists(self, name: str) -> bool:
        return command_exists(name, self.which)

    def run(self, command: list[str], timeout_s: float) -> str | None:
        return self.runner.run(command, timeout_s)
