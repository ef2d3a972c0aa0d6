"""Probe descriptors and the ordered fallback chain that runs them.

A chain is a list of probes tried in order until one yields a usable value.
Adding or reordering a source means editing the list, not the control flow.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Generic, Iterable, TypeVar

from health_tap.environment import ExecutionEnvironment

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _is_usable(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


@dataclass(frozen=True)
class CommandProbe(Generic[T]):
    """Run an external utility and parse its output."""

    name: str
    command: list[str]
    timeout_s: float
    parse: Callable[[str], T | None]
    platforms: frozenset[str] | None = None
    check_available: bool = True
    requires_privilege: bool = False

    def applies(self, env: ExecutionEnvironment) -> bool:
        if self.platforms is not None and env.system not in self.platforms:
            return False
        if self.requires_privilege and not env.privileged:
            logger.debug("Skipping %s: requires elevated privilege.", self.name)
            return False
        if self.check_available and not env.command_exists(self.command[0]):
            logger.debug("Skipping %s: %s not installed.", self.name, self.command[0])
            return False
        return True

    def run(self, env: ExecutionEnvironment) -> T | None:
        output = env.run(self.command, self.timeout_s)
        if output is None:
            return None
        return self.parse(output)


@dataclass(frozen=True)
class CallableProbe(Generic[T]):
    """Read a value through a function of the environment (files, libraries)."""

    name: str
    collect: Callable[[ExecutionEnvironment], T | None]
    platforms: frozenset[str] | None = None

    def applies(self, env: ExecutionEnvironment) -> bool:
        return self.platforms is None or env.system in self.platforms

    def run(self, env: ExecutionEnvironment) -> T | None:
        return self.collect(env)


def first_success(
    probes: Iterable[CommandProbe[T] | CallableProbe[T]],
    env: ExecutionEnvironment,
) -> tuple[str, T] | None:
    """Return ``(probe name, value)`` from the first probe with usable data."""
    for probe in probes:
        if not probe.applies(env):
            continue
        value = probe.run(env)
        if _is_usable(value):
            logger.debug("Probe %s produced data.", probe.name)
            return probe.name, value  # type: ignore[return-value]
        logger.debug("Probe %s produced no data.", probe.name)
    return None
