from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable

from health_tap.logging_utils import TRACE_LEVEL


def command_exists(
    name: str, which: Callable[[str], str | None] = shutil.which
) -> bool:
    """Return True if ``name`` resolves to an executable on PATH."""
    try:
        return which(name) is not None
    except (OSError, ValueError):
        return False


class CommandRunner:
    """Runs external programs under a deadline.

    Every failure (missing program, non-zero exit, timeout) is reported as
    ``None`` so callers only branch on the returned text.
    """

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)

    def run(self, command: list[str], timeout_s: float) -> str | None:
        try:
            # subprocess.run kills the child once the timeout expires.
            result = subprocess.run(
                command,
                check=False,
                text=True,
                errors="replace",
                capture_output=True,
                timeout=timeout_s,
            )
        except FileNotFoundError:
            self.logger.debug("Command not found: %s", command[0])
            return None
        except PermissionError:
            self.logger.debug("Command not executable: %s", command[0])
            return None
        except subprocess.TimeoutExpired:
            self.logger.debug(
                "Command timed out after %ss: %s", timeout_s, " ".join(command)
            )
            return None
        except OSError as exc:
            self.logger.debug("Command failed to start (%s): %s", exc, command[0])
            return None
        if result.returncode != 0:
            self.logger.debug(
                "Command failed (%s): %s", result.returncode, " ".join(command)
            )
            if result.stderr:
                self.logger.log(TRACE_LEVEL, "stderr: %s", result.stderr.strip())
            return None
        if result.stdout:
            self.logger.log(TRACE_LEVEL, "stdout: %s", result.stdout.strip())
        return result.stdout
