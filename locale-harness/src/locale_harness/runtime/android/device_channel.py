"""adb shell command channel.

A deliberately thin pass-through: a shell command string goes to a device,
raw text comes back. Nothing here interprets the output; non-zero adb return
codes are returned as text for the layers above to degrade on.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "getprop"


class DeviceChannelError(RuntimeError):
    """Raised when adb itself cannot be launched or a configured timeout expires."""


@runtime_checkable
class DeviceChannel(Protocol):
    def send(self, target: Optional[str] = None, command: Optional[str] = None) -> str: ...


@dataclass(frozen=True)
class ShellResult:
    args: list[str]
    stdout: str
    stderr: str
    returncode: int

    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def text(self) -> str:
        return self.stdout if self.stdout else self.stderr


class AdbDeviceChannel:
    """Routes shell commands to a device through the adb binary.

    Without a serial, adb addresses the single attached device; zero or
    multiple devices fail inside adb and surface as stderr text.
    """

    def __init__(self, *, adb_path: str = "adb", timeout_s: Optional[float] = None) -> None:
        self._adb_path = adb_path
        self._timeout_s = timeout_s

    @property
    def adb_path(self) -> str:
        return self._adb_path

    def _base_cmd(self, target: Optional[str]) -> list[str]:
        cmd = [self._adb_path]
        if target:
            cmd += ["-s", target]
        return cmd

    def shell(self, target: Optional[str] = None, command: Optional[str] = None) -> ShellResult:
        command = command or DEFAULT_COMMAND
        cmd = self._base_cmd(target) + ["shell", command]
        logger.debug("adb: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout_s,
                check=False,
            )
        except OSError as e:
            raise DeviceChannelError(f"failed to launch adb ({self._adb_path}): {e}") from e
        except subprocess.TimeoutExpired as e:
            raise DeviceChannelError(
                f"adb command timed out after {self._timeout_s}s: {' '.join(cmd)}"
            ) from e

        result = ShellResult(
            args=cmd,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            returncode=proc.returncode,
        )
        if not result.ok():
            logger.debug("adb rc=%s stderr=%s", result.returncode, result.stderr.strip()[:200])
        return result

    def send(self, target: Optional[str] = None, command: Optional[str] = None) -> str:
        """Send `command` (default: dump all properties) and return the raw text."""

        return self.shell(target, command).text
