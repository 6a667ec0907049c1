"""Blocking launcher for the external test runner."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

LAUNCH_FAILED_EXIT_CODE = -1


@dataclass(frozen=True)
class ProcessResult:
    args: list[str]
    exit_code: int
    captured_lines: List[str] = field(default_factory=list)
    timed_out: bool = False

    @property
    def captured_text(self) -> str:
        return "\n".join(self.captured_lines)


def read_capture(path: Path) -> List[str]:
    """Best-effort read of a capture file; unreadable or missing yields []."""

    try:
        return path.read_text(encoding="utf-8", errors="replace").splitlines()
    except OSError:
        return []


class ProcessRunner:
    """Runs an executable to completion with stdout redirected to a file.

    The wait blocks until the child exits unless `timeout_s` is given; an
    expired deadline kills the child and reports `LAUNCH_FAILED_EXIT_CODE`.
    """

    def __init__(self, *, timeout_s: Optional[float] = None) -> None:
        self._timeout_s = timeout_s

    def run(
        self,
        executable: str | Path,
        arguments: Sequence[str],
        stdout_capture_path: str | Path,
        *,
        cwd: Optional[Path] = None,
        timeout_s: Optional[float] = None,
    ) -> ProcessResult:
        capture = Path(stdout_capture_path)
        capture.parent.mkdir(parents=True, exist_ok=True)
        cmd = [str(executable)] + [str(a) for a in arguments]
        deadline = self._timeout_s if timeout_s is None else timeout_s
        logger.info("running: %s", " ".join(cmd))

        timed_out = False
        with capture.open("w", encoding="utf-8") as out:
            try:
                proc = subprocess.run(
                    cmd,
                    stdout=out,
                    stderr=subprocess.STDOUT,
                    cwd=str(cwd) if cwd is not None else None,
                    timeout=deadline,
                    check=False,
                )
                exit_code = proc.returncode
            except subprocess.TimeoutExpired:
                timed_out = True
                exit_code = LAUNCH_FAILED_EXIT_CODE
                logger.warning("runner timed out after %ss: %s", deadline, cmd[0])
            except OSError as e:
                exit_code = LAUNCH_FAILED_EXIT_CODE
                out.write(f"failed to launch {cmd[0]}: {e}\n")
                logger.warning("failed to launch %s: %s", cmd[0], e)

        logger.info("runner exited with code %s", exit_code)
        return ProcessResult(
            args=cmd,
            exit_code=exit_code,
            captured_lines=read_capture(capture),
            timed_out=timed_out,
        )
