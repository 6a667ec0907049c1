"""Test-run orchestration: set locale, run the suite, normalize the outcome.

One call walks Validating -> LocaleSetting -> Executing and then either parses
the runner's report (exit code >= 0) or packages the captured output (exit
code < 0). Every call returns exactly one RunReport or RunFailure, or raises
MalformedReportError when the runner claimed success but left no usable
report.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from locale_harness.reporting.test_results import FailedTestCase, parse_report
from locale_harness.runtime.android.locale import LocaleCode, LocaleController, coerce_locale
from locale_harness.runtime.process_runner import ProcessRunner

logger = logging.getLogger(__name__)

REPORT_FILENAME = "TestResult.xml"
CAPTURE_FILENAME = "TestResults.txt"
INCLUDE_FILTER_OPTION = "--include"
INVALID_PATH_MESSAGE = "Invalid path for runner or test binary"


@dataclass(frozen=True)
class RunConfiguration:
    locale: LocaleCode
    runner_path: Path
    test_binary_path: Path
    device: Optional[str] = None
    category_filter: Optional[str] = None
    work_dir: Optional[Path] = None
    timeout_s: Optional[float] = None

    def __post_init__(self) -> None:
        # Reject unsupported locales at construction, before any side effect.
        object.__setattr__(self, "locale", coerce_locale(self.locale))
        # The runner is launched with cwd=work_dir; pin relative paths to the
        # directory they were given in.
        object.__setattr__(self, "runner_path", Path(self.runner_path).absolute())
        object.__setattr__(self, "test_binary_path", Path(self.test_binary_path).absolute())
        if self.work_dir is not None:
            object.__setattr__(self, "work_dir", Path(self.work_dir).absolute())

    def resolved_work_dir(self) -> Path:
        return self.work_dir if self.work_dir is not None else Path.cwd()

    def runner_arguments(self) -> List[str]:
        args = [str(self.test_binary_path)]
        if self.category_filter:
            args.append(f"{INCLUDE_FILTER_OPTION}={self.category_filter}")
        return args


@dataclass(frozen=True)
class RunReport:
    locale: LocaleCode
    total: int
    errors: int
    failures: int
    date: str
    time: str
    elapsed_s: float
    raw_document: str
    timestamp: Optional[str] = None
    exit_code: int = 0
    extra_counts: Dict[str, int] = field(default_factory=dict)
    failed_cases: List[FailedTestCase] = field(default_factory=list)

    @property
    def did_run(self) -> bool:
        return True

    @property
    def passed(self) -> bool:
        return self.errors == 0 and self.failures == 0

    def to_dict(self, *, include_document: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "did_run": True,
            "locale": self.locale.value,
            "total": self.total,
            "errors": self.errors,
            "failures": self.failures,
            "date": self.date,
            "time": self.time,
            "timestamp": self.timestamp,
            "elapsed_s": round(self.elapsed_s, 3),
            "exit_code": self.exit_code,
            "extra_counts": dict(self.extra_counts),
            "failed_cases": [c.to_dict() for c in self.failed_cases],
        }
        if include_document:
            out["raw_document"] = self.raw_document
        return out


@dataclass(frozen=True)
class RunFailure:
    diagnostic: str
    exit_code: Optional[int] = None

    @property
    def did_run(self) -> bool:
        return False

    def to_dict(self, *, include_document: bool = False) -> Dict[str, Any]:
        return {"did_run": False, "diagnostic": self.diagnostic, "exit_code": self.exit_code}


RunOutcome = Union[RunReport, RunFailure]


def _runner_launchable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _binary_readable(path: Path) -> bool:
    return path.exists() and os.access(path, os.R_OK)


class TestRunOrchestrator:
    """Coordinates one locale-configured run of a test suite."""

    __test__ = False

    def __init__(
        self,
        *,
        locale_controller: LocaleController,
        process_runner: Optional[ProcessRunner] = None,
    ) -> None:
        self._locale = locale_controller
        self._runner = process_runner or ProcessRunner()

    def run(self, config: RunConfiguration) -> RunOutcome:
        if not (
            _runner_launchable(config.runner_path) and _binary_readable(config.test_binary_path)
        ):
            logger.error(
                "invalid paths: runner=%s test_binary=%s",
                config.runner_path,
                config.test_binary_path,
            )
            return RunFailure(diagnostic=INVALID_PATH_MESSAGE)

        self._locale.set_locale(config.device, config.locale)

        work_dir = config.resolved_work_dir()
        work_dir.mkdir(parents=True, exist_ok=True)
        report_path = work_dir / REPORT_FILENAME
        if report_path.exists():
            logger.debug("removing stale report: %s", report_path)
            report_path.unlink()

        start = time.monotonic()
        result = self._runner.run(
            config.runner_path,
            config.runner_arguments(),
            work_dir / CAPTURE_FILENAME,
            cwd=work_dir,
            timeout_s=config.timeout_s,
        )
        elapsed_s = time.monotonic() - start

        if result.exit_code < 0:
            logger.info("runner failed to execute tests (exit code %s)", result.exit_code)
            return RunFailure(diagnostic=result.captured_text, exit_code=result.exit_code)

        parsed = parse_report(report_path)
        logger.info(
            "locale=%s total=%s errors=%s failures=%s",
            config.locale.value,
            parsed.total,
            parsed.errors,
            parsed.failures,
        )
        return RunReport(
            locale=config.locale,
            total=parsed.total,
            errors=parsed.errors,
            failures=parsed.failures,
            date=parsed.date,
            time=parsed.time,
            elapsed_s=elapsed_s,
            raw_document=parsed.raw_document,
            timestamp=parsed.timestamp.isoformat() if parsed.timestamp else None,
            exit_code=result.exit_code,
            extra_counts=parsed.extra_counts,
            failed_cases=parsed.failed_cases,
        )
