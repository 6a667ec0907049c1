from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from locale_harness.config.run_profile import RunProfile
from locale_harness.reporting.test_results import MalformedReportError
from locale_harness.runtime.android.locale import LocaleCode
from locale_harness.runtime.orchestrator import RunOutcome, RunReport, TestRunOrchestrator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatrixEntry:
    locale: LocaleCode
    outcome: Optional[RunOutcome] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locale": self.locale.value,
            "outcome": self.outcome.to_dict() if self.outcome is not None else None,
            "error": self.error,
        }


@dataclass
class MatrixSummary:
    entries: List[MatrixEntry] = field(default_factory=list)

    @property
    def reports(self) -> int:
        return sum(1 for e in self.entries if isinstance(e.outcome, RunReport))

    @property
    def failures(self) -> int:
        return sum(1 for e in self.entries if e.outcome is not None and not e.outcome.did_run)

    @property
    def errors(self) -> int:
        return sum(1 for e in self.entries if e.error is not None)

    @property
    def all_passed(self) -> bool:
        return bool(self.entries) and all(
            isinstance(e.outcome, RunReport) and e.outcome.passed for e in self.entries
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reports": self.reports,
            "failures": self.failures,
            "errors": self.errors,
            "all_passed": self.all_passed,
            "entries": [e.to_dict() for e in self.entries],
        }


def run_locale_matrix(profile: RunProfile, orchestrator: TestRunOrchestrator) -> MatrixSummary:
    """Run the profile's suite once per locale, in order.

    A malformed report is recorded against its locale and the remaining
    locales still run.
    """

    summary = MatrixSummary()
    for locale in profile.locales:
        logger.info("matrix: running locale %s", locale.value)
        try:
            outcome = orchestrator.run(profile.run_configuration(locale))
        except MalformedReportError as e:
            logger.error("matrix: malformed report for %s: %s", locale.value, e)
            summary.entries.append(MatrixEntry(locale=locale, error=str(e)))
            continue
        summary.entries.append(MatrixEntry(locale=locale, outcome=outcome))
    return summary
