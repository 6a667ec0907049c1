from __future__ import annotations

from locale_harness.reporting.test_results import (
    FailedTestCase,
    MalformedReportError,
    ParsedReport,
    parse_report,
    parse_report_text,
)

__all__ = [
    "FailedTestCase",
    "MalformedReportError",
    "ParsedReport",
    "parse_report",
    "parse_report_text",
]
