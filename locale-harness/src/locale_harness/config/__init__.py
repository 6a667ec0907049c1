"""Run profile loading and validation."""

from __future__ import annotations

from locale_harness.config.run_profile import (
    ProfileValidationError,
    RunProfile,
    load_run_profile,
)

__all__ = [
    "ProfileValidationError",
    "RunProfile",
    "load_run_profile",
]
