"""Run profile loading (YAML/JSON) for locale matrix runs.

A profile names one suite and the locales to run it under:

  runner: tools/nunit-console
  test_binary: build/App.UITests.dll
  device: emulator-5554
  category: Smoke
  locales: [en-US, de-DE, ja-JP]
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft202012Validator

from locale_harness.runtime.android.locale import LocaleCode, coerce_locale
from locale_harness.runtime.orchestrator import RunConfiguration

RUN_PROFILE_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["runner", "test_binary", "locales"],
    "additionalProperties": False,
    "properties": {
        "runner": {"type": "string", "minLength": 1},
        "test_binary": {"type": "string", "minLength": 1},
        "locales": {
            "type": "array",
            "minItems": 1,
            "items": {"type": "string", "enum": [c.value for c in LocaleCode]},
        },
        "device": {"type": ["string", "null"]},
        "category": {"type": ["string", "null"]},
        "work_dir": {"type": ["string", "null"]},
        "timeout_s": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "adb_path": {"type": "string", "minLength": 1},
        "locale_receiver": {"type": ["string", "null"]},
    },
}


class ProfileValidationError(RuntimeError):
    pass


PROFILE_SUFFIXES = (".yaml", ".yml", ".json")
MAX_REPORTED_ERRORS = 10


def read_profile_document(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)

    suffix = path.suffix.lower()
    if suffix not in PROFILE_SUFFIXES:
        raise ProfileValidationError(
            f"{path}: profile must be one of {', '.join(PROFILE_SUFFIXES)}, "
            f"got {suffix or 'no suffix'!r}"
        )
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ProfileValidationError(f"{path}: cannot parse profile: {e}") from e

    if not isinstance(data, dict):
        raise ProfileValidationError(f"{path}: profile must be a mapping of settings")
    return data


def check_profile_schema(data: Dict[str, Any], *, where: str) -> None:
    problems = sorted(
        Draft202012Validator(RUN_PROFILE_SCHEMA).iter_errors(data), key=lambda e: list(e.path)
    )
    if not problems:
        return
    lines = []
    for e in problems[:MAX_REPORTED_ERRORS]:
        field_name = "/".join(str(p) for p in e.path) or "<profile>"
        lines.append(f"{where}: {field_name}: {e.message}")
    if len(problems) > MAX_REPORTED_ERRORS:
        lines.append(f"{where}: and {len(problems) - MAX_REPORTED_ERRORS} more")
    raise ProfileValidationError("\n".join(lines))


def _resolve(base_dir: Path, value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    p = Path(value).expanduser()
    return p if p.is_absolute() else (base_dir / p)


@dataclass(frozen=True)
class RunProfile:
    runner_path: Path
    test_binary_path: Path
    locales: List[LocaleCode]
    device: Optional[str] = None
    category_filter: Optional[str] = None
    work_dir: Optional[Path] = None
    timeout_s: Optional[float] = None
    adb_path: str = "adb"
    locale_receiver: Optional[str] = None

    def run_configuration(self, locale: LocaleCode) -> RunConfiguration:
        return RunConfiguration(
            locale=locale,
            runner_path=self.runner_path,
            test_binary_path=self.test_binary_path,
            device=self.device,
            category_filter=self.category_filter,
            work_dir=self.work_dir,
            timeout_s=self.timeout_s,
        )


def profile_from_dict(data: Dict[str, Any], *, base_dir: Path, where: str) -> RunProfile:
    check_profile_schema(data, where=where)
    timeout = data.get("timeout_s")
    return RunProfile(
        runner_path=_resolve(base_dir, data["runner"]),
        test_binary_path=_resolve(base_dir, data["test_binary"]),
        locales=[coerce_locale(code) for code in data["locales"]],
        device=data.get("device") or None,
        category_filter=data.get("category") or None,
        work_dir=_resolve(base_dir, data.get("work_dir")),
        timeout_s=float(timeout) if timeout is not None else None,
        adb_path=str(data.get("adb_path") or "adb"),
        locale_receiver=data.get("locale_receiver") or None,
    )


def load_run_profile(path: Path) -> RunProfile:
    """Load and validate a run profile; relative paths resolve against its directory."""

    path = Path(path)
    data = read_profile_document(path)
    return profile_from_dict(data, base_dir=path.resolve().parent, where=str(path))
