from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from locale_harness.config.run_profile import ProfileValidationError, load_run_profile
from locale_harness.reporting.test_results import MalformedReportError
from locale_harness.runtime.android.device_channel import AdbDeviceChannel, DeviceChannelError
from locale_harness.runtime.android.locale import (
    InvalidLocaleError,
    LocaleController,
    list_locales,
)
from locale_harness.runtime.matrix import run_locale_matrix
from locale_harness.runtime.orchestrator import RunConfiguration, TestRunOrchestrator

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2
EXIT_MALFORMED_REPORT = 3


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def _add_device_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--device",
        type=str,
        default=os.environ.get("LOCALE_HARNESS_ANDROID_SERIAL"),
        help="adb serial (default: $LOCALE_HARNESS_ANDROID_SERIAL, else the only attached device)",
    )
    p.add_argument(
        "--adb_path", type=str, default=os.environ.get("LOCALE_HARNESS_ADB_PATH", "adb")
    )
    p.add_argument(
        "--locale_receiver",
        type=str,
        default=os.environ.get("LOCALE_HARNESS_LOCALE_RECEIVER"),
        help="Optional package that receives the SET_LOCALE broadcast.",
    )


def _controller(args: argparse.Namespace) -> LocaleController:
    return LocaleController(
        AdbDeviceChannel(adb_path=args.adb_path), receiver=args.locale_receiver
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="localectl",
        description="Run a device test suite under a chosen locale and normalize its report.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    cmd_p = sub.add_parser("run-device-command", help="Run a shell command on the device.")
    _add_device_args(cmd_p)
    cmd_p.add_argument("--command", type=str, default=None, help="default: getprop")

    get_p = sub.add_parser("get-locale", help="Print the device locale property.")
    _add_device_args(get_p)

    set_p = sub.add_parser("set-locale", help="Broadcast a locale change (not verified).")
    _add_device_args(set_p)
    set_p.add_argument("--locale", type=str, required=True)

    run_p = sub.add_parser("run-test-suite", help="Set the locale, run the suite, print JSON.")
    _add_device_args(run_p)
    run_p.add_argument("--locale", type=str, required=True)
    run_p.add_argument("--runner", type=Path, required=True, help="Test runner executable.")
    run_p.add_argument("--test_binary", type=Path, required=True, help="Test binary under test.")
    run_p.add_argument("--category", type=str, default=None, help="Category include filter.")
    run_p.add_argument(
        "--work_dir",
        type=Path,
        default=None,
        help="Runner working directory; TestResult.xml is read from here (default: cwd).",
    )
    run_p.add_argument("--timeout_s", type=float, default=None)
    run_p.add_argument(
        "--include_document", action="store_true", help="Embed the raw report XML."
    )

    list_p = sub.add_parser("list-locales", help="List supported locale codes.")
    list_p.add_argument("--json", action="store_true", help="Print machine-readable JSON.")

    matrix_p = sub.add_parser("run-matrix", help="Run a profile's suite once per locale.")
    matrix_p.add_argument("--profile", type=Path, required=True, help="YAML/JSON run profile.")
    matrix_p.add_argument("--output", type=Path, default=None, help="Write summary JSON here.")

    return parser


def _cmd_run_device_command(args: argparse.Namespace) -> int:
    channel = AdbDeviceChannel(adb_path=args.adb_path)
    try:
        text = channel.send(args.device, args.command)
    except DeviceChannelError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_FAILURE
    print(text, end="")
    return EXIT_OK


def _cmd_get_locale(args: argparse.Namespace) -> int:
    value = _controller(args).get_locale(args.device)
    if value is None:
        print("(no locale property found)", file=sys.stderr)
        return EXIT_FAILURE
    print(value)
    return EXIT_OK


def _cmd_set_locale(args: argparse.Namespace) -> int:
    try:
        _controller(args).set_locale(args.device, args.locale)
    except InvalidLocaleError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_INVALID
    return EXIT_OK


def _cmd_run_test_suite(args: argparse.Namespace) -> int:
    try:
        config = RunConfiguration(
            locale=args.locale,
            runner_path=args.runner,
            test_binary_path=args.test_binary,
            device=args.device,
            category_filter=args.category,
            work_dir=args.work_dir,
            timeout_s=args.timeout_s,
        )
    except InvalidLocaleError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_INVALID

    orchestrator = TestRunOrchestrator(locale_controller=_controller(args))
    try:
        outcome = orchestrator.run(config)
    except MalformedReportError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_MALFORMED_REPORT

    print(_json_dumps(outcome.to_dict(include_document=args.include_document)))
    return EXIT_OK if outcome.did_run else EXIT_FAILURE


def _cmd_list_locales(args: argparse.Namespace) -> int:
    infos = list_locales()
    if args.json:
        print(_json_dumps([info.to_dict() for info in infos]))
        return EXIT_OK
    for info in infos:
        print(f"{info.code.value:<8} {info.english_name} / {info.native_name}")
    return EXIT_OK


def _cmd_run_matrix(args: argparse.Namespace) -> int:
    try:
        profile = load_run_profile(args.profile)
    except (FileNotFoundError, ProfileValidationError) as e:
        print(f"[ERROR] invalid run profile: {e}", file=sys.stderr)
        return EXIT_INVALID

    controller = LocaleController(
        AdbDeviceChannel(adb_path=profile.adb_path), receiver=profile.locale_receiver
    )
    summary = run_locale_matrix(profile, TestRunOrchestrator(locale_controller=controller))
    payload = _json_dumps(summary.to_dict())
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        print(f"[OK] wrote matrix summary -> {args.output}")
    else:
        print(payload)
    return EXIT_OK if summary.failures == 0 and summary.errors == 0 else EXIT_FAILURE


_COMMANDS = {
    "run-device-command": _cmd_run_device_command,
    "get-locale": _cmd_get_locale,
    "set-locale": _cmd_set_locale,
    "run-test-suite": _cmd_run_test_suite,
    "list-locales": _cmd_list_locales,
    "run-matrix": _cmd_run_matrix,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    return _COMMANDS[args.cmd](args)


if __name__ == "__main__":
    raise SystemExit(main())
