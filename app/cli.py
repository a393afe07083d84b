"""Command line entry point for managing Wine runtimes."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from app.config import load_runtime_config
from app.version import get_app_version
from domain.runtime import BuiltinRuntime, CustomRuntime, Version
from services.runtime import (
    DownloadProgress,
    RuntimeManagerError,
    RuntimeService,
    build_runtime_service,
)
from shared.logging_config import LogVerbosity, ensure_app_logging

_LOGGER = logging.getLogger(__name__)


def _version_argument(text: str) -> Version:
    version = Version.parse(text)
    if version is None:
        raise argparse.ArgumentTypeError(f"not a runtime version: {text!r}")
    return version


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="decanter", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a runtime configuration JSON file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Record debug output in the log file and on the console.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("catalog", help="List runtime builds offered by every source.")
    commands.add_parser("list", help="List installed runtimes, newest first.")

    install = commands.add_parser("install", help="Download and install a runtime.")
    install.add_argument("version", nargs="?", type=_version_argument)
    install.add_argument("--url", help="Archive to install instead of the catalog entry.")
    install.add_argument(
        "--legacy",
        action="store_true",
        help="Install the distribution archive into the legacy Libraries slot.",
    )

    uninstall = commands.add_parser("uninstall", help="Remove an installed runtime.")
    uninstall.add_argument("version", nargs="?", type=_version_argument)
    uninstall.add_argument("--legacy", action="store_true", help="Remove the legacy Libraries slot.")

    resolve = commands.add_parser("resolve", help="Print the bin folder of a runtime.")
    target = resolve.add_mutually_exclusive_group(required=True)
    target.add_argument("version", nargs="?", type=_version_argument)
    target.add_argument("--custom", type=Path, help="Directory containing a custom runtime.")

    commands.add_parser("check-update", help="Compare the legacy runtime with the published one.")
    return parser


def _print_progress(progress: DownloadProgress) -> None:
    fraction = progress.fraction
    if fraction is None:
        print(f"\r{progress.completed_bytes} bytes", end="", file=sys.stderr, flush=True)
    else:
        print(f"\r{fraction:6.1%}", end="", file=sys.stderr, flush=True)


def _command_catalog(service: RuntimeService, args: argparse.Namespace) -> int:
    entries = service.fetch_catalog()
    if not entries:
        print("No runtime builds are currently available.")
        return 1
    for entry in entries:
        print(f"{entry.version}\t{entry.source.value}\t{entry.download_url}")
    return 0


def _command_list(service: RuntimeService, args: argparse.Namespace) -> int:
    runtimes = service.registry.installed_runtimes()
    if not runtimes:
        print("No runtimes installed.")
        return 0
    for runtime in runtimes:
        suffix = " (legacy)" if runtime.legacy else ""
        print(f"{runtime.version}{suffix}\t{runtime.root}")
    return 0


def _command_install(service: RuntimeService, args: argparse.Namespace) -> int:
    if args.legacy:
        installed = service.install_legacy(_print_progress)
        print(file=sys.stderr)
        print(f"Installed legacy runtime {installed.version} at {installed.root}")
        return 0
    if args.version is None:
        raise SystemExit("install: a version is required unless --legacy is given")

    url = args.url
    if url is None:
        matches = [entry for entry in service.fetch_catalog() if entry.version == args.version]
        if not matches:
            print(f"Runtime {args.version} is not offered by any source.", file=sys.stderr)
            return 1
        url = matches[0].download_url

    installed = service.install_from_url(args.version, url, _print_progress)
    print(file=sys.stderr)
    print(f"Installed runtime {installed.version} at {installed.root}")
    return 0


def _command_uninstall(service: RuntimeService, args: argparse.Namespace) -> int:
    if args.legacy:
        removed = service.legacy.uninstall()
        label = "legacy runtime"
    elif args.version is not None:
        removed = service.uninstall(args.version)
        label = f"runtime {args.version}"
    else:
        raise SystemExit("uninstall: a version is required unless --legacy is given")

    if not removed:
        print(f"No {label} is installed.")
        return 1
    print(f"Removed {label}.")
    return 0


def _command_resolve(service: RuntimeService, args: argparse.Namespace) -> int:
    selector = CustomRuntime(args.custom) if args.custom else BuiltinRuntime(args.version)
    binaries = service.registry.resolve_binaries(selector)
    print(binaries.bin_folder)
    return 0


def _command_check_update(service: RuntimeService, args: argparse.Namespace) -> int:
    check = service.check_for_legacy_update()
    if check.remote_version is None:
        print("The published runtime version could not be determined.")
        return 1
    if check.available:
        print(f"Update available: {check.local_version} -> {check.remote_version}")
    elif check.local_version is None:
        print(f"No legacy runtime installed; {check.remote_version} is available.")
    else:
        print(f"Runtime {check.local_version} is up to date.")
    return 0


_COMMANDS = {
    "catalog": _command_catalog,
    "list": _command_list,
    "install": _command_install,
    "uninstall": _command_uninstall,
    "resolve": _command_resolve,
    "check-update": _command_check_update,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    ensure_app_logging(LogVerbosity.VERBOSE if args.verbose else None)

    config = load_runtime_config(args.config)
    service = build_runtime_service(config)
    service.recover()

    try:
        return _COMMANDS[args.command](service, args)
    except RuntimeManagerError as exc:
        _LOGGER.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
