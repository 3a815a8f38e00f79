#!/usr/bin/env python3
"""
initstore - data directory bootstrap
Creates a new data directory for the storage engine, or flushes an existing one.

Features:
- libc or icu locale provider, per-category locale overrides
- private (0700/0600) or group-readable (0750/0640) permission profile
- relocated WAL directory via -X/--waldir
- fsync or syncfs flush; --sync-only re-flushes an initialized directory
- YAML bootstrap file (--config) and structured error events (--error-log-dir)

NOTE:
- initdb never re-initializes an existing data directory.
- Exit codes: 0 ok, 1 usage, 2 config/locale, 3 path, 4 state, 5 I/O, 6 capability.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Any

from initstore.application.request_builder import ENV_ERROR_LOG_DIR, build_run_options
from initstore.application.use_cases.initialize_datadir import InitResult, run_bootstrap
from initstore.domain.bootstrap_config import LOCALE_CATEGORIES
from initstore.engine.errors import BootstrapError
from initstore.engine.reason_codes import REASON_CODE_HINTS
from initstore.infrastructure.error_events import safe_log_error

VERSION = "1.0.0"
USAGE_EXIT_CODE = 1


def eprint(*args, **kwargs):
    print(*args, file=sys.stderr, **kwargs)


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT_CODE, f"{self.prog}: error: {message}\n")


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = _Parser(prog="initdb", description="Initialize a new data directory, or flush an existing one to disk.")
    p.add_argument("datadir", nargs="?", default=None, help="Location for this data directory (same as -D).")
    p.add_argument("-D", "--pgdata", dest="data_directory", default=None, help="Location for this data directory.")
    p.add_argument("-X", "--waldir", dest="wal_directory", default=None, help="Location for the write-ahead log directory (absolute).")
    p.add_argument("-U", "--username", dest="superuser", default=None, help="Bootstrap superuser role name.")
    p.add_argument("-E", "--encoding", default=None, help="Default encoding for new databases.")
    p.add_argument("--locale", default=None, help="Default locale for all categories (and the ICU locale with --locale-provider=icu).")
    for category in LOCALE_CATEGORIES:
        flag = category.replace("_", "-")
        p.add_argument(f"--{flag}", dest=category, default=None, help=f"Locale for the {category[3:].upper()} category.")
    p.add_argument("--locale-provider", default=None, help="Locale provider for new databases: libc or icu.")
    p.add_argument("--icu-locale", default=None, help="ICU locale ID for new databases.")
    p.add_argument("-k", "--data-checksums", dest="data_checksums", action="store_true", default=None, help="Use data page checksums.")
    p.add_argument("-g", "--allow-group-access", dest="allow_group_access", action="store_true", default=None, help="Allow group read/execute on the data directory.")
    p.add_argument("-S", "--sync-only", dest="sync_only", action="store_true", help="Only sync the data directory to disk, then exit.")
    p.add_argument("-N", "--no-sync", dest="no_sync", action="store_true", default=None, help="Do not wait for changes to be written safely to disk.")
    p.add_argument("--sync-method", default=None, help="Method for syncing files to disk: fsync or syncfs.")
    p.add_argument("-T", "--text-search-config", dest="text_search_config", default=None, help="Default text search configuration.")
    p.add_argument("-A", "--auth", dest="auth_method", default=None, help="Default authentication method for local connections.")
    p.add_argument("-c", "--set", dest="settings", action="append", default=None, metavar="NAME=VALUE", help="Override default setting for a server parameter.")
    p.add_argument("--config", dest="config_file", type=Path, default=None, help="YAML bootstrap file.")
    p.add_argument("--error-log-dir", type=Path, default=None, help="Directory for structured error events (default: $INITSTORE_ERROR_LOG_DIR).")
    p.add_argument("--version", action="version", version=f"initdb (initstore) {VERSION}")

    args = p.parse_args(argv)
    if args.datadir is not None:
        if args.data_directory is not None:
            p.error("too many command-line arguments")
        args.data_directory = args.datadir
    return args


def _cli_values(args: argparse.Namespace) -> dict[str, Any]:
    values = dict(vars(args))
    values.pop("datadir", None)
    return values


def _fallback_log_dir(args: argparse.Namespace) -> Path | None:
    if args.error_log_dir is not None:
        return args.error_log_dir
    raw = os.environ.get(ENV_ERROR_LOG_DIR, "").strip()
    return Path(raw).expanduser() if raw else None


def report_failure(exc: BootstrapError, *, log_dir: Path | None, data_directory: str | None) -> int:
    eprint(f"❌ initdb: error: {exc.message}")
    hint = REASON_CODE_HINTS.get(exc.reason_code)
    if hint:
        eprint(f"   hint: {hint}")
    target = Path(data_directory).expanduser().absolute() if data_directory else None
    logged = safe_log_error(log_dir, exc, command="initdb", data_directory=target)
    if logged["status"] == "logged":
        eprint(f"   error event: {logged['path']}")
    elif logged["status"] == "log-failed":
        eprint(f"  ⚠️  Could not write error event: {logged['error']}")
    return exc.exit_code


def print_summary(result: InitResult) -> None:
    config = result.config
    if config is None:
        return
    print("")
    print(f'  Bootstrap superuser: "{config.superuser}"')
    print(f"  Locale provider: {config.provider}")
    if config.icu_locale is not None:
        print(f"  ICU locale: {config.icu_locale}")
    categories = config.locale.categories.as_dict()
    if len(set(categories.values())) == 1:
        print(f'  Locale: "{categories["lc_collate"]}"')
    else:
        for category, value in categories.items():
            print(f"  {category.upper()}: {value}")
    print(f'  Encoding: "{config.encoding.name}"')
    print(f'  Default text search configuration: "{config.text_search_config}"')
    print(f"  Data page checksums: {'enabled' if config.data_checksums else 'disabled'}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        options = build_run_options(_cli_values(args), os.environ)
    except BootstrapError as exc:
        return report_failure(exc, log_dir=_fallback_log_dir(args), data_directory=args.data_directory)

    request = options.request
    print("=" * 60)
    print(f"initdb (initstore) {VERSION}")
    print(f"Mode: {'SYNC-ONLY' if request.sync_only else 'INITIALIZE'} | sync method: {request.sync_method}")
    print(f"Data directory: {request.plan.data_directory or '(unset)'}")
    if request.plan.wal_directory:
        print(f"WAL directory:  {request.plan.wal_directory}")
    print("=" * 60)

    try:
        result = run_bootstrap(request, progress=lambda message: print(f"  {message}"))
    except BootstrapError as exc:
        return report_failure(exc, log_dir=options.error_log_dir, data_directory=request.plan.data_directory)

    if request.sync_only:
        print(f"\n✅ Data directory {result.data_directory} synced to disk.")
        return 0

    print_summary(result)
    for warning in result.warnings:
        eprint(f"  ⚠️  {REASON_CODE_HINTS.get(warning, warning)}")
    print(f"\n✅ Success. Data directory {result.data_directory} is ready.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
