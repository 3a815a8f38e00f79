from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

# Locale and timezone variables that would otherwise leak the caller's environment into a run.
_AMBIENT_VARIABLES = (
    "LC_ALL",
    "LC_COLLATE",
    "LC_CTYPE",
    "LC_MESSAGES",
    "LC_MONETARY",
    "LC_NUMERIC",
    "LC_TIME",
    "LANG",
    "TZ",
    "INITSTORE_DATA",
    "INITSTORE_ERROR_LOG_DIR",
)


def run(cmd: list[str], *, env: dict[str, str] | None = None, cwd: Path | None = None) -> subprocess.CompletedProcess:
    e = {k: v for k, v in os.environ.items() if k not in _AMBIENT_VARIABLES}
    e["LC_ALL"] = "C"
    if env:
        e.update(env)
    return subprocess.run(
        cmd,
        cwd=str(cwd or REPO_ROOT),
        env=e,
        text=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        check=False,
    )


def run_initdb(args: list[str], *, env: dict[str, str] | None = None) -> subprocess.CompletedProcess:
    # Always use the current interpreter.
    return run([sys.executable, "-X", "utf8", "initdb.py", *args], env=env)


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")
