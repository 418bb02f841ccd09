"""
Script: multiarch_tools/common.py
What: Shared helper functions used by all `multiarch_tools` modules.
Doing: Wraps env reads, command execution, boolean input parsing, and output writes.
Why: Avoids duplicated helper code between the build and merge steps.
Goal: Keep error and exit-code behavior consistent across every workflow step.
"""

from __future__ import annotations

import json
import os
import subprocess
from typing import Mapping, Sequence


class CiToolError(RuntimeError):
    """Raised when a workflow helper script hits a known error condition."""

    exit_code = 1


class CommandError(CiToolError):
    """
    Raised when an external tool exits non-zero.

    The tool's own return code is kept so the step can exit with it unchanged.
    """

    def __init__(self, message: str, *, command: Sequence[str], returncode: int) -> None:
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        # Killed by signal N shows up as -N; report it the way a shell does.
        if self.returncode < 0:
            return 128 - self.returncode
        return self.returncode or 1


TRUE_VALUES = {"true"}
FALSE_VALUES = {"false"}


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise CiToolError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


def env_flag(name: str, default: bool) -> bool:
    """
    Read a `true`/`false` workflow input.

    Workflow inputs arrive as strings, so anything other than the two literal
    words (any case) is treated as a typo instead of silently meaning false.
    """
    raw = optional_env(name).strip().lower()
    if not raw:
        return default
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise CiToolError(f"Expected true or false for {name}, got: {raw}")


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
) -> str:
    """Run a command and return stdout, raising a readable error on failure."""
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise CommandError(
            f"Command failed: {' '.join(args)}\n{details}",
            command=args,
            returncode=exc.returncode,
        ) from exc
    except FileNotFoundError as exc:
        raise CiToolError(f"Command not found: {args[0]}") from exc

    if not capture_output:
        return ""
    return result.stdout


def load_json_file(path: str) -> dict:
    """Read a JSON object written by an external tool."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise CiToolError(f"Expected JSON file was not written: {path}") from exc
    except json.JSONDecodeError as exc:
        raise CiToolError(f"Expected JSON in file: {path}") from exc
    if not isinstance(data, dict):
        raise CiToolError(f"Expected a JSON object in file: {path}")
    return data


def write_github_outputs(values: Mapping[str, str]) -> None:
    """
    Write step outputs for GitHub Actions.

    GitHub provides a file path in `GITHUB_OUTPUT`; writing `name=value` lines
    there makes that value available to later steps in the same job.
    Outside GitHub Actions (local runs) there is no such file, so nothing is written.
    """
    output_file = optional_env("GITHUB_OUTPUT")
    if not output_file:
        return
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={value}\n")
