from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping

from multiarch_tools.common import CiToolError


def command_map() -> dict[str, Callable[[], None]]:
    """
    Map CLI command names to Python entry functions.

    Each value is a `main()` function from one workflow helper module.
    """
    from multiarch_tools.manifest_merge import main as manifest_merge
    from multiarch_tools.platform_build import main as platform_build

    return {
        "platform-build": platform_build,
        "manifest-merge": manifest_merge,
    }


def build_parser(commands: Mapping[str, Callable[[], None]]) -> argparse.ArgumentParser:
    """Build argument parser with one positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m multiarch_tools.cli",
        description="Run one multi-platform image workflow step.",
    )
    parser.add_argument("command", choices=sorted(commands.keys()))
    return parser


def run_command(command: str, commands: Mapping[str, Callable[[], None]]) -> None:
    """
    Run one registered command.

    `commands` is passed in to keep this function easy to test.
    """
    commands[command]()


def main(
    argv: list[str] | None = None,
    commands: Mapping[str, Callable[[], None]] | None = None,
) -> None:
    # Build command registry once so parser and dispatcher use the same keys.
    if commands is None:
        commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)

    try:
        run_command(args.command, commands)
    except CiToolError as exc:
        # Keep failures short and readable in workflow logs.
        # External tool failures exit with the tool's own code; local errors exit 1.
        print(str(exc), file=sys.stderr)
        raise SystemExit(exc.exit_code) from exc


if __name__ == "__main__":
    main()
