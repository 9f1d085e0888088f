"""
Auto-discovery CLI dispatcher for docfold.

Scans ``cli/commands`` for command modules and registers each as a
subcommand. ``reduce`` is the default: when the first argument is not a
command name (or a top-level help/version flag) it is assumed.
"""

from __future__ import annotations

import argparse
import importlib
import signal
import sys
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Any, NoReturn

from docfold import __version__
from docfold.cli._output import PROG, print_error

DEFAULT_COMMAND = "reduce"
TOP_LEVEL_FLAGS = ("-h", "--help", "-v", "--version")


class DocfoldArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors the docfold way.

    The message goes to stderr as ``docfold: <message>``, the usage to
    stdout, and the exit status is 1.
    """

    def error(self, message: str) -> NoReturn:
        if message.startswith("unrecognized arguments: "):
            message = self._describe_unrecognized(message[len("unrecognized arguments: "):].split())
        print_error(message)
        self.print_usage(sys.stdout)
        raise SystemExit(1)

    @staticmethod
    def _describe_unrecognized(extras: list[str]) -> str:
        options = [a for a in extras if a.startswith("-") and a != "-"]
        if options:
            return f"invalid option: {options[0]}"
        return f"extra arguments detected (unparsed arguments: {' '.join(extras)})"


@lru_cache(maxsize=1)
def discover_root_commands() -> dict[str, dict[str, Any]]:
    """Discover top-level commands under cli/commands."""
    commands_dir = Path(__file__).parent / "commands"
    commands: dict[str, dict[str, Any]] = {}

    for item in sorted(commands_dir.glob("*.py")):
        if item.name.startswith("_"):
            continue
        cmd_name = item.stem
        module = importlib.import_module(f"docfold.cli.commands.{cmd_name}")
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", cmd_name),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }
    return commands


def build_parser() -> DocfoldArgumentParser:
    """
    Build the argument parser with auto-discovered commands.

    Returns:
        Configured ArgumentParser
    """
    parser = DocfoldArgumentParser(
        prog=PROG,
        description="docfold - flatten composite AsciiDoc documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"'{PROG} FILE' is short for '{PROG} {DEFAULT_COMMAND} FILE'.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    for cmd_name, cmd_info in discover_root_commands().items():
        cmd_parser = subparsers.add_parser(
            cmd_name,
            help=cmd_info["summary"],
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if cmd_info["register_args"]:
            cmd_info["register_args"](cmd_parser)
        cmd_parser.set_defaults(_func=cmd_info["main"], _parser=cmd_parser)

    return parser


def _with_default_command(argv: list[str]) -> list[str]:
    if argv and (argv[0] in discover_root_commands() or argv[0] in TOP_LEVEL_FLAGS):
        return argv
    return [DEFAULT_COMMAND, *argv]


def _raise_hangup(signum: int, frame: Any) -> NoReturn:
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    """Exit with the conventional status when the terminal hangs up."""
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _raise_hangup)


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the docfold CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args: argparse.Namespace | None = None
    try:
        args, extras = parser.parse_known_args(_with_default_command(list(argv)))
        if extras:
            # Report against the command parser so its usage is shown.
            getattr(args, "_parser", parser).error(f"unrecognized arguments: {' '.join(extras)}")
        func: Callable[[argparse.Namespace], int] | None = getattr(args, "_func", None)
        if func is None:
            parser.print_help()
            return 1
        return func(args)
    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1
    except KeyboardInterrupt:
        # Keep the shell prompt off the interrupted line.
        print(file=sys.stderr)
        return 130
    except Exception as exc:
        if args is not None and getattr(args, "trace", False):
            raise
        print_error(f"FAILED: {exc}")
        print("  Use --trace to show backtrace", file=sys.stderr)
        return 1


def run() -> NoReturn:
    """Console-script entry point."""
    install_signal_handlers()
    sys.exit(main())


if __name__ == "__main__":
    run()
