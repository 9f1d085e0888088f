"""Common CLI argument registration utilities.

The ``reduce`` and ``sourcemap`` commands share every reduction option;
each helper here registers one group of them.
"""
from __future__ import annotations

import argparse

from docfold import __version__

SAFE_MODES = ("unsafe", "safe", "strict")
LEVELS = ("debug", "info", "warn", "warning", "error", "fatal")


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Report the outcome as JSON",
    )


def add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"docfold {__version__}",
        help="Display the program name and version and exit",
    )


def add_document_arg(parser: argparse.ArgumentParser) -> None:
    """Add the positional document argument (``-`` reads standard input).

    Optional at the parser level so a missing document gets the tool's own
    message rather than argparse's.
    """
    parser.add_argument(
        "file",
        nargs="?",
        metavar="FILE",
        help="Document to reduce (- reads standard input)",
    )


def add_output_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Write output to FILE instead of stdout (- means stdout)",
    )


def add_reduction_flags(parser: argparse.ArgumentParser) -> None:
    """Add the options that shape a reduction.

    Args:
        parser: ArgumentParser to add the flags to
    """
    parser.add_argument(
        "-a",
        "--attribute",
        dest="attributes",
        action="append",
        default=[],
        metavar="NAME[=VALUE]",
        help="Set a document attribute (NAME! unsets it); may be repeated",
    )
    parser.add_argument(
        "-S",
        "--safe-mode",
        choices=SAFE_MODES,
        help="Containment policy for include paths (default: unsafe)",
    )
    parser.add_argument(
        "--include-root",
        metavar="DIR",
        help="Directory outside the jail that includes may read from in safe mode",
    )
    parser.add_argument(
        "--preserve-conditionals",
        action="store_true",
        default=None,
        help="Keep conditional directives and all branches",
    )
    parser.add_argument(
        "--failure-level",
        choices=LEVELS,
        help="Lowest diagnostic severity that fails the reduction (default: fatal)",
    )
    parser.add_argument(
        "-r",
        "--require",
        dest="requires",
        action="append",
        default=[],
        metavar="MODULE",
        help="Import an extension module or .py file before reducing; may be repeated or comma-separated",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Load configuration from PATH on top of project and bundled defaults",
    )


def add_logging_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=LEVELS,
        help="Lowest severity of diagnostics to print (default: warn)",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all diagnostic messages",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Show the backtrace of an unexpected error",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add every flag shared by the reduction commands.

    Adds: FILE, -o, reduction options, logging options, --json, -v

    Args:
        parser: ArgumentParser to add flags to
    """
    add_document_arg(parser)
    add_output_flag(parser)
    add_reduction_flags(parser)
    add_logging_flags(parser)
    add_json_flag(parser)
    add_version_flag(parser)


__all__ = [
    "add_json_flag",
    "add_version_flag",
    "add_document_arg",
    "add_output_flag",
    "add_reduction_flags",
    "add_logging_flags",
    "add_standard_flags",
    "SAFE_MODES",
    "LEVELS",
]
