"""
docfold reduce command.

SUMMARY: Reduce a composite document to a single flattened document

This is the default command: ``docfold FILE`` is ``docfold reduce FILE``.
The reduced text goes to stdout unless -o names a file. Nothing is written
when the reduction fails.
"""
from __future__ import annotations

import argparse

from docfold.cli import OutputFormatter, add_standard_flags
from docfold.cli._utils import require_document, run_reduction
from docfold.core.exceptions import ConfigError, ExtensionLoadError
from docfold.core.output import OutputWriter

SUMMARY = "Reduce a composite document to a single flattened document"

DESCRIPTION = (
    "Reduces a composite AsciiDoc document by expanding includes and "
    "evaluating preprocessor conditionals."
)


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.description = DESCRIPTION
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Reduce ``args.file`` and write the result."""
    formatter = OutputFormatter(json_mode=args.json)
    require_document(args)

    try:
        result = run_reduction(args)
    except (ConfigError, ExtensionLoadError) as exc:
        formatter.error(exc, error_code=exc.__class__.__name__)
        return 1
    except OSError as exc:
        formatter.error(exc, f"cannot read input: {exc}", error_code="input_error")
        return 1

    fatal = result.first_fatal
    if fatal is not None:
        formatter.error(fatal.message, error_code="reduction_failed")
        return 1

    target = args.output or "-"
    if args.json and target == "-":
        formatter.success({"text": result.text, "diagnostics": [d.to_dict() for d in result.diagnostics]})
        return 0

    try:
        written = OutputWriter().write(target, result.text)
    except OSError as exc:
        formatter.error(exc, error_code="output_error")
        return 1
    if args.json:
        formatter.success(
            {
                "output": str(written) if written else target,
                "lines": len(result.lines),
                "diagnostics": [d.to_dict() for d in result.diagnostics],
            }
        )
    return 0
