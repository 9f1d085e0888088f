"""
docfold sourcemap command.

SUMMARY: Print the source map of a reduced document

Every output line is listed with the file, line and include chain it came
from. The map is printed even when the reduction fails (it then carries
``ok: false`` and the exit status is 1).
"""
from __future__ import annotations

import argparse

from docfold.cli import OutputFormatter, add_standard_flags
from docfold.cli._utils import require_document, run_reduction
from docfold.core.exceptions import ConfigError, ExtensionLoadError
from docfold.core.output import OutputWriter

SUMMARY = "Print the source map of a reduced document"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.description = "Reduces a document and prints where every output line came from."
    add_standard_flags(parser)
    parser.add_argument(
        "--format",
        choices=("json", "yaml"),
        default="json",
        help="Source map format (default: json)",
    )


def main(args: argparse.Namespace) -> int:
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

    writer = OutputWriter()
    target = args.output or "-"
    try:
        if args.format == "yaml":
            writer.write_yaml(target, result.to_dict())
        else:
            writer.write_json(target, result.to_dict())
    except OSError as exc:
        formatter.error(exc, error_code="output_error")
        return 1
    return 0 if result.ok else 1
