"""
docfold CLI package.

Commands live in ``commands/`` as modules exposing ``SUMMARY``,
``register_args(parser)`` and ``main(args) -> int``; the dispatcher
discovers them.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared reduction plumbing (config, logging, extensions, options)
"""
from ._output import OutputFormatter, print_error
from ._args import (
    add_json_flag,
    add_version_flag,
    add_document_arg,
    add_output_flag,
    add_reduction_flags,
    add_logging_flags,
    add_standard_flags,
)

__all__ = [
    # Output formatting
    "OutputFormatter",
    "print_error",
    # Argument helpers
    "add_json_flag",
    "add_version_flag",
    "add_document_arg",
    "add_output_flag",
    "add_reduction_flags",
    "add_logging_flags",
    "add_standard_flags",
]
