"""Shared CLI utilities for the reduction commands."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from docfold.core.config import ConfigManager
from docfold.core.reduction import ExtensionRegistry, ReductionOptions, ReductionResult, load_extension, reduce
from docfold.core.stdlib_logging import QUIET, configure_logging, level_from_name


def parse_attribute_args(values: List[str]) -> Dict[str, Optional[str]]:
    """Turn ``-a`` values into an attribute mapping.

    ``name=value`` sets a value, a bare ``name`` sets the empty string and
    ``name!`` / ``!name`` lock the attribute as undefined.
    """
    attributes: Dict[str, Optional[str]] = {}
    for raw in values:
        name, sep, value = raw.partition("=")
        name = name.strip()
        if not name:
            continue
        if not sep and (name.endswith("!") or name.startswith("!")):
            attributes[name.strip("!")] = None
        else:
            attributes[name] = value
    return attributes


def split_requires(values: List[str]) -> List[str]:
    """Flatten repeated and comma-separated ``-r`` values."""
    names: List[str] = []
    for value in values:
        names.extend(n.strip() for n in value.split(",") if n.strip())
    return names


def load_cli_config(args: argparse.Namespace) -> Dict[str, Any]:
    manager = ConfigManager(project_root=Path.cwd())
    return manager.load_config(getattr(args, "config", None))


def setup_logging(args: argparse.Namespace, config: Dict[str, Any]) -> None:
    log_cfg = config.get("logging") or {}
    if getattr(args, "quiet", False):
        level = QUIET
    else:
        level = level_from_name(getattr(args, "log_level", None) or log_cfg.get("level") or "warning")
    fmt = log_cfg.get("format")
    if fmt:
        configure_logging(level=level, fmt=fmt)
    else:
        configure_logging(level=level)


def build_registry(args: argparse.Namespace) -> ExtensionRegistry:
    """Fresh registry with every ``-r`` extension loaded into it."""
    registry = ExtensionRegistry()
    for name in split_requires(getattr(args, "requires", []) or []):
        load_extension(name, registry)
    return registry


def build_options(
    args: argparse.Namespace,
    config: Dict[str, Any],
    registry: ExtensionRegistry,
) -> ReductionOptions:
    cli_cfg = config.get("cli") or {}
    return ReductionOptions.from_config(
        config,
        attributes=parse_attribute_args(getattr(args, "attributes", []) or []),
        safe_mode=getattr(args, "safe_mode", None),
        include_root=getattr(args, "include_root", None),
        preserve_conditionals=getattr(args, "preserve_conditionals", None),
        failure_level=getattr(args, "failure_level", None) or cli_cfg.get("failure_level", "fatal"),
        extensions=registry,
    )


def run_reduction(args: argparse.Namespace) -> ReductionResult:
    """Load configuration and extensions, then reduce ``args.file``.

    Never writes output; the verdict is left to the caller.
    """
    config = load_cli_config(args)
    setup_logging(args, config)
    registry = build_registry(args)
    options = build_options(args, config, registry)
    source: Any = sys.stdin if args.file == "-" else Path(args.file)
    return reduce(source, options=options, raise_on_failure=False)


def require_document(args: argparse.Namespace) -> None:
    """Exit with a usage error when no document was given."""
    if not getattr(args, "file", None):
        args._parser.error("Please specify a document to reduce.")


__all__ = [
    "parse_attribute_args",
    "split_requires",
    "load_cli_config",
    "setup_logging",
    "build_registry",
    "build_options",
    "run_reduction",
    "require_document",
]
