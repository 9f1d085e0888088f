"""Extension hooks for the reduction engine.

Three kinds of hook can be registered:

- include processors claim include targets and supply their lines
- preprocessors rewrite the root document's lines before reduction
- postprocessors observe the finished result

Hooks live in an :class:`ExtensionRegistry`:

    registry = ExtensionRegistry()

    @registry.include_processor(lambda target: target.startswith("db:"))
    def from_database(request):
        return load_rows(request.target[3:])

A call to :func:`docfold.reduce` uses the registry in its options, or the
process-wide ``global_registry`` when none is given. The global registry
is shared mutable state: concurrent reductions that rely on it must not
register or unregister hooks while another reduction runs.
"""
from __future__ import annotations

import importlib
import importlib.util
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence

from docfold.core.exceptions import ExtensionLoadError

if TYPE_CHECKING:
    from .includes import IncludeRequest
    from .result import ReductionResult

logger = logging.getLogger(__name__)

IncludeHandler = Callable[["IncludeRequest"], Optional[Iterable[str]]]
TargetMatcher = Callable[[str], bool]
Preprocessor = Callable[[List[str]], Optional[List[str]]]
Postprocessor = Callable[["ReductionResult"], None]


@dataclass(frozen=True)
class IncludeProcessor:
    """An include hook: ``handles(target)`` decides, ``process(request)`` supplies lines.

    Returning None from ``process`` declines the target, which then falls
    through to the next processor and finally to the filesystem.
    """

    handles: TargetMatcher
    process: IncludeHandler
    name: str = ""


class ExtensionRegistry:
    """Per-call collection of reduction hooks."""

    def __init__(self) -> None:
        self._include_processors: List[IncludeProcessor] = []
        self._preprocessors: List[Preprocessor] = []
        self._postprocessors: List[Postprocessor] = []

    def include_processor(self, handles: TargetMatcher, name: str = "") -> Callable[[IncludeHandler], IncludeHandler]:
        """Decorator to register an include handler for targets matching ``handles``."""

        def decorator(func: IncludeHandler) -> IncludeHandler:
            self.add_include_processor(IncludeProcessor(handles, func, name or func.__name__))
            return func

        return decorator

    def add_include_processor(self, processor: IncludeProcessor) -> None:
        self._include_processors.append(processor)

    def preprocessor(self, func: Preprocessor) -> Preprocessor:
        self._preprocessors.append(func)
        return func

    def postprocessor(self, func: Postprocessor) -> Postprocessor:
        self._postprocessors.append(func)
        return func

    @property
    def include_processors(self) -> Sequence[IncludeProcessor]:
        return tuple(self._include_processors)

    @property
    def preprocessors(self) -> Sequence[Preprocessor]:
        return tuple(self._preprocessors)

    @property
    def postprocessors(self) -> Sequence[Postprocessor]:
        return tuple(self._postprocessors)

    def claim(self, target: str) -> List[IncludeProcessor]:
        """Include processors whose ``handles`` accepts ``target``, in registration order."""
        return [p for p in self._include_processors if p.handles(target)]

    def clear(self) -> None:
        self._include_processors.clear()
        self._preprocessors.clear()
        self._postprocessors.clear()

    def __bool__(self) -> bool:
        return bool(self._include_processors or self._preprocessors or self._postprocessors)


# Process-wide registry used when a call does not bring its own
global_registry = ExtensionRegistry()


def register_include_processor(handles: TargetMatcher, name: str = "") -> Callable[[IncludeHandler], IncludeHandler]:
    """Register an include handler in the global registry.

    Usage:
        @register_include_processor(lambda t: t.startswith("env:"))
        def env_lines(request):
            return [os.environ.get(request.target[4:], "")]
    """
    return global_registry.include_processor(handles, name)


def load_extension(name: str, registry: ExtensionRegistry) -> object:
    """Import an extension module and let it register its hooks.

    ``name`` is a dotted module name or a path to a ``.py`` file. A module
    defining ``register(registry)`` is called with ``registry``; other
    modules are imported for their side effects only.

    Raises:
        ExtensionLoadError: If the module cannot be imported
    """
    try:
        if name.endswith(".py") or os.sep in name or "/" in name:
            path = Path(name)
            spec = importlib.util.spec_from_file_location(path.stem, path)
            if spec is None or spec.loader is None or not path.is_file():
                raise ImportError(name)
            module = importlib.util.module_from_spec(spec)
            spec.loader.exec_module(module)
        else:
            module = importlib.import_module(name)
    except ImportError as exc:
        raise ExtensionLoadError(name) from exc

    register = getattr(module, "register", None)
    if callable(register):
        register(registry)
    logger.debug("loaded extension %s", name)
    return module


__all__ = [
    "ExtensionRegistry",
    "IncludeProcessor",
    "global_registry",
    "register_include_processor",
    "load_extension",
]
