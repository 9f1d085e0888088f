"""Library entry points.

    from docfold import reduce, reduce_file

    result = reduce_file("docs/index.adoc", attributes={"env": "ci"})
    print(result.text)
    print(result.origin_of(3).describe())

``reduce`` accepts literal text, a readable stream, or a path; ``reduce_file``
only accepts a path. Both raise :class:`~docfold.core.exceptions.ReductionFailed`
when the verdict fails unless ``raise_on_failure=False``; the output target
is written only when the verdict succeeds.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from docfold.core.output.writer import OutputWriter, Target

from .buffer import DocumentBuffer, SourceLine, SourceRef, split_lines
from .extensions import ExtensionRegistry, global_registry
from .options import ReductionOptions
from .orchestrator import Reducer
from .paths import normalize
from .result import ReductionResult

logger = logging.getLogger(__name__)

STDIN_ID = "<stdin>"

Source = Union[str, bytes, "os.PathLike[str]", Any]


def _resolve_options(options: Optional[ReductionOptions], overrides: Dict[str, Any]) -> ReductionOptions:
    if options is None:
        return ReductionOptions(**overrides)
    if overrides:
        return options.with_overrides(**overrides)
    return options


def _read_source(source: Source, encoding: str) -> Tuple[str, Optional[str]]:
    """Return ``(text, path)``; ``path`` is None for text and anonymous streams."""
    if isinstance(source, os.PathLike):
        path = normalize(source)
        with open(path, "r", encoding=encoding, newline="") as f:
            return f.read(), path
    if isinstance(source, bytes):
        return source.decode(encoding), None
    if isinstance(source, str):
        return source, None
    if hasattr(source, "read"):
        data = source.read()
        if isinstance(data, bytes):
            data = data.decode(encoding)
        name = getattr(source, "name", None)
        if isinstance(name, str) and os.path.isfile(name):
            return data, normalize(name)
        return data, None
    raise TypeError(f"cannot reduce source of type {type(source).__name__}")


def _intrinsics(path: Optional[str], options: ReductionOptions) -> Dict[str, str]:
    mode = options.safe_mode.value
    values = {"safe-mode-name": mode, f"safe-mode-{mode}": ""}
    if path is not None:
        p = Path(path)
        values.update(
            {
                "docfile": path,
                "docdir": str(p.parent),
                "docname": p.stem,
                "docfilesuffix": p.suffix,
            }
        )
    return values


def _preprocess(texts: List[str], registry: ExtensionRegistry) -> List[str]:
    for preprocessor in registry.preprocessors:
        replaced = preprocessor(texts)
        if replaced is not None:
            texts = list(replaced)
    return texts


def reduce(
    source: Source,
    *,
    to: Target = None,
    options: Optional[ReductionOptions] = None,
    raise_on_failure: bool = True,
    **overrides: Any,
) -> ReductionResult:
    """Reduce a composite document to a single flattened line stream.

    Args:
        source: Literal text (``str``/``bytes``), a readable stream, or a
            ``Path``. A stream whose ``name`` is an existing file is treated
            as that file.
        to: Output target (see :mod:`docfold.core.output.writer`)
        options: Reduction options; keyword ``overrides`` replace fields
        raise_on_failure: Raise ``ReductionFailed`` on a failed verdict

    Returns:
        The reduction result, carrying text, source map and diagnostics

    Raises:
        ReductionFailed: If the verdict fails and ``raise_on_failure`` is set
        OSError: If a source path cannot be read or ``to`` cannot be written
    """
    opts = _resolve_options(options, overrides)
    registry = opts.extensions if opts.extensions is not None else global_registry

    text, path = _read_source(source, opts.encoding)
    if path is not None:
        root_id = path
        root_dir = os.path.dirname(path)
    else:
        root_id = STDIN_ID
        root_dir = normalize(opts.base_dir if opts.base_dir is not None else os.getcwd())
    jail_dir = normalize(opts.base_dir) if opts.base_dir is not None else root_dir

    texts = _preprocess(split_lines(text), registry)
    buffer = DocumentBuffer([SourceLine(t, SourceRef(root_id, n)) for n, t in enumerate(texts, start=1)])

    reducer = Reducer(
        opts,
        registry,
        root_id=root_id,
        root_dir=root_dir,
        jail_dir=jail_dir,
        intrinsics=_intrinsics(path, opts),
    )
    result = reducer.reduce(buffer)
    logger.debug("reduced %s to %d lines (%d diagnostics)", root_id, len(result.lines), len(result.diagnostics))

    for postprocessor in registry.postprocessors:
        postprocessor(result)

    if raise_on_failure:
        result.raise_for_failure()
    if result.ok:
        OutputWriter(encoding=opts.encoding).write(to, result.text)
    return result


def reduce_file(
    path: Union[str, "os.PathLike[str]"],
    *,
    to: Target = None,
    options: Optional[ReductionOptions] = None,
    raise_on_failure: bool = True,
    **overrides: Any,
) -> ReductionResult:
    """Reduce the document at ``path``. See :func:`reduce`."""
    return reduce(Path(path), to=to, options=options, raise_on_failure=raise_on_failure, **overrides)


__all__ = ["reduce", "reduce_file", "STDIN_ID"]
