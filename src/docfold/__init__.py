"""
docfold - flatten composite AsciiDoc documents

docfold resolves include directives and preprocessor conditionals into a
single line stream while recording, for every output line, the file and
line it came from.
"""

__version__ = "1.0.0"

# Imported after __version__: the engine reads it for an intrinsic attribute.
from docfold.core.reduction import ReductionOptions, ReductionResult, reduce, reduce_file  # noqa: E402

__all__ = ["__version__", "reduce", "reduce_file", "ReductionOptions", "ReductionResult"]
