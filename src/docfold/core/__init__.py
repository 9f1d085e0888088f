"""docfold core library package.

The reduction engine lives in :mod:`docfold.core.reduction`; configuration,
logging, output sinks and the exception hierarchy sit beside it.
"""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
