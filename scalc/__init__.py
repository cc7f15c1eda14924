"""
SCALC - Embeddable postfix calculator with precision-tagged numbers.

Public API:
- ScalcRuntime: Canonical runtime entrypoint (never raises, returns RuntimeResult)
- parse: Source text -> canonical tree
- evaluate: Source text -> list of Pfloat
- format_stack: Render values at their tracked precision
"""

from .pfloat import Pfloat
from .tokenize import LexError, Token, tokenize
from .evaluator import Evaluator, EvaluationError
from .runtime import (
    ParseError,
    RuntimeResult,
    ScalcRuntime,
    evaluate,
    format_stack,
    parse,
)

# Derive version from package metadata
try:
    from importlib.metadata import version
    __version__ = version("scalc")
except Exception:
    __version__ = "1.0.0"

__all__ = [
    "ScalcRuntime",
    "RuntimeResult",
    "Evaluator",
    "Pfloat",
    "Token",
    "tokenize",
    "parse",
    "evaluate",
    "format_stack",
    "LexError",
    "ParseError",
    "EvaluationError",
]
