"""
runtime.py

SCALC Runtime
-------------

The ScalcRuntime is the unified entrypoint for evaluating SCALC programs.

It connects:
    - canonicalize_source (text normalization)
    - tokenize            (lexical check, LexError)
    - grammar             (PEG parser -> raw parse tree, ParseError)
    - Canonicalizer       (raw tree -> canonical tree)
    - Evaluator           (canonical tree -> List[Pfloat])
    - lenient / strict mode
    - depth limit and consistent error outcomes
"""

from __future__ import annotations

import copy
import sys
import threading
import traceback
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, List, Optional

from arpeggio import NoMatch

from .canonical import canonicalize, canonicalize_source
from .evaluator import Evaluator, EvaluationError
from .grammar import grammar_hash, parse_tree
from .nodes import Stack, tree_depth
from .pfloat import Pfloat
from .tokenize import LexError, tokenize


class ParseError(Exception):
    pass


# ==========================================
# CANONICAL TREE CACHE
# ==========================================
# Identical programs share one parse; every caller gets a private copy.

_TREE_CACHE = OrderedDict()
_TREE_CACHE_MAX_SIZE = 1000
_TREE_CACHE_LOCK = threading.Lock()


def _build_tree(source: str) -> Stack:
    # Lexical check only; the grammar scans the text itself
    tokenize(source)
    try:
        raw = parse_tree(source)
    except NoMatch as e:
        raise ParseError(f"ERR_PARSE: {e}") from e
    return canonicalize(raw)


def _get_cached_tree(source: str) -> Stack:
    """Get cached canonical tree or parse and cache (thread-safe, grammar-versioned)."""
    cache_key = f"{grammar_hash()}:{source}"

    with _TREE_CACHE_LOCK:
        if cache_key in _TREE_CACHE:
            _TREE_CACHE.move_to_end(cache_key)
            return copy.deepcopy(_TREE_CACHE[cache_key])

    tree = _build_tree(source)

    with _TREE_CACHE_LOCK:
        if cache_key not in _TREE_CACHE:
            if len(_TREE_CACHE) >= _TREE_CACHE_MAX_SIZE:
                _TREE_CACHE.popitem(last=False)
            _TREE_CACHE[cache_key] = tree
        else:
            _TREE_CACHE.move_to_end(cache_key)
        return copy.deepcopy(_TREE_CACHE[cache_key])


def clear_tree_cache() -> None:
    with _TREE_CACHE_LOCK:
        _TREE_CACHE.clear()


# ==========================================
# PUBLIC API
# ==========================================

def parse(source: str) -> Stack:
    """
    Parse a program into its canonical tree.

    Raises:
        LexError: No token rule matches at some offset.
        ParseError: No grammar derivation matches the tokens.
    """
    return _get_cached_tree(canonicalize_source(source))


def evaluate(source: str, *, strict: bool = False) -> List[Pfloat]:
    """
    Parse and evaluate a program.

    Returns the resulting stack, bottom first. With strict=True malformed
    literals and missing arguments raise EvaluationError instead of
    evaluating to zero.
    """
    return Evaluator(strict=strict).evaluate(parse(source))


def format_stack(values: List[Pfloat]) -> List[str]:
    """Render each value with exactly its tracked precision."""
    return [str(v) for v in values]


# -------------------------------------------------------------------------
# Runtime Result Object
# -------------------------------------------------------------------------

@dataclass
class RuntimeResult:
    """
    Public result returned by ScalcRuntime.evaluate(...)

    This object contains:
        - domain: stack | error
        - value: list of Pfloat (None on error)
        - code: error code (ERR_LEX, ERR_PARSE, ...) or None
        - error: optional message
        - canonical_source: the normalized program text
        - raw_tree: canonical tree (debug only)
    """
    domain: str
    value: Optional[List[Pfloat]]
    code: Optional[str]
    error: Optional[str]
    canonical_source: str
    raw_tree: Any = None

    @property
    def ok(self) -> bool:
        return self.domain == "stack"

    @property
    def formatted(self) -> List[str]:
        return format_stack(self.value or [])


# -------------------------------------------------------------------------
# Runtime Core
# -------------------------------------------------------------------------

class ScalcRuntime:
    """
    The canonical SCALC runtime.

    Responsibilities:
        - canonicalize program text
        - parse into a canonical tree (cached, copied per call)
        - enforce the depth limit
        - evaluate with Evaluator in lenient or strict mode
        - turn every failure into an error RuntimeResult
    """

    MAX_DEPTH = 100

    def __init__(
        self,
        *,
        strict_mode: bool = False,
        debug: bool = False,
        max_depth: Optional[int] = None,
    ):
        self.strict_mode = strict_mode
        self.debug = debug
        self.max_depth = max_depth if max_depth is not None else self.MAX_DEPTH
        if self.debug:
            sys.stderr.write(
                f"[ScalcRuntime] Initialized (strict_mode={strict_mode}, max_depth={self.max_depth})\n"
            )

    def parse(self, source: str) -> Stack:
        return parse(source)

    def evaluate(self, source: str) -> RuntimeResult:
        """
        Evaluate a single program. Never raises.
        """
        source = canonicalize_source(source)

        try:
            try:
                tree = self.parse(source)
            except LexError as e:
                return self._error("ERR_LEX", str(e), source)
            except ParseError as e:
                return self._error("ERR_PARSE", str(e), source)

            depth = tree_depth(tree)
            if depth > self.max_depth:
                msg = f"Tree depth exceeded: {depth} > {self.max_depth}"
                return self._error("ERR_RECURSION_LIMIT", msg, source)

            evaluator = Evaluator(strict=self.strict_mode, debug=self.debug)
            try:
                values = evaluator.evaluate(tree)
            except EvaluationError as e:
                return self._error("ERR_EVAL", f"ERR_EVAL: {e}", source)

            return RuntimeResult(
                domain="stack",
                value=values,
                code=None,
                error=None,
                canonical_source=source,
                raw_tree=tree if self.debug else None,
            )

        except RecursionError as e:
            return self._error("ERR_RECURSION_LIMIT", f"ERR_RECURSION_LIMIT: {e}", source)
        except Exception as e:
            if self.debug:
                tb = traceback.format_exc()
                sys.stderr.write(f"Runtime exception: {e}\n{tb}\n")
            return self._error("ERR_RUNTIME_INTERNAL", f"ERR_RUNTIME_INTERNAL: {e}", source)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _error(self, code: str, msg: str, source: str) -> RuntimeResult:
        if self.debug:
            sys.stderr.write(f"[ScalcRuntime] {code}: {msg}\n")
        return RuntimeResult(
            domain="error",
            value=None,
            code=code,
            error=msg,
            canonical_source=source,
        )
