"""
scalc/evaluator.py - Semantic evaluator

Walks a canonical tree (scalc.nodes) and produces Pfloat values. The tree
is never mutated: ternary selection and stack manipulation build new
item lists, so an unselected branch is never touched.
"""

import os
import sys
from typing import Any, Callable, Dict, List

from .nodes import (
    Aggregate,
    Binary,
    Number,
    OpChoice,
    Stack,
    StackManip,
    Ternary,
    Unary,
)
from .pfloat import (
    Pfloat,
    ZERO,
    ieee_div,
    ieee_mod,
    ieee_pow,
    max_precision,
)

_DEBUG_ENABLED = os.getenv("SCALC_DEBUG", "0") == "1"


def _debug_print(*args, **kwargs):
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


class EvaluationError(Exception):
    """Raised in strict mode where lenient mode would substitute a zero."""


def _truth(flag: bool) -> float:
    return 1.0 if flag else 0.0


def _cmpr(a: float, b: float) -> float:
    if a > b:
        return 1.0
    if a < b:
        return -1.0
    return 0.0


BINARY_FUNCS: Dict[str, Callable[[float, float], float]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": ieee_div,
    "^": ieee_pow,
    "%": ieee_mod,
    ">": lambda a, b: _truth(a > b),
    "<": lambda a, b: _truth(a < b),
    "=": lambda a, b: _truth(a == b),
    "cmpr": _cmpr,
}

UNARY_FUNCS: Dict[str, Callable[[float], float]] = {
    "--": lambda a: -a,
    "abs": abs,
}


def _agg_sum(values: List[Pfloat]) -> Pfloat:
    total = 0.0
    for v in values:
        total += v.value
    return Pfloat(total, max_precision(*values))


def _agg_avg(values: List[Pfloat]) -> Pfloat:
    if not values:
        return ZERO
    total = _agg_sum(values)
    return Pfloat(total.value / len(values), total.precision)


def _agg_len(values: List[Pfloat]) -> Pfloat:
    return Pfloat(float(len(values)), 0)


def _agg_min(values: List[Pfloat]) -> Pfloat:
    if not values:
        return ZERO
    best = values[0]
    for v in values[1:]:
        if v.value < best.value:
            best = v
    return best


def _agg_max(values: List[Pfloat]) -> Pfloat:
    if not values:
        return ZERO
    best = values[0]
    for v in values[1:]:
        if v.value > best.value:
            best = v
    return best


# 'last' answers the first element and 'first' the last one.
AGGREGATE_FUNCS: Dict[str, Callable[[List[Pfloat]], Pfloat]] = {
    "sum": _agg_sum,
    "avg": _agg_avg,
    "len": _agg_len,
    "min": _agg_min,
    "max": _agg_max,
    "last": lambda values: values[0] if values else ZERO,
    "first": lambda values: values[-1] if values else ZERO,
}


def _swap(pending: List[Any]) -> None:
    if len(pending) > 1:
        pending[-1], pending[-2] = pending[-2], pending[-1]


def _drop(pending: List[Any]) -> None:
    if pending:
        pending.pop()


MANIP_FUNCS: Dict[str, Callable[[List[Any]], None]] = {
    "swap": _swap,
    "drop": _drop,
    "clear": lambda pending: pending.clear(),
}


class Evaluator:
    """
    Evaluates canonical trees.

    Args:
        strict: Raise EvaluationError on malformed literals, missing
            arguments and unknown operators instead of substituting the
            zero value.
        debug: Write dispatch traces to stderr.
    """

    def __init__(self, strict: bool = False, debug: bool = False):
        self.strict = strict
        self.debug = debug

    # -------------------------
    # Leniency
    # -------------------------
    def _fail(self, code: str, detail: str) -> Pfloat:
        if self.strict:
            raise EvaluationError(f"{code}: {detail}")
        _debug_print(f"DEBUG {code}: {detail} (substituting zero)")
        return ZERO

    # -------------------------
    # Stacks
    # -------------------------
    def evaluate(self, node: Any) -> List[Pfloat]:
        """
        Evaluate a node to an ordered list of values.

        A Stack yields one value per remaining item; anything else yields
        a single value.
        """
        if isinstance(node, Stack):
            return [self.evaluate_value(item) for item in self.reduce_stack(node)]
        return [self.evaluate_value(node)]

    def reduce_stack(self, stack: Stack) -> List[Any]:
        """
        Apply swap/drop/clear markers to the pending item list and splice
        retained scoped stacks. Items are not evaluated here.
        """
        pending = []
        for item in stack.items:
            if isinstance(item, StackManip):
                self._apply_manip(self.resolve_operator(item.op), pending)
            elif isinstance(item, Stack):
                pending.extend(self.reduce_stack(item))
            else:
                pending.append(item)
        return pending

    def _apply_manip(self, op: str, pending: List[Any]) -> None:
        if self.debug:
            sys.stderr.write(f"[Evaluator] {op} on {len(pending)} pending items\n")
        fn = MANIP_FUNCS.get(op)
        if fn is not None:
            fn(pending)
        elif self.strict:
            raise EvaluationError(f"ERR_UNKNOWN_OPERATOR: stack manipulation {op!r}")

    # -------------------------
    # Selection
    # -------------------------
    def _condition_holds(self, condition: Any) -> bool:
        return self.evaluate_value(condition).value > 0

    def select(self, node: Any) -> Any:
        """
        Resolve chained ternaries to the branch that will be evaluated.

        The condition is evaluated first; a value > 0 picks the second
        written branch, anything else (including NaN) the first.
        """
        while isinstance(node, Ternary):
            node = node.branch_b if self._condition_holds(node.condition) else node.branch_a
        return node

    def resolve_operator(self, op: Any) -> str:
        """Reduce an OpChoice to a bare symbol with the ternary rule."""
        while isinstance(op, OpChoice):
            op = op.second if self._condition_holds(op.condition) else op.first
        return op

    # -------------------------
    # Values
    # -------------------------
    def evaluate_value(self, node: Any) -> Pfloat:
        node = self.select(node)

        if node is None:
            return self._fail("ERR_MISSING_ARGUMENT", "expected a numeric argument")
        if isinstance(node, Number):
            return self._eval_number(node)
        if isinstance(node, Unary):
            return self._eval_unary(node)
        if isinstance(node, Binary):
            return self._eval_binary(node)
        if isinstance(node, Aggregate):
            return self._eval_aggregate(node)
        if isinstance(node, Stack):
            # A value slot holding a sequence: its top is the value
            values = self.evaluate(node)
            if not values:
                return self._fail("ERR_MISSING_ARGUMENT", "empty sequence in value position")
            return values[-1]

        return self._fail("ERR_MISSING_ARGUMENT", f"{getattr(node, 'kind', type(node).__name__)} is not a value")

    def _eval_number(self, node: Number) -> Pfloat:
        try:
            return Pfloat.from_literal(node.integer, node.fraction)
        except ValueError as e:
            return self._fail("ERR_INVALID_NUMBER", str(e))

    def _eval_unary(self, node: Unary) -> Pfloat:
        op = self.resolve_operator(node.op)
        operand = self.evaluate_value(node.operand)
        fn = UNARY_FUNCS.get(op)
        if fn is None:
            if self.strict:
                raise EvaluationError(f"ERR_UNKNOWN_OPERATOR: unary {op!r}")
            return operand
        return Pfloat(fn(operand.value), operand.precision)

    def _eval_binary(self, node: Binary) -> Pfloat:
        op = self.resolve_operator(node.op)
        left = self.evaluate_value(node.left)
        right = self.evaluate_value(node.right)
        p = max_precision(left, right)
        fn = BINARY_FUNCS.get(op)
        if fn is None:
            if self.strict:
                raise EvaluationError(f"ERR_UNKNOWN_OPERATOR: binary {op!r}")
            return Pfloat(0.0, p)
        return Pfloat(fn(left.value, right.value), p)

    def _eval_aggregate(self, node: Aggregate) -> Pfloat:
        op = self.resolve_operator(node.op)
        if node.stack is None:
            values = []
        else:
            values = self.evaluate(node.stack)
        return self.aggregate(op, values)

    def aggregate(self, op: str, values: List[Pfloat]) -> Pfloat:
        """Apply an aggregate operator to already evaluated values."""
        fn = AGGREGATE_FUNCS.get(op)
        if fn is None:
            if self.strict:
                raise EvaluationError(f"ERR_UNKNOWN_OPERATOR: aggregate {op!r}")
            return ZERO
        return fn(values)
