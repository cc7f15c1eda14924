"""
scalc/canonical.py - Shared Canonicalization Logic

Two layers:
    - Source canonicalization: text normalization so whitespace-only
      variants of a program are the same program.
    - Tree canonicalization: reshapes the raw parse tree into the closed
      node variants of scalc.nodes. Structure only; nothing is evaluated.
"""
import os
import unicodedata
from collections import namedtuple

from arpeggio import PTNodeVisitor, visit_parse_tree

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

_DEBUG_ENABLED = os.getenv("SCALC_DEBUG", "0") == "1"


def _debug_print(*args, **kwargs):
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


def canonicalize_source(source: str) -> str:
    """
    Canonicalize program text.

    Rules:
        - Unicode NFKC normalization.
        - Collapse whitespace runs to single ASCII space.
        - Strip leading/trailing whitespace.
    """
    if source is None:
        return ""

    normalized = unicodedata.normalize("NFKC", source)
    return " ".join(normalized.split())


# Intermediate shapes that only live while the visitor runs
_Group = namedtuple("_Group", "stack")
_Choice = namedtuple("_Choice", "operator condition")
_Suffix = namedtuple("_Suffix", "kind operator operands")
_Tail = namedtuple("_Tail", "operator suffixes")


def _is_scoped(stack: Stack) -> bool:
    # A group that edits its own items keeps its own scope
    return any(isinstance(item, StackManip) for item in stack.items)


class Canonicalizer(PTNodeVisitor):
    """
    Bottom-up rewrite of the raw parse tree.

    - Group unwrap: "( ... )" splices into the enclosing sequence, unless it
      is an aggregate's argument or contains swap/drop/clear.
    - Single-child promotion: an expression with no suffix is its operand,
      an operator with no choice is its bare symbol.
    - Aggregate capture: a bare aggregate takes the preceding sequence.
    - Ternaries and stack-manipulation markers stay unevaluated.
    """

    # --- Terminals ---

    def visit_integer(self, node, children):
        return node.value

    def visit_fraction(self, node, children):
        return node.value

    def visit_unary_symbol(self, node, children):
        return node.value

    def visit_binary_symbol(self, node, children):
        return node.value

    def visit_aggregate_symbol(self, node, children):
        return node.value

    def visit_manip_symbol(self, node, children):
        return node.value

    def visit_ternary_marker(self, node, children):
        return None

    def visit_open_paren(self, node, children):
        return None

    def visit_close_paren(self, node, children):
        return None

    def visit_EOF(self, node, children):
        return None

    # --- Operators ---

    def _fold_choices(self, children):
        """symbol (Op E ?)* -> left-nested OpChoice, or the bare symbol."""
        op = children[0]
        for choice in children[1:]:
            op = OpChoice(op, choice.operator, choice.condition)
        return op

    def _choice(self, node, children):
        # Op E ?  (the marker is suppressed)
        return _Choice(children[0], children[1])

    visit_unary_choice = _choice
    visit_binary_choice = _choice
    visit_aggregate_choice = _choice
    visit_manip_choice = _choice

    def visit_unary_op(self, node, children):
        return self._fold_choices(children)

    def visit_binary_op(self, node, children):
        return self._fold_choices(children)

    def visit_aggregate_op(self, node, children):
        return self._fold_choices(children)

    def visit_stack_manip_op(self, node, children):
        return StackManip(self._fold_choices(children))

    # --- Expressions ---

    def visit_number(self, node, children):
        if len(children) == 2:
            return Number(children[0], children[1])
        return Number(children[0])

    def visit_group(self, node, children):
        return _Group(self._build_stack(children))

    def visit_aggregate_group(self, node, children):
        group, op = children
        return Aggregate(op, group.stack)

    def visit_binary_suffix(self, node, children):
        right, op = children
        return _Suffix("binary", op, (right,))

    def visit_ternary_suffix(self, node, children):
        branch_b, condition = children
        return _Suffix("ternary", None, (branch_b, condition))

    def visit_expression(self, node, children):
        result = children[0]
        for suffix in children[1:]:
            result = self._apply_suffix(result, suffix)
        return result

    def visit_aggregate_tail(self, node, children):
        return _Tail(children[0], list(children[1:]))

    def visit_program(self, node, children):
        stack = self._build_stack(children)
        _debug_print(f"DEBUG canonical program: {len(stack.items)} items")
        return stack

    # --- Helpers ---

    @staticmethod
    def _apply_suffix(operand, suffix):
        if not isinstance(suffix, _Suffix):
            # Bare unary operator (symbol or OpChoice)
            return Unary(suffix, operand)
        if suffix.kind == "binary":
            return Binary(suffix.operator, operand, suffix.operands[0])
        branch_b, condition = suffix.operands
        return Ternary(operand, branch_b, condition)

    def _build_stack(self, elements):
        items = []
        for el in elements:
            if isinstance(el, _Tail):
                if items and isinstance(items[-1], _Group):
                    argument = items.pop().stack
                else:
                    argument = self._finalize(items)
                    items = []
                result = Aggregate(el.operator, argument)
                for suffix in el.suffixes:
                    result = self._apply_suffix(result, suffix)
                items.append(result)
            else:
                items.append(el)
        return self._finalize(items)

    @staticmethod
    def _finalize(items):
        out = []
        for item in items:
            if isinstance(item, _Group):
                if _is_scoped(item.stack):
                    out.append(item.stack)
                else:
                    out.extend(item.stack.items)
            else:
                out.append(item)
        return Stack(out)


def canonicalize(tree, debug=False) -> Stack:
    """Turn a raw parse tree into a canonical Stack."""
    return visit_parse_tree(tree, Canonicalizer(debug=debug))
