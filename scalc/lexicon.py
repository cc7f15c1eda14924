"""
SCALC Operator Lexicon (Single Source of Truth)

This module defines all operator sets and token patterns for the SCALC
language. The tokenizer and the parser grammar take their patterns from
here, and the evaluator's dispatch tables are keyed by the same sets.
"""

import re

# Unary operators (from uop rule)
UNARY_OPS = {
    "--",           # Negate
    "abs",          # Absolute value
}

# Binary operators (from bop rule)
ARITHMETIC_OPS = {"+", "-", "*", "/", "^", "%"}
COMPARISON_OPS = {">", "<", "=", "cmpr"}
BINARY_OPS = ARITHMETIC_OPS | COMPARISON_OPS

# Aggregate operators (from sop rule): consume a whole sub-sequence
AGGREGATE_OPS = {"len", "sum", "avg", "min", "max", "first", "last"}

# Stack manipulation operators (from smp rule): edit the enclosing sequence
STACK_MANIP_OPS = {"swap", "drop", "clear"}

TERNARY_MARKER = "?"


# Word operators must not run into a following identifier character.
_WORD_END = r"(?![A-Za-z_])"

# A sign directly followed by a digit belongs to the integer literal.
_SIGN_SYMBOLS = {"+", "-"}


def ops_pattern(ops) -> str:
    """
    Build one alternation matching any operator of a set.

    Longest operators come first so a prefix never shadows a longer
    symbol; word operators get a word-end guard and the binary signs
    refuse a following digit.
    """
    alternatives = []
    for op in sorted(ops, key=lambda o: (-len(o), o)):
        alt = re.escape(op)
        if op[0].isalpha():
            alt += _WORD_END
        elif op in _SIGN_SYMBOLS:
            alt += r"(?!\d)"
        alternatives.append(alt)
    return "|".join(alternatives)


# Token patterns
INT_PATTERN = r"[+-]?\d+"
DEC_PATTERN = r"\.\d+"
UOP_PATTERN = ops_pattern(UNARY_OPS)
BOP_PATTERN = ops_pattern(BINARY_OPS)
SOP_PATTERN = ops_pattern(AGGREGATE_OPS)
SMP_PATTERN = ops_pattern(STACK_MANIP_OPS)
TERNARY_PATTERN = re.escape(TERNARY_MARKER)
LPAREN_PATTERN = r"\("
RPAREN_PATTERN = r"\)"
SPACE_PATTERN = r"\s+"

# (kind, pattern, ignored)
# Order matters only as a tie-break between equally long matches.
TOKEN_RULES = (
    ("space", SPACE_PATTERN, True),
    ("int", INT_PATTERN, False),
    ("dec", DEC_PATTERN, False),
    ("uop", UOP_PATTERN, False),
    ("bop", BOP_PATTERN, False),
    ("sop", SOP_PATTERN, False),
    ("smp", SMP_PATTERN, False),
    ("?", TERNARY_PATTERN, False),
    ("(", LPAREN_PATTERN, False),
    (")", RPAREN_PATTERN, False),
)
