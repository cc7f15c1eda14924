"""
scalc/grammar.py - Grammar layer (PEG)

The postfix grammar

    Stack  -> Stack Smp | E Stack | Stack P Stack | e
    E      -> Stack Sop | E E E ? | E Uop | E E Bop | Number
    Bop    -> bop | Bop Bop E ?      (likewise Uop, Sop, Smp)

is left-recursive, so it is expressed here in PEG form: an expression is
an operand followed by postfix suffixes, and an operator is a symbol
followed by conditional choices. Greedy suffix matching reduces the top of
the stack first, which is exactly postfix order.
"""

import hashlib
import os
import threading

from arpeggio import ParserPython, ZeroOrMore, Optional, EOF
from arpeggio import RegExMatch as _

from .lexicon import (
    INT_PATTERN,
    DEC_PATTERN,
    UOP_PATTERN,
    BOP_PATTERN,
    SOP_PATTERN,
    SMP_PATTERN,
    TERNARY_PATTERN,
    LPAREN_PATTERN,
    RPAREN_PATTERN,
)

# Grammar version tracking for cache invalidation
GRAMMAR_VERSION = "1.0.0"  # Increment when grammar changes

_DEBUG_ENABLED = os.getenv("SCALC_DEBUG", "0") == "1"


def _debug_print(*args, **kwargs):
    if _DEBUG_ENABLED:
        print(*args, **kwargs)


# ==========================================
# TERMINALS
# ==========================================

def integer():
    return _(INT_PATTERN)


def fraction():
    # Must touch the integer it extends: "1.5" but not "1 .5"
    return _(r"(?<=\d)" + DEC_PATTERN)


def unary_symbol():
    return _(UOP_PATTERN)


def binary_symbol():
    return _(BOP_PATTERN)


def aggregate_symbol():
    return _(SOP_PATTERN)


def manip_symbol():
    return _(SMP_PATTERN)


def ternary_marker():
    return _(TERNARY_PATTERN)


def open_paren():
    return _(LPAREN_PATTERN)


def close_paren():
    return _(RPAREN_PATTERN)


# ==========================================
# OPERATORS
# ==========================================
# Op -> symbol | Op Op E ?  becomes  symbol (Op E ?)*

def unary_choice():
    return unary_op, expression, ternary_marker


def unary_op():
    return unary_symbol, ZeroOrMore(unary_choice)


def binary_choice():
    return binary_op, expression, ternary_marker


def binary_op():
    return binary_symbol, ZeroOrMore(binary_choice)


def aggregate_choice():
    return aggregate_op, expression, ternary_marker


def aggregate_op():
    return aggregate_symbol, ZeroOrMore(aggregate_choice)


def manip_choice():
    return stack_manip_op, expression, ternary_marker


def stack_manip_op():
    return manip_symbol, ZeroOrMore(manip_choice)


# ==========================================
# EXPRESSIONS
# ==========================================

def number():
    return integer, Optional(fraction)


def group():
    return open_paren, ZeroOrMore(_elements()), close_paren


def aggregate_group():
    # ( ... ) sum : the group is the aggregate's whole argument
    return group, aggregate_op


def binary_suffix():
    return expression, binary_op


def ternary_suffix():
    return expression, expression, ternary_marker


def _suffixes():
    return [binary_suffix, unary_op, ternary_suffix]


def expression():
    return [number, aggregate_group], ZeroOrMore(_suffixes())


def aggregate_tail():
    # Bare aggregate: takes the preceding sequence, then acts as an operand
    return aggregate_op, ZeroOrMore(_suffixes())


def _elements():
    return [aggregate_tail, expression, group, stack_manip_op]


def program():
    return ZeroOrMore(_elements()), EOF


# ==========================================
# PARSER INSTANCE
# ==========================================

_GLOBAL_PARSER = None
_GRAMMAR_HASH = None
_PARSER_LOCK = threading.Lock()


def get_parser():
    """Get global parser instance, creating it if needed."""
    global _GLOBAL_PARSER, _GRAMMAR_HASH
    with _PARSER_LOCK:
        if _GLOBAL_PARSER is None:
            _GLOBAL_PARSER = ParserPython(program, reduce_tree=False, memoization=True)
            _GRAMMAR_HASH = hashlib.sha256(GRAMMAR_VERSION.encode()).hexdigest()[:8]
            _debug_print(f"DEBUG grammar built (hash={_GRAMMAR_HASH})")
    return _GLOBAL_PARSER


def grammar_hash() -> str:
    get_parser()
    return _GRAMMAR_HASH


def parse_tree(source: str):
    """
    Parse source text into a raw arpeggio parse tree.

    Raises:
        arpeggio.NoMatch: If no derivation matches.
    """
    parser = get_parser()
    # Arpeggio keeps parse state on the parser object; serialize access
    with _PARSER_LOCK:
        return parser.parse(source)
