"""
scalc/tokenize.py

Shared tokenizer for SCALC.
Converts source text into typed tokens using the lexicon's rule table.
"""

import re
from functools import lru_cache
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from scalc.lexicon import TOKEN_RULES


class LexError(Exception):
    """Raised when no token rule matches at some input position."""

    def __init__(self, message: str, position: int):
        super().__init__(message)
        self.position = position


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


TokenRule = Tuple[str, str, bool]

_COMPILED_MAX_TABLES = 32


@lru_cache(maxsize=_COMPILED_MAX_TABLES)
def _compile_table(rules: Tuple[TokenRule, ...]):
    return [(kind, re.compile(pattern), ignored) for kind, pattern, ignored in rules]


def _compile(rules: Sequence[TokenRule]):
    return _compile_table(tuple(tuple(rule) for rule in rules))


def tokenize(text: str, rules: Sequence[TokenRule] = TOKEN_RULES) -> List[Token]:
    """
    Split text into tokens.

    At each offset every rule is tried; the longest match wins and earlier
    rules win ties. Tokens from ignored rules (whitespace) are dropped.

    Args:
        text: Source text.
        rules: Sequence of (kind, regex, ignored) triples.

    Returns:
        Tokens in order of appearance.

    Raises:
        LexError: If no rule matches at some offset.
    """
    compiled = _compile(rules)
    tokens = []
    pos = 0
    end = len(text)

    while pos < end:
        best = None
        for kind, regex, ignored in compiled:
            m = regex.match(text, pos)
            if m is None or m.end() == pos:
                continue
            if best is None or m.end() > best[1].end():
                best = (kind, m, ignored)

        if best is None:
            snippet = text[pos:pos + 10]
            raise LexError(f"ERR_LEX: no token matches at offset {pos}: {snippet!r}", pos)

        kind, m, ignored = best
        if not ignored:
            tokens.append(Token(kind, m.group(0), pos))
        pos = m.end()

    return tokens
