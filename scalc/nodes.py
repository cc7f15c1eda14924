"""
Canonical tree node variants.

The canonicalizer produces only these types; the evaluator dispatches on
them. Every variant exposes `kind` and `children` so generic walks (depth
checks, debug dumps) do not need to know the variant.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, List, Optional, Tuple, Union


@dataclass
class OpChoice:
    """Operator-category conditional: `first second condition ?`."""
    kind: ClassVar[str] = "OpChoice"
    first: "Operator"
    second: "Operator"
    condition: Optional["Node"]

    @property
    def children(self) -> Tuple[Any, ...]:
        return tuple(c for c in (self.first, self.second, self.condition) if not isinstance(c, str))


# A bare symbol such as "+" or a conditional choice between two operators.
Operator = Union[str, OpChoice]


@dataclass
class Number:
    kind: ClassVar[str] = "Number"
    integer: str
    fraction: Optional[str] = None

    @property
    def children(self) -> Tuple[Any, ...]:
        return ()


@dataclass
class Unary:
    kind: ClassVar[str] = "Unary"
    op: Operator
    operand: Optional["Node"]

    @property
    def children(self) -> Tuple[Any, ...]:
        return _with_op(self.op, self.operand)


@dataclass
class Binary:
    kind: ClassVar[str] = "Binary"
    op: Operator
    left: Optional["Node"]
    right: Optional["Node"]

    @property
    def children(self) -> Tuple[Any, ...]:
        return _with_op(self.op, self.left, self.right)


@dataclass
class Aggregate:
    kind: ClassVar[str] = "Aggregate"
    op: Operator
    stack: Optional["Stack"]

    @property
    def children(self) -> Tuple[Any, ...]:
        return _with_op(self.op, self.stack)


@dataclass
class StackManip:
    kind: ClassVar[str] = "StackManip"
    op: Operator

    @property
    def children(self) -> Tuple[Any, ...]:
        return _with_op(self.op)


@dataclass
class Ternary:
    """Value-level selection `branch_a branch_b condition ?`."""
    kind: ClassVar[str] = "Ternary"
    branch_a: Optional["Node"]
    branch_b: Optional["Node"]
    condition: Optional["Node"]

    @property
    def children(self) -> Tuple[Any, ...]:
        return tuple(c for c in (self.branch_a, self.branch_b, self.condition) if c is not None)


@dataclass
class Stack:
    kind: ClassVar[str] = "Stack"
    items: List[Any] = field(default_factory=list)

    @property
    def children(self) -> Tuple[Any, ...]:
        return tuple(self.items)


Node = Union[Number, Unary, Binary, Aggregate, StackManip, Ternary, Stack]


def _with_op(op, *rest):
    out = []
    if isinstance(op, OpChoice):
        out.append(op)
    out.extend(c for c in rest if c is not None)
    return tuple(out)


def tree_depth(node: Any) -> int:
    """Maximum depth of a canonical tree (a leaf has depth 1)."""
    children = getattr(node, "children", ())
    if not children:
        return 1
    return 1 + max(tree_depth(c) for c in children)


def dump(node: Any) -> Any:
    """Plain-data view of a tree: nested (kind, value, children) tuples."""
    if node is None or isinstance(node, str):
        return node
    if isinstance(node, Number):
        return ("Number", node.integer + (node.fraction or ""), [])
    if isinstance(node, OpChoice):
        return ("OpChoice", None, [dump(node.first), dump(node.second), dump(node.condition)])
    value = getattr(node, "op", None)
    if isinstance(value, OpChoice):
        value = None
    return (node.kind, value, [dump(c) for c in node.children])
