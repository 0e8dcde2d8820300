#!/usr/bin/env python3
"""
AST node types for bank-switched memory descriptions.

All nodes are frozen dataclasses holding tuples, so a parsed Component is an
immutable value that can be shared between threads and evaluated repeatedly.
Both surface syntaxes (Z3-style and compact) produce these same nodes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

from .errors import MalformedRange, NoBankMatch

# Symbol bound to the address being translated
INPUT = "INPUT"

DEFAULT_WIDTH = 64

# ============================================================================
# Boolean expressions
# ============================================================================

class ComparisonOperator(Enum):
    LEQ = "<="
    GEQ = ">="
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"

    def apply(self, left: int, right: int) -> bool:
        if self is ComparisonOperator.LEQ:
            return left <= right
        if self is ComparisonOperator.GEQ:
            return left >= right
        if self is ComparisonOperator.EQ:
            return left == right
        if self is ComparisonOperator.NEQ:
            return left != right
        if self is ComparisonOperator.LT:
            return left < right
        return left > right


class ComparisonSide(Enum):
    """Which side of a comparison holds the symbolic input"""
    INPUT_LEFT = "left"    # INPUT < 4
    INPUT_RIGHT = "right"  # 4 < INPUT


class BoolOp(Enum):
    AND = "&&"
    OR = "||"


@dataclass(frozen=True)
class Comparison:
    """Comparison between a named input and a literal, e.g. 'INPUT <= #x10'"""
    side: ComparisonSide
    operator: ComparisonOperator
    literal: int
    operand: str = INPUT

    def __str__(self):
        if self.side is ComparisonSide.INPUT_LEFT:
            return f"{self.operand} {self.operator.value} {self.literal}"
        return f"{self.literal} {self.operator.value} {self.operand}"


@dataclass(frozen=True)
class Not:
    operand: 'BoolExpr'

    def __str__(self):
        return f"!({self.operand})"


@dataclass(frozen=True)
class Combine:
    """Flat chain of operands joined by && / ||, evaluated strictly left to right.

    operators[i] is the operator between operands[i] and operands[i + 1].
    There is no precedence between && and ||: 'a && b || c' is '(a && b) || c'
    and 'a || b && c' is '(a || b) && c'.
    """
    operands: Tuple['BoolExpr', ...]
    operators: Tuple[BoolOp, ...]

    def __post_init__(self):
        if len(self.operands) < 2:
            raise ValueError("Combine needs at least two operands")
        if len(self.operators) != len(self.operands) - 1:
            raise ValueError(f"Combine of {len(self.operands)} operands needs "
                             f"{len(self.operands) - 1} operators, got {len(self.operators)}")

    def __str__(self):
        parts = [str(self.operands[0])]
        for op, operand in zip(self.operators, self.operands[1:]):
            parts.append(op.value)
            parts.append(str(operand))
        return "(" + " ".join(parts) + ")"


BoolExpr = Union[Comparison, Not, Combine]

# ============================================================================
# Layouts
# ============================================================================

@dataclass(frozen=True)
class Range:
    """Addresses {start, start+stride, ...} below end, or [start, end) with no stride.

    Both '[start:end:stride]' and '(Range base size stride)' produce a Range.
    """
    start: int
    end: int
    stride: Optional[int] = None

    def __post_init__(self):
        if self.start < 0:
            raise MalformedRange(f"Range start {self.start} is negative", self.start, self.end, self.stride)
        if self.end < self.start:
            raise MalformedRange(f"Range end {self.end:#x} is below start {self.start:#x}",
                                 self.start, self.end, self.stride)
        if self.stride is not None and self.stride <= 0:
            raise MalformedRange(f"Range stride must be positive, got {self.stride}",
                                 self.start, self.end, self.stride)

    @property
    def step(self) -> int:
        return self.stride if self.stride is not None else 1

    def contains(self, address: int) -> bool:
        return self.start <= address < self.end and (address - self.start) % self.step == 0

    def size(self) -> int:
        """Number of addresses in the range"""
        return (self.end - self.start + self.step - 1) // self.step

    def index_of(self, address: int) -> Optional[int]:
        if not self.contains(address):
            return None
        return (address - self.start) // self.step

    def get(self, index: int) -> Optional[int]:
        if index < 0 or index >= self.size():
            return None
        return self.start + index * self.step

    def addresses(self) -> Iterator[int]:
        current = self.start
        while current < self.end:
            yield current
            current += self.step

    def __str__(self):
        if self.stride is None:
            return f"[{self.start:#x}:{self.end:#x}]"
        return f"[{self.start:#x}:{self.end:#x}:{self.stride}]"


@dataclass(frozen=True)
class Partition:
    """Ordered, non-empty list of ranges claimed by one bank.

    Indexing treats the partition as the concatenation of its ranges in
    declaration order.
    """
    ranges: Tuple[Range, ...]

    def __post_init__(self):
        if not self.ranges:
            raise ValueError("Partition needs at least one range")

    def contains(self, address: int) -> bool:
        return any(r.contains(address) for r in self.ranges)

    def size(self) -> int:
        return sum(r.size() for r in self.ranges)

    def index_of(self, address: int) -> Optional[int]:
        base = 0
        for r in self.ranges:
            idx = r.index_of(address)
            if idx is not None:
                return base + idx
            base += r.size()
        return None

    def get(self, index: int) -> Optional[int]:
        if index < 0:
            return None
        base = 0
        for r in self.ranges:
            if index - base < r.size():
                return r.get(index - base)
            base += r.size()
        return None

    def addresses(self) -> Iterator[int]:
        for r in self.ranges:
            yield from r.addresses()

    def __str__(self):
        if len(self.ranges) == 1:
            return str(self.ranges[0])
        return "[" + " ".join(str(r) for r in self.ranges) + "]"

# ============================================================================
# Translations
# ============================================================================

@dataclass(frozen=True)
class Noop:
    """output = input"""

    def __str__(self):
        return "NOOP"


@dataclass(frozen=True)
class Constant:
    """output = value"""
    value: int

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True)
class Add:
    """output = input + value"""
    value: int

    def __str__(self):
        return f"INPUT + {self.value}"


@dataclass(frozen=True)
class SubPV:
    """output = value - input"""
    value: int

    def __str__(self):
        return f"{self.value} - INPUT"


@dataclass(frozen=True)
class SubVP:
    """output = input - value"""
    value: int

    def __str__(self):
        return f"INPUT - {self.value}"


@dataclass(frozen=True)
class RShift:
    """output = input >> value"""
    value: int

    def __str__(self):
        return f"INPUT >> {self.value}"


Primitive = Union[Noop, Constant, Add, SubPV, SubVP, RShift]
PRIMITIVE_TYPES = (Noop, Constant, Add, SubPV, SubVP, RShift)


@dataclass(frozen=True)
class Sequence:
    """Primitives applied left to right, each consuming the previous output"""
    steps: Tuple[Primitive, ...]

    def __post_init__(self):
        if not self.steps:
            raise ValueError("Sequence needs at least one primitive")
        for step in self.steps:
            if not isinstance(step, PRIMITIVE_TYPES):
                raise ValueError(f"Sequence steps must be primitives, got {type(step).__name__}")

    def __str__(self):
        return "[" + "; ".join(str(s) for s in self.steps) + "]"


# Bodies allowed inside a switch case
MidLevel = Union[Primitive, Sequence]


@dataclass(frozen=True)
class SwitchCase:
    guard: BoolExpr
    body: MidLevel


@dataclass(frozen=True)
class Switch:
    """Ordered guarded cases plus a mandatory default; the first true guard wins"""
    cases: Tuple[SwitchCase, ...]
    default: MidLevel

    def __post_init__(self):
        if not self.cases:
            raise ValueError("Switch needs at least one guarded case")
        for body in [c.body for c in self.cases] + [self.default]:
            if isinstance(body, Switch):
                raise ValueError("Switch bodies cannot be nested switches")

    def __str__(self):
        arms = [f"{c.guard} -> {c.body}" for c in self.cases]
        return "switch { " + ", ".join(arms) + f", -> {self.default} }}"


TranslationExpr = Union[Primitive, Sequence, Switch]

# ============================================================================
# Banks and components
# ============================================================================

@dataclass(frozen=True)
class Bank:
    layout: Partition
    translation: TranslationExpr

    def can_read(self, address: int, width: int = DEFAULT_WIDTH) -> bool:
        """True if translating address gives a slot whose layout address is address itself"""
        from .evaluator import evaluate_translation
        slot = evaluate_translation(self.translation, address, width)
        return self.layout.get(slot) == address


@dataclass(frozen=True)
class Component:
    """Top-level memory description.

    param_a and param_b are the two numbers from 'memory<a, b>'; their meaning
    belongs to the host application. width is the bit width the component was
    parsed with, and bounds translation arithmetic.
    """
    param_a: int
    param_b: int
    banks: Tuple[Bank, ...]
    width: int = DEFAULT_WIDTH

    def __post_init__(self):
        if not self.banks:
            raise ValueError("Component needs at least one bank")
        if self.width <= 0:
            raise ValueError(f"Component width must be positive, got {self.width}")

    def select_bank(self, address: int) -> Tuple[int, Bank]:
        """Return (index, bank) for the first bank whose layout contains address"""
        for idx, bank in enumerate(self.banks):
            if bank.layout.contains(address):
                return idx, bank
        raise NoBankMatch(address)
