#!/usr/bin/env python3
"""
Render parsed components back to DSL text.

The output re-parses to an equal AST. 'compact' style uses '[start:end]' and
'INPUT + v' spellings; 'z3' style uses '(Range base size stride)' and
'(Add #x..)' wherever the grammar has a Z3 spelling. Sequences and switches
only exist in the compact syntax and are printed that way in both styles.
"""

from typing import List, Optional

from .config import DslConfig
from .structures import (
    INPUT, Comparison, Not, Combine, BoolExpr, Range, Partition,
    Noop, Constant, Add, SubPV, SubVP, RShift, Primitive, Sequence, Switch,
    TranslationExpr, Bank, Component,
)

STYLES = ("compact", "z3")

Z3_NAMES = {
    Constant: "Constant",
    Add: "Add",
    SubPV: "SubPV",
    SubVP: "SubVP",
    RShift: "RShift",
}


def _check_style(style: str):
    if style not in STYLES:
        raise ValueError(f"Unknown style '{style}' (expected one of: {', '.join(STYLES)})")


def format_hex(value: int) -> str:
    return f"#x{value:x}"

# ============================================================================
# Layouts
# ============================================================================

def format_range(r: Range, style: str = "compact", config: Optional[DslConfig] = None) -> str:
    """Format one range.

    The compact form spells the end as a literal, so a range ending at
    2**width only fits the Z3 form, which needs a stride and, in 'size'
    mode, spells the end as a size.
    """
    _check_style(style)
    config = config or DslConfig()
    limit = 1 << config.width
    at_top = r.end >= limit

    # The Z3 form always carries a stride, so contiguous ranges stay compact
    if r.stride is not None and (style == "z3" or at_top):
        second = r.end if config.z3_range == "end" else r.end - r.start
        if second >= limit:
            raise ValueError(f"Range {r} cannot be written with {config.width}-bit literals "
                             f"(z3_range: {config.z3_range})")
        return f"(Range {r.start} {second} {r.stride})"

    if at_top:
        raise ValueError(f"Range {r} cannot be written with {config.width}-bit literals")
    if r.stride is None:
        return f"[{r.start}:{r.end}]"
    return f"[{r.start}:{r.end}:{r.stride}]"


def format_partition(p: Partition, style: str = "compact", config: Optional[DslConfig] = None) -> str:
    if len(p.ranges) == 1:
        return format_range(p.ranges[0], style, config)
    return "[" + " ".join(format_range(r, style, config) for r in p.ranges) + "]"

# ============================================================================
# Boolean expressions
# ============================================================================

def format_bool_expr(expr: BoolExpr, nested: bool = False) -> str:
    """Format a boolean expression.

    Nested Combine chains and negations are parenthesized so that re-parsing
    keeps the same left-to-right grouping.
    """
    if isinstance(expr, Comparison):
        # The grammar only has INPUT comparisons
        if expr.operand != INPUT:
            raise ValueError(f"Guard '{expr}' compares selector '{expr.operand}', "
                             f"which has no DSL spelling")
        return str(expr)

    if isinstance(expr, Not):
        text = f"!({format_bool_expr(expr.operand)})"
        return f"({text})" if nested else text

    if isinstance(expr, Combine):
        parts = [format_bool_expr(expr.operands[0], nested=True)]
        for op, operand in zip(expr.operators, expr.operands[1:]):
            parts.append(op.value)
            parts.append(format_bool_expr(operand, nested=True))
        text = " ".join(parts)
        return f"({text})" if nested else text

    raise TypeError(f"Not a boolean expression: {expr!r}")


def format_guard(expr: BoolExpr) -> str:
    """Switch guards are single terms, so chains need parentheses"""
    if isinstance(expr, Combine):
        return f"({format_bool_expr(expr)})"
    return format_bool_expr(expr)

# ============================================================================
# Translations
# ============================================================================

def format_primitive(prim: Primitive, style: str = "compact") -> str:
    _check_style(style)
    if isinstance(prim, Noop):
        return "NOOP"
    if style == "z3":
        return f"({Z3_NAMES[type(prim)]} {format_hex(prim.value)})"
    return str(prim)


def format_translation(expr: TranslationExpr, style: str = "compact") -> str:
    if isinstance(expr, Switch):
        arms = [f"{format_guard(c.guard)} -> {format_translation(c.body, style)}" for c in expr.cases]
        arms.append(f"-> {format_translation(expr.default, style)}")
        return "switch { " + ", ".join(arms) + " }"

    if isinstance(expr, Sequence):
        return "[" + "; ".join(format_primitive(s, style) for s in expr.steps) + "]"

    return format_primitive(expr, style)

# ============================================================================
# Components
# ============================================================================

def format_bank(bank: Bank, style: str = "compact", config: Optional[DslConfig] = None) -> str:
    return (f"bank {{ layout: {format_partition(bank.layout, style, config)} "
            f"translation: {format_translation(bank.translation, style)} }}")


def format_component(component: Component, style: Optional[str] = None,
                     config: Optional[DslConfig] = None) -> str:
    """Render a component as DSL text, one bank per line"""
    config = config or DslConfig(width=component.width)
    style = style or config.style
    _check_style(style)

    lines: List[str] = [f"memory<{component.param_a}, {component.param_b}> {{"]
    for bank in component.banks:
        lines.append("    " + format_bank(bank, style, config))
    lines.append("}")
    return "\n".join(lines) + "\n"
