#!/usr/bin/env python3
"""
Generate SMT2 definitions directly from a memory description.

Each bank becomes a layout membership predicate and a translation function
over (_ BitVec W). A top-level 'translate' applies them in bank priority
order. The output is plain SMT-LIB2 text for external tools; nothing here
runs a solver.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Set

from .config import load_config
from .errors import BankDslError
from .parser import parse_dsl
from .structures import (
    INPUT, ComparisonOperator, ComparisonSide, Comparison, Not, Combine, BoolOp, BoolExpr,
    Range, Partition, Noop, Constant, Add, SubPV, SubVP, RShift, Primitive, Sequence, Switch,
    TranslationExpr, Component,
)

ADDR = "addr"

SMT_COMPARISONS = {
    ComparisonOperator.LT: "bvult",
    ComparisonOperator.LEQ: "bvule",
    ComparisonOperator.GT: "bvugt",
    ComparisonOperator.GEQ: "bvuge",
    ComparisonOperator.EQ: "=",
    ComparisonOperator.NEQ: "distinct",
}


def bv(value: int, width: int) -> str:
    return f"(_ bv{value} {width})"


def range_to_smt2(r: Range, width: int) -> str:
    """Membership predicate for one range over ADDR"""
    if r.start == r.end:
        return "false"

    terms = [f"(bvuge {ADDR} {bv(r.start, width)})"]
    # An end of 2**width is past every representable address
    if r.end < (1 << width):
        terms.append(f"(bvult {ADDR} {bv(r.end, width)})")
    if r.step > 1:
        terms.append(f"(= (bvurem (bvsub {ADDR} {bv(r.start, width)}) {bv(r.step, width)}) {bv(0, width)})")

    if len(terms) == 1:
        return terms[0]
    return "(and " + " ".join(terms) + ")"


def partition_to_smt2(p: Partition, width: int) -> str:
    terms = [range_to_smt2(r, width) for r in p.ranges]
    if len(terms) == 1:
        return terms[0]
    return "(or " + " ".join(terms) + ")"


def bool_to_smt2(expr: BoolExpr, width: int) -> str:
    if isinstance(expr, Comparison):
        operand = ADDR if expr.operand == INPUT else expr.operand
        literal = bv(expr.literal, width)
        fn = SMT_COMPARISONS[expr.operator]
        if expr.side is ComparisonSide.INPUT_LEFT:
            return f"({fn} {operand} {literal})"
        return f"({fn} {literal} {operand})"

    if isinstance(expr, Not):
        return f"(not {bool_to_smt2(expr.operand, width)})"

    if isinstance(expr, Combine):
        # Fold left to right: a && b || c is (or (and a b) c)
        acc = bool_to_smt2(expr.operands[0], width)
        for op, operand in zip(expr.operators, expr.operands[1:]):
            fn = "and" if op is BoolOp.AND else "or"
            acc = f"({fn} {acc} {bool_to_smt2(operand, width)})"
        return acc

    raise TypeError(f"Not a boolean expression: {expr!r}")


def primitive_to_smt2(prim: Primitive, arg: str, width: int) -> str:
    if isinstance(prim, Noop):
        return arg
    if isinstance(prim, Constant):
        return bv(prim.value, width)
    if isinstance(prim, Add):
        return f"(bvadd {arg} {bv(prim.value, width)})"
    if isinstance(prim, SubPV):
        return f"(bvsub {bv(prim.value, width)} {arg})"
    if isinstance(prim, SubVP):
        return f"(bvsub {arg} {bv(prim.value, width)})"
    if isinstance(prim, RShift):
        return f"(bvlshr {arg} {bv(prim.value, width)})"
    raise TypeError(f"Not a translation primitive: {prim!r}")


def translation_to_smt2(expr: TranslationExpr, width: int) -> str:
    if isinstance(expr, Switch):
        acc = translation_to_smt2(expr.default, width)
        for case in reversed(expr.cases):
            acc = f"(ite {bool_to_smt2(case.guard, width)} {translation_to_smt2(case.body, width)} {acc})"
        return acc

    if isinstance(expr, Sequence):
        acc = ADDR
        for step in expr.steps:
            acc = primitive_to_smt2(step, acc, width)
        return acc

    return primitive_to_smt2(expr, ADDR, width)


def _guard_operands(expr: BoolExpr, names: Set[str]):
    if isinstance(expr, Comparison):
        if expr.operand != INPUT:
            names.add(expr.operand)
    elif isinstance(expr, Not):
        _guard_operands(expr.operand, names)
    elif isinstance(expr, Combine):
        for operand in expr.operands:
            _guard_operands(operand, names)


def generate_smt2_constraints(component: Component, source: str = "") -> str:
    """
    Generate SMT2 definitions for a parsed component.

    Returns: SMT2 code defining bank_<i>_contains, bank_<i>_translate,
    mapped and translate
    """
    width = component.width
    addr_sort = f"(_ BitVec {width})"

    smt2_lines: List[str] = []
    smt2_lines.append("; Definitions generated from bank DSL")
    if source:
        smt2_lines.append(f"; Source: {source}")
    smt2_lines.append(f"; memory<{component.param_a}, {component.param_b}>, "
                      f"{len(component.banks)} banks, {width}-bit addresses")
    smt2_lines.append("")

    # Selector inputs other than the address become free constants
    selectors: Set[str] = set()
    for bank in component.banks:
        if isinstance(bank.translation, Switch):
            for case in bank.translation.cases:
                _guard_operands(case.guard, selectors)
    if selectors:
        smt2_lines.append("; Guard inputs supplied by the caller")
        for name in sorted(selectors):
            smt2_lines.append(f"(declare-const {name} {addr_sort})")
        smt2_lines.append("")

    for idx, bank in enumerate(component.banks):
        smt2_lines.append(f"; Bank {idx}")
        smt2_lines.append(f"(define-fun bank_{idx}_contains (({ADDR} {addr_sort})) Bool")
        smt2_lines.append(f"  {partition_to_smt2(bank.layout, width)})")
        smt2_lines.append(f"(define-fun bank_{idx}_translate (({ADDR} {addr_sort})) {addr_sort}")
        smt2_lines.append(f"  {translation_to_smt2(bank.translation, width)})")
        smt2_lines.append("")

    contains = [f"(bank_{idx}_contains {ADDR})" for idx in range(len(component.banks))]
    smt2_lines.append("; True when some bank claims the address")
    smt2_lines.append(f"(define-fun mapped (({ADDR} {addr_sort})) Bool")
    if len(contains) == 1:
        smt2_lines.append(f"  {contains[0]})")
    else:
        smt2_lines.append(f"  (or {' '.join(contains)}))")
    smt2_lines.append("")

    # First matching bank wins; unmapped addresses pass through and must be
    # excluded with (assert (mapped addr)) by the consumer
    acc = ADDR
    for idx in reversed(range(len(component.banks))):
        acc = f"(ite (bank_{idx}_contains {ADDR}) (bank_{idx}_translate {ADDR}) {acc})"
    smt2_lines.append("; Bank priority follows declaration order")
    smt2_lines.append(f"(define-fun translate (({ADDR} {addr_sort})) {addr_sort}")
    smt2_lines.append(f"  {acc})")
    smt2_lines.append("")
    return '\n'.join(smt2_lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate SMT2 definitions from a memory description')
    parser.add_argument('input_file', help='Description file')
    parser.add_argument('output_file', nargs='?', help='Output SMT2 file (optional)')
    parser.add_argument('--config', help='YAML configuration file')
    parser.add_argument('--target', help='Built-in configuration name')
    args = parser.parse_args(argv)

    dsl_file = Path(args.input_file)
    output_file = Path(args.output_file) if args.output_file else None

    if not dsl_file.exists():
        print(f"ERROR: Description file not found: {dsl_file}")
        return 1

    try:
        config = load_config(args.config, args.target)
        component = parse_dsl(dsl_file.read_text(), config)
    except (BankDslError, ValueError, OSError) as e:
        print(f"ERROR: {e}")
        return 1

    smt2 = generate_smt2_constraints(component, dsl_file.name)

    if output_file:
        output_file.write_text(smt2)
        print(f"✓ Saved to: {output_file}")
    else:
        print(smt2)
    return 0


if __name__ == '__main__':
    sys.exit(main())
