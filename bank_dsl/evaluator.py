#!/usr/bin/env python3
"""
Address translation for parsed memory components.

evaluate() picks the first bank whose layout contains the address and runs
that bank's translation on it. Arithmetic wraps modulo 2**width, like an
address bus. Guards compare against INPUT, which is the translated address
unless the caller binds INPUT (or another selector name) explicitly.
"""

import logging
from typing import Dict, Mapping, Optional

from .errors import MissingComparisonInput
from .structures import (
    INPUT, DEFAULT_WIDTH, Component, ComparisonSide, Comparison, Not, Combine, BoolOp, BoolExpr,
    Noop, Constant, Add, SubPV, SubVP, RShift, Sequence, Switch, TranslationExpr, Primitive,
)

log = logging.getLogger(__name__)


def apply_primitive(prim: Primitive, value: int, width: int = DEFAULT_WIDTH) -> int:
    """Apply one translation primitive to value, wrapping to width bits"""
    mask = (1 << width) - 1

    if isinstance(prim, Noop):
        result = value
    elif isinstance(prim, Constant):
        result = prim.value
    elif isinstance(prim, Add):
        result = value + prim.value
    elif isinstance(prim, SubPV):
        result = prim.value - value
    elif isinstance(prim, SubVP):
        result = value - prim.value
    elif isinstance(prim, RShift):
        result = (value & mask) >> prim.value
    else:
        raise TypeError(f"Not a translation primitive: {prim!r}")

    return result & mask


def evaluate_condition(expr: BoolExpr, inputs: Mapping[str, int]) -> bool:
    """Evaluate a guard against named input values.

    Combine chains fold strictly left to right with no precedence between
    && and ||. Operands after the running value are only evaluated when the
    operator still needs them.
    """
    if isinstance(expr, Comparison):
        if expr.operand not in inputs:
            raise MissingComparisonInput(expr.operand)
        bound = inputs[expr.operand]
        if expr.side is ComparisonSide.INPUT_LEFT:
            return expr.operator.apply(bound, expr.literal)
        return expr.operator.apply(expr.literal, bound)

    if isinstance(expr, Not):
        return not evaluate_condition(expr.operand, inputs)

    if isinstance(expr, Combine):
        result = evaluate_condition(expr.operands[0], inputs)
        for op, operand in zip(expr.operators, expr.operands[1:]):
            if op is BoolOp.AND:
                result = result and evaluate_condition(operand, inputs)
            else:
                result = result or evaluate_condition(operand, inputs)
        return result

    raise TypeError(f"Not a boolean expression: {expr!r}")


def evaluate_translation(expr: TranslationExpr, value: int, width: int = DEFAULT_WIDTH,
                         inputs: Optional[Mapping[str, int]] = None) -> int:
    """Evaluate a translation expression with INPUT bound to value.

    inputs supplies guard values; INPUT defaults to value when not given.
    """
    if isinstance(expr, Switch):
        guard_inputs = _guard_inputs(value, width, inputs)
        for idx, case in enumerate(expr.cases):
            if evaluate_condition(case.guard, guard_inputs):
                log.debug(f"switch case {idx} selected for {value:#x}")
                return evaluate_translation(case.body, value, width)
        log.debug(f"switch default selected for {value:#x}")
        return evaluate_translation(expr.default, value, width)

    if isinstance(expr, Sequence):
        result = value
        for step in expr.steps:
            result = apply_primitive(step, result, width)
        return result

    return apply_primitive(expr, value, width)


def _guard_inputs(value: int, width: int, inputs: Optional[Mapping[str, int]]) -> Dict[str, int]:
    mask = (1 << width) - 1
    bound = {INPUT: value & mask}
    if inputs:
        for name, val in inputs.items():
            bound[name] = val & mask
    return bound


def evaluate(component: Component, address: int,
             comparison_inputs: Optional[Mapping[str, int]] = None) -> int:
    """Translate address through the first bank whose layout contains it.

    Raises:
        NoBankMatch: address is outside every bank's layout
        MissingComparisonInput: a guard names an input that is not bound
    """
    idx, bank = component.select_bank(address)
    log.debug(f"address {address:#x} selected bank {idx}")
    return evaluate_translation(bank.translation, address, component.width, comparison_inputs)
