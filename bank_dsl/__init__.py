"""
Bank DSL - A Domain-Specific Language for bank-switched memory address translation.

This package provides tools for:
- Parsing memory descriptions written in either a Z3-flavored or a compact syntax
- Translating addresses through the first bank whose layout contains them
- Checking descriptions against access traces and emitting them as text or SMT2

Example DSL syntax:
    memory<16, 2> {
        bank {
            layout: [0:8]
            translation: switch { INPUT < 4 -> INPUT + 0, -> INPUT - 4 }
        }
        bank {
            layout: (Range 8 8 1)
            translation: (SubVP #x8)
        }
    }
"""

__version__ = "0.1.0"

from .errors import (
    BankDslError,
    ParseError,
    DslSyntaxError,
    LiteralOverflow,
    MalformedRange,
    EvalError,
    NoBankMatch,
    MissingComparisonInput,
)

from .structures import (
    Component,
    Bank,
    Partition,
    Range,
    Switch,
    SwitchCase,
    Sequence,
    Noop,
    Constant,
    Add,
    SubPV,
    SubVP,
    RShift,
    Comparison,
    ComparisonOperator,
    ComparisonSide,
    Not,
    Combine,
    BoolOp,
)

from .parser import (
    parse_dsl,
    parse_partition,
    parse_translation,
    parse_bool_expr,
)

from .evaluator import (
    evaluate,
    evaluate_translation,
    evaluate_condition,
)

from .config import DslConfig, load_config

# Short name for the common case
parse = parse_dsl

__all__ = [
    # Errors
    "BankDslError",
    "ParseError",
    "DslSyntaxError",
    "LiteralOverflow",
    "MalformedRange",
    "EvalError",
    "NoBankMatch",
    "MissingComparisonInput",
    # AST
    "Component",
    "Bank",
    "Partition",
    "Range",
    "Switch",
    "SwitchCase",
    "Sequence",
    "Noop",
    "Constant",
    "Add",
    "SubPV",
    "SubVP",
    "RShift",
    "Comparison",
    "ComparisonOperator",
    "ComparisonSide",
    "Not",
    "Combine",
    "BoolOp",
    # Parser
    "parse",
    "parse_dsl",
    "parse_partition",
    "parse_translation",
    "parse_bool_expr",
    # Evaluation
    "evaluate",
    "evaluate_translation",
    "evaluate_condition",
    # Configuration
    "DslConfig",
    "load_config",
]
