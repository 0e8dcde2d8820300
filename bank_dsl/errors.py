#!/usr/bin/env python3
"""
Error types for the bank DSL.

Parse-time failures derive from ParseError and carry the source position.
Evaluation-time failures derive from EvalError. Nothing in the package
mutates state before raising, so every failure can be retried with
corrected input.
"""

from typing import Optional


class BankDslError(Exception):
    """Base error for the bank DSL."""


# ============================================================================
# Parse-time errors
# ============================================================================

class ParseError(BankDslError):
    """Description text could not be turned into an AST."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 stage: str = "Parser", at_end: bool = False):
        self.message = message
        self.line = line
        self.column = column
        self.at_end = at_end
        if line is None:
            text = f"{stage} error: {message}"
        elif at_end:
            text = f"{stage} error at end of input (line {line}, column {column}): {message}"
        else:
            text = f"{stage} error at line {line}, column {column}: {message}"
        super().__init__(text)


class DslSyntaxError(ParseError):
    """Input does not match the grammar."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 expected: Optional[str] = None, stage: str = "Parser", at_end: bool = False):
        self.expected = expected
        super().__init__(message, line, column, stage, at_end)


class LiteralOverflow(ParseError):
    """Numeric literal does not fit in the configured bit width."""

    def __init__(self, value: int, width: int, line: Optional[int] = None, column: Optional[int] = None):
        self.value = value
        self.width = width
        super().__init__(f"Literal {value:#x} does not fit in {width} bits", line, column, "Lexer")


class MalformedRange(ParseError):
    """Range with end before start, or a zero stride."""

    def __init__(self, message: str, start: int, end: int, stride: Optional[int],
                 line: Optional[int] = None, column: Optional[int] = None):
        self.start = start
        self.end = end
        self.stride = stride
        super().__init__(message, line, column)


# ============================================================================
# Evaluation-time errors
# ============================================================================

class EvalError(BankDslError):
    """A parsed component could not translate an address."""


class NoBankMatch(EvalError):
    """Address lies outside every bank's layout."""

    def __init__(self, address: int):
        self.address = address
        super().__init__(f"No bank layout contains address {address:#x}")


class MissingComparisonInput(EvalError):
    """A switch guard needs a value the caller did not supply."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Switch guard references input '{name}' but no value was supplied")
