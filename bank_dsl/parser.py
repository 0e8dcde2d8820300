#!/usr/bin/env python3
"""
Parser for the bank-switched memory DSL.

Two surface syntaxes are accepted wherever a range or translation is
expected: a Z3-flavored s-expression form such as '(Range 0 16 1)' or
'(Add #x10)', and a compact form such as '[0:16]' or 'INPUT + 16'. Both
produce the same AST (see structures.py).

Grammar:
    component   = "memory" "<" NUM "," NUM ">" "{" bank { bank } "}"
    bank        = "bank" "{" "layout" ":" partition "translation" ":" translation "}"
    partition   = range | "[" range { range } "]"
    range       = range_z3 | range_ast
    range_z3    = "(" "Range" NUM NUM NUM ")"
    range_ast   = "[" NUM ":" NUM [ ":" NUM ] "]"
    comparison  = "INPUT" cmpop NUM | NUM cmpop "INPUT"
    cmpop       = "<=" | ">=" | "==" | "!=" | "=/=" | "<" | ">"
    bool_expr   = bool_term { ( "&&" | "||" ) bool_term }
    bool_term   = "!" bool_expr | "(" bool_expr ")" | comparison
    translation = switch | mid_level
    mid_level   = sequence | terminal
    sequence    = "[" terminal { ";" terminal } "]"
    terminal    = "INPUT" "+" NUM | NUM "+" "INPUT" | "INPUT" "-" NUM | NUM "-" "INPUT"
                | NUM | "INPUT" ">>" NUM | "NOOP" | z3_terminal
    z3_terminal = "(" ( "Constant" | "Add" | "SubPV" | "SubVP" | "RShift" ) NUM ")"
    switch      = "switch" "{" { bool_term "->" mid_level "," } "->" mid_level "}"
    NUM         = decimal | "#x" hexdigits
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .config import DslConfig, load_config
from .errors import BankDslError, DslSyntaxError, LiteralOverflow, MalformedRange
from .structures import (
    ComparisonOperator, ComparisonSide, Comparison, Not, Combine, BoolOp, BoolExpr,
    Range, Partition, Noop, Constant, Add, SubPV, SubVP, RShift, Primitive, Sequence,
    SwitchCase, Switch, MidLevel, TranslationExpr, Bank, Component,
)

log = logging.getLogger(__name__)

# ============================================================================
# Token Types
# ============================================================================

class TokenType(Enum):
    # Keywords
    MEMORY = "memory"
    BANK = "bank"
    LAYOUT = "layout"
    TRANSLATION = "translation"
    SWITCH = "switch"
    INPUT = "INPUT"
    NOOP = "NOOP"

    # Z3-style keywords
    RANGE = "Range"
    CONSTANT = "Constant"
    ADD = "Add"
    SUBPV = "SubPV"
    SUBVP = "SubVP"
    RSHIFT = "RShift"

    # Literals
    IDENTIFIER = "identifier"
    NUMBER = "number"

    # Symbols
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    COLON = ":"
    SEMICOLON = ";"
    PLUS = "+"
    MINUS = "-"
    SHR = ">>"
    ARROW = "->"
    AND = "&&"
    OR = "||"
    BANG = "!"
    LEQ = "<="
    GEQ = ">="
    EQ = "=="
    NEQ = "!="
    LT = "<"
    GT = ">"

    # Other
    EOF = "end of input"

@dataclass
class Token:
    type: TokenType
    value: object
    line: int
    column: int

KEYWORDS = {
    "memory": TokenType.MEMORY,
    "bank": TokenType.BANK,
    "layout": TokenType.LAYOUT,
    "translation": TokenType.TRANSLATION,
    "switch": TokenType.SWITCH,
    "INPUT": TokenType.INPUT,
    "NOOP": TokenType.NOOP,
    "Constant": TokenType.CONSTANT,
    "Add": TokenType.ADD,
    "SubPV": TokenType.SUBPV,
    "SubVP": TokenType.SUBVP,
    "RShift": TokenType.RSHIFT,
}

# Longer spellings must come before their prefixes ("<=" before "<")
SYMBOLS = [
    ("=/=", TokenType.NEQ),
    ("<=", TokenType.LEQ),
    (">=", TokenType.GEQ),
    ("==", TokenType.EQ),
    ("!=", TokenType.NEQ),
    (">>", TokenType.SHR),
    ("->", TokenType.ARROW),
    ("&&", TokenType.AND),
    ("||", TokenType.OR),
    ("{", TokenType.LBRACE),
    ("}", TokenType.RBRACE),
    ("(", TokenType.LPAREN),
    (")", TokenType.RPAREN),
    ("[", TokenType.LBRACKET),
    ("]", TokenType.RBRACKET),
    (",", TokenType.COMMA),
    (":", TokenType.COLON),
    (";", TokenType.SEMICOLON),
    ("+", TokenType.PLUS),
    ("-", TokenType.MINUS),
    ("!", TokenType.BANG),
    ("<", TokenType.LT),
    (">", TokenType.GT),
]

COMPARISON_OPERATORS = {
    TokenType.LEQ: ComparisonOperator.LEQ,
    TokenType.GEQ: ComparisonOperator.GEQ,
    TokenType.EQ: ComparisonOperator.EQ,
    TokenType.NEQ: ComparisonOperator.NEQ,
    TokenType.LT: ComparisonOperator.LT,
    TokenType.GT: ComparisonOperator.GT,
}

Z3_PRIMITIVES = {
    TokenType.CONSTANT: Constant,
    TokenType.ADD: Add,
    TokenType.SUBPV: SubPV,
    TokenType.SUBVP: SubVP,
    TokenType.RSHIFT: RShift,
}

DEC_DIGITS = "0123456789"
HEX_DIGITS = "0123456789abcdefABCDEF"

# ============================================================================
# Lexer
# ============================================================================

class Lexer:
    def __init__(self, text: str, width: int = 64):
        self.text = text
        self.width = width
        self.pos = 0
        self.line = 1
        self.column = 1

    def error(self, msg: str, expected: Optional[str] = None):
        raise DslSyntaxError(msg, self.line, self.column, expected=expected, stage="Lexer")

    def peek(self, offset=0):
        pos = self.pos + offset
        if pos < len(self.text):
            return self.text[pos]
        return None

    def advance(self):
        if self.pos < len(self.text):
            if self.text[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace(self):
        while self.peek() and self.peek() in ' \t\r\n':
            self.advance()

    def read_number(self) -> Token:
        """Read a decimal or '#x' hex literal, bounded to the configured width"""
        start_line = self.line
        start_col = self.column

        num_str = ""
        if self.peek() == '#':
            self.advance()
            if self.peek() != 'x':
                self.error(f"Expected 'x' after '#' in hex literal, got {self.peek()!r}", expected="'#x'")
            self.advance()
            while self.peek() and self.peek() in HEX_DIGITS:
                num_str += self.peek()
                self.advance()
            if not num_str:
                self.error("Hex literal '#x' needs at least one digit", expected="hex digit")
            value = int(num_str, 16)
        else:
            while self.peek() and self.peek() in DEC_DIGITS:
                num_str += self.peek()
                self.advance()
            value = int(num_str)

        if self.peek() and (self.peek().isalnum() or self.peek() == '_'):
            self.error(f"Unexpected character {self.peek()!r} in numeric literal")

        if value >= (1 << self.width):
            raise LiteralOverflow(value, self.width, start_line, start_col)

        return Token(TokenType.NUMBER, value, start_line, start_col)

    def read_identifier(self) -> Token:
        """Read a keyword or identifier"""
        start_line = self.line
        start_col = self.column

        ident = ""
        while self.peek() and (self.peek().isalnum() or self.peek() == '_'):
            ident += self.peek()
            self.advance()

        # 'Range' is the only case-insensitive keyword
        if ident.lower() == "range":
            return Token(TokenType.RANGE, ident, start_line, start_col)
        if ident in KEYWORDS:
            return Token(KEYWORDS[ident], ident, start_line, start_col)
        return Token(TokenType.IDENTIFIER, ident, start_line, start_col)

    def read_symbol(self) -> Token:
        for spelling, token_type in SYMBOLS:
            if self.text.startswith(spelling, self.pos):
                tok = Token(token_type, spelling, self.line, self.column)
                for _ in spelling:
                    self.advance()
                return tok
        self.error(f"Unexpected character: {self.peek()!r}")

    def tokenize(self) -> List[Token]:
        """Tokenize the entire input"""
        tokens = []

        while self.pos < len(self.text):
            self.skip_whitespace()

            ch = self.peek()
            if not ch:
                break

            if ch in DEC_DIGITS or ch == "#":
                tokens.append(self.read_number())
            elif ch.isalpha() or ch == '_':
                tokens.append(self.read_identifier())
            else:
                tokens.append(self.read_symbol())

        tokens.append(Token(TokenType.EOF, None, self.line, self.column))
        return tokens

# ============================================================================
# Parser
# ============================================================================

class Parser:
    def __init__(self, tokens: List[Token], config: Optional[DslConfig] = None):
        self.tokens = tokens
        self.config = config or DslConfig()
        self.pos = 0

    def error(self, msg: str, expected: Optional[str] = None):
        tok = self.peek() or self.tokens[-1]
        raise DslSyntaxError(msg, tok.line, tok.column, expected=expected,
                             at_end=tok.type == TokenType.EOF)

    def peek(self, offset=0) -> Optional[Token]:
        pos = self.pos + offset
        if pos < len(self.tokens):
            return self.tokens[pos]
        return None

    def check(self, *token_types: TokenType, offset=0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.type in token_types

    def advance(self) -> Token:
        tok = self.peek()
        self.pos += 1
        return tok

    def expect(self, token_type: TokenType) -> Token:
        tok = self.peek()
        if not tok or tok.type != token_type:
            found = f"'{tok.value}'" if tok and tok.type != TokenType.EOF else "end of input"
            self.error(f"Expected '{token_type.value}', got {found}", expected=f"'{token_type.value}'")
        return self.advance()

    def expect_number(self) -> int:
        return self.expect(TokenType.NUMBER).value

    def expect_end(self):
        self.expect(TokenType.EOF)

    # ------------------------------------------------------------------
    # Component and bank
    # ------------------------------------------------------------------

    def parse_component(self) -> Component:
        """Parse: memory < NUM , NUM > { bank+ }"""
        self.expect(TokenType.MEMORY)
        self.expect(TokenType.LT)
        param_a = self.expect_number()
        self.expect(TokenType.COMMA)
        param_b = self.expect_number()
        self.expect(TokenType.GT)
        self.expect(TokenType.LBRACE)

        banks = []
        while self.check(TokenType.BANK):
            banks.append(self.parse_bank())
        if not banks:
            self.error("Expected at least one 'bank' in memory component", expected="'bank'")

        self.expect(TokenType.RBRACE)
        return Component(param_a, param_b, tuple(banks), self.config.width)

    def parse_bank(self) -> Bank:
        """Parse: bank { layout: partition translation: translation }"""
        self.expect(TokenType.BANK)
        self.expect(TokenType.LBRACE)
        self.expect(TokenType.LAYOUT)
        self.expect(TokenType.COLON)
        layout = self.parse_partition()
        self.expect(TokenType.TRANSLATION)
        self.expect(TokenType.COLON)
        translation = self.parse_translation()
        self.expect(TokenType.RBRACE)
        return Bank(layout, translation)

    # ------------------------------------------------------------------
    # Ranges and partitions
    # ------------------------------------------------------------------

    def parse_partition(self) -> Partition:
        """Parse a single range, or '[' range { range } ']'"""
        if self.check(TokenType.LBRACKET) and self.check(TokenType.LBRACKET, TokenType.LPAREN, offset=1):
            self.advance()
            ranges = [self.parse_range()]
            while not self.check(TokenType.RBRACKET):
                ranges.append(self.parse_range())
            self.expect(TokenType.RBRACKET)
            return Partition(tuple(ranges))

        return Partition((self.parse_range(),))

    def parse_range(self) -> Range:
        if self.check(TokenType.LPAREN):
            return self.parse_range_z3()
        if self.check(TokenType.LBRACKET):
            return self.parse_range_ast()
        self.error("Expected a range like '[start:end]' or '(Range base size stride)'", expected="range")

    def parse_range_z3(self) -> Range:
        """Parse: ( Range NUM NUM NUM )"""
        open_tok = self.expect(TokenType.LPAREN)
        self.expect(TokenType.RANGE)
        base = self.expect_number()
        extent = self.expect_number()
        stride = self.expect_number()
        self.expect(TokenType.RPAREN)

        start, end = self.config.z3_range_bounds(base, extent)
        if end > (1 << self.config.width):
            raise MalformedRange(f"Range {base:#x}+{extent:#x} extends past the "
                                 f"{self.config.width}-bit address space",
                                 start, end, stride, open_tok.line, open_tok.column)
        return self._make_range(start, end, stride, open_tok)

    def parse_range_ast(self) -> Range:
        """Parse: [ NUM : NUM ] or [ NUM : NUM : NUM ]"""
        open_tok = self.expect(TokenType.LBRACKET)
        start = self.expect_number()
        self.expect(TokenType.COLON)
        end = self.expect_number()
        stride = None
        if self.check(TokenType.COLON):
            self.advance()
            stride = self.expect_number()
        self.expect(TokenType.RBRACKET)
        return self._make_range(start, end, stride, open_tok)

    def _make_range(self, start: int, end: int, stride: Optional[int], tok: Token) -> Range:
        try:
            return Range(start, end, stride)
        except MalformedRange as e:
            raise MalformedRange(e.message, start, end, stride, tok.line, tok.column) from None

    # ------------------------------------------------------------------
    # Boolean expressions
    # ------------------------------------------------------------------

    def parse_comparison(self) -> Comparison:
        """Parse: INPUT cmpop NUM or NUM cmpop INPUT"""
        if self.check(TokenType.INPUT):
            self.advance()
            op = self.parse_comparison_operator()
            return Comparison(ComparisonSide.INPUT_LEFT, op, self.expect_number())

        if self.check(TokenType.NUMBER):
            literal = self.expect_number()
            op = self.parse_comparison_operator()
            self.expect(TokenType.INPUT)
            return Comparison(ComparisonSide.INPUT_RIGHT, op, literal)

        self.error("Expected a comparison against INPUT", expected="comparison")

    def parse_comparison_operator(self) -> ComparisonOperator:
        tok = self.peek()
        if tok is None or tok.type not in COMPARISON_OPERATORS:
            self.error("Expected comparison operator", expected="'<=', '>=', '==', '!=', '=/=', '<' or '>'")
        self.advance()
        return COMPARISON_OPERATORS[tok.type]

    def parse_bool_expr(self) -> BoolExpr:
        """Parse: bool_term { (&& | ||) bool_term }

        && and || share one precedence level, so the chain is kept flat and
        evaluated left to right.
        """
        operands = [self.parse_bool_term()]
        operators = []
        while self.check(TokenType.AND, TokenType.OR):
            op_tok = self.advance()
            operators.append(BoolOp.AND if op_tok.type == TokenType.AND else BoolOp.OR)
            operands.append(self.parse_bool_term())

        if len(operands) == 1:
            return operands[0]
        return Combine(tuple(operands), tuple(operators))

    def parse_bool_term(self) -> BoolExpr:
        """Parse: ! bool_expr | ( bool_expr ) | comparison

        '!' negates the whole expression that follows it, so '!a && b' is
        '!(a && b)'.
        """
        if self.check(TokenType.BANG):
            self.advance()
            return Not(self.parse_bool_expr())

        if self.check(TokenType.LPAREN):
            self.advance()
            expr = self.parse_bool_expr()
            self.expect(TokenType.RPAREN)
            return expr

        return self.parse_comparison()

    # ------------------------------------------------------------------
    # Translations
    # ------------------------------------------------------------------

    def parse_translation(self) -> TranslationExpr:
        """Parse: switch | sequence | terminal"""
        if self.check(TokenType.SWITCH):
            return self.parse_switch()
        return self.parse_mid_level()

    def parse_mid_level(self) -> MidLevel:
        if self.check(TokenType.LBRACKET):
            return self.parse_sequence()
        return self.parse_terminal()

    def parse_sequence(self) -> Sequence:
        """Parse: [ terminal { ; terminal } ]"""
        self.expect(TokenType.LBRACKET)
        steps = [self.parse_terminal()]
        while self.check(TokenType.SEMICOLON):
            self.advance()
            steps.append(self.parse_terminal())
        self.expect(TokenType.RBRACKET)
        return Sequence(tuple(steps))

    def parse_terminal(self) -> Primitive:
        """Parse a single translation primitive in either surface syntax"""
        tok = self.peek()

        if tok.type == TokenType.NOOP:
            self.advance()
            return Noop()

        if tok.type == TokenType.LPAREN:
            return self.parse_z3_terminal()

        if tok.type == TokenType.INPUT:
            self.advance()
            if self.check(TokenType.PLUS):
                self.advance()
                return Add(self.expect_number())
            if self.check(TokenType.MINUS):
                self.advance()
                return SubVP(self.expect_number())
            if self.check(TokenType.SHR):
                self.advance()
                return RShift(self.expect_number())
            self.error("Expected '+', '-' or '>>' after INPUT", expected="'+', '-' or '>>'")

        if tok.type == TokenType.NUMBER:
            value = self.expect_number()
            if self.check(TokenType.PLUS):
                self.advance()
                self.expect(TokenType.INPUT)
                return Add(value)
            if self.check(TokenType.MINUS):
                self.advance()
                self.expect(TokenType.INPUT)
                return SubPV(value)
            return Constant(value)

        self.error("Expected a translation (NOOP, a literal, an INPUT expression or a Z3 term)",
                   expected="translation")

    def parse_z3_terminal(self) -> Primitive:
        """Parse: ( Constant|Add|SubPV|SubVP|RShift NUM )"""
        self.expect(TokenType.LPAREN)
        tok = self.peek()
        if tok is None or tok.type not in Z3_PRIMITIVES:
            self.error("Expected 'Constant', 'Add', 'SubPV', 'SubVP' or 'RShift'", expected="Z3 term")
        self.advance()
        value = self.expect_number()
        self.expect(TokenType.RPAREN)
        return Z3_PRIMITIVES[tok.type](value)

    def parse_switch(self) -> Switch:
        """Parse: switch { (bool_term -> mid_level ,)+ -> mid_level }"""
        self.expect(TokenType.SWITCH)
        self.expect(TokenType.LBRACE)

        cases = []
        while not self.check(TokenType.ARROW):
            guard = self.parse_bool_term()
            self.expect(TokenType.ARROW)
            body = self.parse_mid_level()
            self.expect(TokenType.COMMA)
            cases.append(SwitchCase(guard, body))

        if not cases:
            self.error("Switch needs at least one guarded case before the default", expected="guard")

        self.expect(TokenType.ARROW)
        default = self.parse_mid_level()
        self.expect(TokenType.RBRACE)
        return Switch(tuple(cases), default)

# ============================================================================
# Entry points
# ============================================================================

def _parser_for(text: str, config: Optional[DslConfig]) -> Parser:
    config = config or DslConfig()
    tokens = Lexer(text, config.width).tokenize()
    return Parser(tokens, config)


def parse_dsl(text: str, config: Optional[DslConfig] = None) -> Component:
    """Parse a full 'memory<a, b> { ... }' description"""
    parser = _parser_for(text, config)
    component = parser.parse_component()
    parser.expect_end()
    log.debug(f"parsed component with {len(component.banks)} banks "
              f"(params {component.param_a}, {component.param_b}, width {component.width})")
    return component


def parse_partition(text: str, config: Optional[DslConfig] = None) -> Partition:
    parser = _parser_for(text, config)
    partition = parser.parse_partition()
    parser.expect_end()
    return partition


def parse_translation(text: str, config: Optional[DslConfig] = None) -> TranslationExpr:
    parser = _parser_for(text, config)
    translation = parser.parse_translation()
    parser.expect_end()
    return translation


def parse_bool_expr(text: str, config: Optional[DslConfig] = None) -> BoolExpr:
    parser = _parser_for(text, config)
    expr = parser.parse_bool_expr()
    parser.expect_end()
    return expr

# ============================================================================
# Main
# ============================================================================

def describe_component(component: Component) -> List[str]:
    lines = [f"memory<{component.param_a}, {component.param_b}> ({component.width}-bit)"]
    for i, bank in enumerate(component.banks):
        lines.append(f"  bank {i}:")
        lines.append(f"    layout:      {bank.layout} ({bank.layout.size()} addresses)")
        lines.append(f"    translation: {bank.translation}")
    return lines


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Parse and validate a bank-switched memory description',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Parse and validate a description
  python3 -m bank_dsl.parser memory.bank

  # Show every bank
  python3 -m bank_dsl.parser memory.bank -v

DSL Syntax:
  memory<16, 2> {
    bank { layout: [0:8] translation: switch { INPUT < 4 -> INPUT + 0, -> INPUT - 4 } }
    bank { layout: (Range 8 8 1) translation: (SubVP #x8) }
  }
        '''
    )
    parser.add_argument('file', help='Description file to parse')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show detailed parse output')
    parser.add_argument('--config', help='YAML configuration file')
    parser.add_argument('--target', help='Built-in configuration name (addr16, addr32, addr64)')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config, args.target)
        with open(args.file, 'r') as f:
            text = f.read()
    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    try:
        component = parse_dsl(text, config)
    except BankDslError as e:
        print(f"✗ Parse error: {e}")
        return 1

    print(f"✓ Parsed {args.file} successfully!")
    print(f"Found {len(component.banks)} banks")
    if args.verbose:
        for line in describe_component(component):
            print(line)
    else:
        print("\nUse -v for detailed output")
    return 0


if __name__ == "__main__":
    sys.exit(main())
