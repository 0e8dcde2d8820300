#!/usr/bin/env python3
"""
CLI entry point for the bank-dsl package.

Allows running the DSL tools via: python -m bank_dsl <command>
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional


def _parse_int(text: str) -> int:
    """Accept 16, 0x10 or #x10"""
    if text.startswith('#x'):
        text = '0x' + text[2:]
    return int(text, 0)


def _parse_inputs(pairs: Optional[List[str]]) -> Dict[str, int]:
    inputs = {}
    for pair in pairs or []:
        if '=' not in pair:
            raise ValueError(f"Expected NAME=VALUE for --input, got '{pair}'")
        name, value = pair.split('=', 1)
        inputs[name.strip()] = _parse_int(value.strip())
    return inputs


def _config_argv(args) -> List[str]:
    argv = []
    if args.config:
        argv.extend(["--config", args.config])
    if args.target:
        argv.extend(["--target", args.target])
    return argv


def _load(args):
    from .config import load_config
    from .parser import parse_dsl

    config = load_config(args.config, args.target)
    with open(args.input_file, 'r') as f:
        text = f.read()
    return config, parse_dsl(text, config)


def run_eval(args) -> int:
    from .errors import EvalError
    from .evaluator import evaluate

    _, component = _load(args)
    inputs = _parse_inputs(args.input)
    status = 0
    for text in args.addresses:
        address = _parse_int(text)
        try:
            result = evaluate(component, address, inputs)
        except EvalError as e:
            print(f"{address:#x} -> error: {e}")
            status = 1
            continue
        print(f"{address:#x} -> {result:#x}")
    return status


def run_verify(args) -> int:
    from .trace import Trace, verify_trace

    _, component = _load(args)
    trace = Trace.from_json(args.trace_file)
    violations = verify_trace(component, trace)

    if violations:
        print(f"✗ {len(violations)} of the trace's requests cannot be served:")
        for v in violations:
            print(f"  {v}")
        return 1

    print(f"✓ {args.input_file} satisfies {args.trace_file} "
          f"({len(trace)} cycles, {trace.num_ports()} ports)")
    return 0


def run_emit(args) -> int:
    from .printer import format_component

    config, component = _load(args)
    text = format_component(component, args.style, config)
    if args.output:
        with open(args.output, 'w') as f:
            f.write(text)
        print(f"✓ Saved to: {args.output}")
    else:
        print(text, end="")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="bank-dsl",
        description="Bank DSL - bank-switched memory address translation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Parse and validate a description
  python -m bank_dsl parse examples/two_banks.bank

  # Translate addresses
  python -m bank_dsl eval examples/two_banks.bank 0x1 0x5

  # Check a description against an access trace
  python -m bank_dsl verify examples/two_banks.bank trace.json

  # Re-emit a description in Z3 style
  python -m bank_dsl emit --style z3 examples/two_banks.bank
        """
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--target", help="Built-in configuration name (addr16, addr32, addr64)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse and validate a description file"
    )
    parse_parser.add_argument("input_file", help="Description file to parse")
    parse_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        dest="details",
        help="Show detailed parse output"
    )

    # Eval command
    eval_parser = subparsers.add_parser(
        "eval",
        help="Translate addresses through a description"
    )
    eval_parser.add_argument("input_file", help="Description file")
    eval_parser.add_argument("addresses", nargs="+", help="Addresses (decimal, 0x.. or #x..)")
    eval_parser.add_argument(
        "--input",
        action="append",
        metavar="NAME=VALUE",
        help="Bind a switch guard input (repeatable)"
    )

    # Verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Check a description against an access trace"
    )
    verify_parser.add_argument("input_file", help="Description file")
    verify_parser.add_argument("trace_file", help="JSON trace file")

    # Emit command
    emit_parser = subparsers.add_parser(
        "emit",
        help="Print a description back in either surface syntax"
    )
    emit_parser.add_argument("input_file", help="Description file")
    emit_parser.add_argument("--style", choices=["compact", "z3"], help="Surface syntax (default from config)")
    emit_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    # SMT constraints command
    smt_parser = subparsers.add_parser(
        "smt-constraints",
        help="Generate SMT2 definitions from a description"
    )
    smt_parser.add_argument("input_file", help="Description file")
    smt_parser.add_argument("output_file", nargs="?", help="Output SMT2 file (optional)")

    # Version command
    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    from .errors import BankDslError

    try:
        if args.command == "parse":
            from .parser import main as parser_main
            sub_argv = [args.input_file] + _config_argv(args)
            if args.details:
                sub_argv.append("-v")
            return parser_main(sub_argv)

        elif args.command == "eval":
            return run_eval(args)

        elif args.command == "verify":
            return run_verify(args)

        elif args.command == "emit":
            return run_emit(args)

        elif args.command == "smt-constraints":
            from . import smt_constraints
            sub_argv = [args.input_file]
            if args.output_file:
                sub_argv.append(args.output_file)
            sub_argv.extend(_config_argv(args))
            return smt_constraints.main(sub_argv)

        elif args.command == "version":
            from . import __version__
            print(f"bank-dsl version {__version__}")
            return 0

    except FileNotFoundError as e:
        print(f"Error: File '{e.filename}' not found")
        return 1
    except (BankDslError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
