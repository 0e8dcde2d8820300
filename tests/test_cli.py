import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from bank_dsl import __version__, parse_dsl
from bank_dsl.__main__ import main

EXAMPLES = os.path.join(os.path.dirname(__file__), "..", "examples")


def example(name):
    return os.path.join(EXAMPLES, name)


class CliTest(unittest.TestCase):
    """
    bank-dsl subcommands
    """

    def run_main(self, *argv):
        out = io.StringIO()
        with redirect_stdout(out):
            status = main(list(argv))
        return status, out.getvalue()

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_version(self):
        status, out = self.run_main("version")
        self.assertEqual(status, 0)
        self.assertIn(__version__, out)

    def test_parse(self):
        status, out = self.run_main("parse", example("split_bank.bank"), "-v")
        self.assertEqual(status, 0)
        self.assertIn("Found 2 banks", out)
        self.assertIn("bank 1:", out)

    def test_parse_error(self):
        path = os.path.join(self.tmpdir.name, "broken.bank")
        with open(path, "w") as f:
            f.write("memory<1,1>{ bank { layout: [4:2] translation: NOOP } }")
        status, out = self.run_main("parse", path)
        self.assertEqual(status, 1)
        self.assertIn("✗", out)

    def test_eval(self):
        status, out = self.run_main("eval", example("two_banks.bank"), "1", "0x5", "#x9")
        self.assertEqual(status, 1)
        lines = out.splitlines()
        self.assertEqual(lines[0], "0x1 -> 0x1")
        self.assertEqual(lines[1], "0x5 -> 0x64")
        self.assertTrue(lines[2].startswith("0x9 -> error:"))

    def test_eval_input_override(self):
        status, out = self.run_main("eval", example("split_bank.bank"), "6", "--input", "INPUT=1")
        self.assertEqual(status, 0)
        self.assertEqual(out.strip(), "0x6 -> 0x6")

    def test_eval_with_target(self):
        status, out = self.run_main("--target", "addr16", "eval", example("split_bank.bank"), "12")
        self.assertEqual(status, 0)
        self.assertEqual(out.strip(), "0xc -> 0x2")

    def test_missing_file(self):
        status, out = self.run_main("eval", os.path.join(self.tmpdir.name, "nope.bank"), "1")
        self.assertEqual(status, 1)
        self.assertIn("not found", out)

    def test_bad_input_binding(self):
        status, out = self.run_main("eval", example("two_banks.bank"), "1", "--input", "sel")
        self.assertEqual(status, 1)
        self.assertIn("NAME=VALUE", out)

    def test_verify(self):
        status, out = self.run_main("verify", example("interleaved.bank"), example("interleaved_trace.json"))
        self.assertEqual(status, 0)
        self.assertIn("✓", out)

        status, out = self.run_main("verify", example("two_banks.bank"), example("interleaved_trace.json"))
        self.assertEqual(status, 1)
        self.assertIn("cannot be served", out)

    def test_emit(self):
        output = os.path.join(self.tmpdir.name, "out.bank")
        status, _ = self.run_main("emit", "--style", "z3", "-o", output, example("split_bank.bank"))
        self.assertEqual(status, 0)
        with open(output) as f:
            emitted = f.read()
        self.assertIn("(SubVP #x8)", emitted)
        with open(example("split_bank.bank")) as f:
            self.assertEqual(parse_dsl(emitted), parse_dsl(f.read()))

    def test_smt_constraints(self):
        output = os.path.join(self.tmpdir.name, "out.smt2")
        status, _ = self.run_main("--target", "addr16", "smt-constraints", example("two_banks.bank"), output)
        self.assertEqual(status, 0)
        with open(output) as f:
            self.assertIn("(_ BitVec 16)", f.read())

    def test_no_command(self):
        status, out = self.run_main()
        self.assertEqual(status, 0)
        self.assertIn("usage", out)


if __name__ == "__main__":
    unittest.main()
