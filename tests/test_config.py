import os
import tempfile
import unittest

from bank_dsl.config import DslConfig, load_config


class ConfigTest(unittest.TestCase):
    """
    YAML configuration loading and validation
    """

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def write(self, text: str) -> str:
        path = os.path.join(self.tmpdir.name, "config.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_defaults(self):
        config = load_config()
        self.assertEqual(config, DslConfig())
        self.assertEqual(config.width, 64)
        self.assertEqual(config.z3_range, "size")
        self.assertEqual(config.style, "compact")

    def test_yaml_file(self):
        config = load_config(self.write("width: 16\nz3_range: end\nstyle: z3\n"))
        self.assertEqual(config, DslConfig(width=16, z3_range="end", style="z3"))

    def test_partial_yaml_keeps_defaults(self):
        config = load_config(self.write("width: 32\n"))
        self.assertEqual(config.width, 32)
        self.assertEqual(config.z3_range, "size")

    def test_empty_file(self):
        self.assertEqual(load_config(self.write("")), DslConfig())

    def test_invalid_width(self):
        with self.assertRaises(ValueError):
            load_config(self.write("width: 0\n"))
        with self.assertRaises(ValueError):
            load_config(self.write("width: wide\n"))

    def test_unknown_key(self):
        with self.assertRaises(ValueError):
            load_config(self.write("width: 16\nendianness: little\n"))

    def test_malformed_yaml(self):
        with self.assertRaises(ValueError):
            load_config(self.write("width: [16\n"))

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_config(os.path.join(self.tmpdir.name, "missing.yaml"))

    def test_builtin_targets(self):
        self.assertEqual(load_config(target="addr16").width, 16)
        self.assertEqual(load_config(target="addr32").width, 32)
        self.assertEqual(load_config(target="addr64").width, 64)

    def test_path_wins_over_target(self):
        config = load_config(self.write("width: 12\n"), target="addr16")
        self.assertEqual(config.width, 12)

    def test_unknown_target_warns(self):
        with self.assertLogs("bank_dsl.config", level="WARNING"):
            config = load_config(target="addr7")
        self.assertEqual(config, DslConfig())

    def test_z3_range_bounds(self):
        self.assertEqual(DslConfig().z3_range_bounds(8, 8), (8, 16))
        self.assertEqual(DslConfig(z3_range="end").z3_range_bounds(8, 12), (8, 12))


if __name__ == "__main__":
    unittest.main()
