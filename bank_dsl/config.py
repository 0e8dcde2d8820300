#!/usr/bin/env python3
"""
Configuration management for the bank DSL.

This module loads and validates YAML configuration files that fix the
numeric domain (bit width) the parser and evaluator work in, how the Z3
'(Range base x stride)' form is read, and which surface syntax the printer
emits. This lets one description be checked against different address-bus
widths without editing it.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import jsonschema
import yaml

log = logging.getLogger(__name__)

BUILTIN_CONFIG_DIR = Path(__file__).parent / "configs"

# JSON Schema for validating configuration YAML files
DSL_CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Bank DSL Configuration",
    "description": "Numeric domain and syntax options for bank-switched memory descriptions",
    "type": "object",
    "properties": {
        "width": {
            "type": "integer",
            "minimum": 1,
            "maximum": 4096,
            "description": "Bit width of literals and translation arithmetic"
        },
        "z3_range": {
            "type": "string",
            "enum": ["size", "end"],
            "description": "Meaning of the second argument of (Range base x stride)"
        },
        "style": {
            "type": "string",
            "enum": ["compact", "z3"],
            "description": "Surface syntax used when printing descriptions"
        }
    },
    "additionalProperties": False
}


@dataclass(frozen=True)
class DslConfig:
    """Parser, evaluator and printer settings."""
    width: int = 64
    # "size": (Range base size stride) covers [base, base + size)
    # "end":  (Range start end stride) covers [start, end)
    z3_range: str = "size"
    style: str = "compact"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'DslConfig':
        """Create DslConfig from a dictionary, validating it first."""
        jsonschema.validate(instance=d, schema=DSL_CONFIG_SCHEMA)
        defaults = cls()
        return cls(
            width=d.get('width', defaults.width),
            z3_range=d.get('z3_range', defaults.z3_range),
            style=d.get('style', defaults.style),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'DslConfig':
        """Load and validate configuration from YAML file.

        Raises:
            ValueError: If YAML is malformed or doesn't match schema
            FileNotFoundError: If file doesn't exist
        """
        with open(yaml_path, 'r') as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid config file {yaml_path}: {e}") from e

        # An empty file means "all defaults"
        if data is None:
            data = {}

        try:
            config = cls.from_dict(data)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid config file {yaml_path}: {e.message}") from e

        log.debug(f"loaded config from {yaml_path}: {config}")
        return config

    def z3_range_bounds(self, base: int, extent: int) -> Tuple[int, int]:
        """Return (start, end) for the first two arguments of a Z3 Range"""
        if self.z3_range == "end":
            return base, extent
        return base, base + extent


def load_config(config_path: Optional[Union[str, Path]] = None, target: Optional[str] = None) -> DslConfig:
    """
    Load configuration from file or use builtin config.

    Args:
        config_path: Path to YAML config file
        target: Shortcut name for builtin configs ('addr16', 'addr32', 'addr64')

    Returns:
        DslConfig object

    Priority:
        1. config_path if provided
        2. builtin config matching target name
        3. default configuration (64-bit)
    """
    if config_path:
        return DslConfig.from_yaml(Path(config_path))

    if target:
        builtin_path = BUILTIN_CONFIG_DIR / f"{target}.yaml"
        if builtin_path.exists():
            return DslConfig.from_yaml(builtin_path)
        log.warning(f"No builtin config named '{target}', using defaults")

    return DslConfig()
