#!/usr/bin/env python3
"""
Access traces and checking a memory component against them.

A trace records, cycle by cycle, which address each port requested:

    {"trace": [[0, 4], [1, null], [2, 6]]}

Port p is served by bank p. A request is satisfied when the bank's
translation maps the address to a slot whose layout address is the
requested address (Bank.can_read).
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import jsonschema

from .structures import Component

log = logging.getLogger(__name__)

TRACE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Memory Access Trace",
    "type": "object",
    "required": ["trace"],
    "properties": {
        "trace": {
            "type": "array",
            "description": "One entry per cycle",
            "items": {
                "type": "array",
                "description": "One entry per port; null when the port is idle",
                "items": {
                    "anyOf": [
                        {"type": "integer", "minimum": 0},
                        {"type": "null"}
                    ]
                }
            }
        }
    },
    "additionalProperties": False
}


@dataclass
class Trace:
    cycles: List[List[Optional[int]]]

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'Trace':
        jsonschema.validate(instance=d, schema=TRACE_SCHEMA)
        return cls([list(cycle) for cycle in d['trace']])

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'Trace':
        """Load and validate a trace file.

        Raises:
            ValueError: If the file is not valid JSON or doesn't match the schema
            FileNotFoundError: If file doesn't exist
        """
        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid trace file {path}: {e}") from e

        try:
            return cls.from_dict(data)
        except jsonschema.ValidationError as e:
            raise ValueError(f"Invalid trace file {path}: {e.message}") from e

    def __iter__(self) -> Iterator[List[Optional[int]]]:
        return iter(self.cycles)

    def __len__(self):
        return len(self.cycles)

    def num_ports(self) -> int:
        return max((len(cycle) for cycle in self.cycles), default=0)

    def size(self) -> int:
        """One past the largest requested address"""
        requested = [a for cycle in self.cycles for a in cycle if a is not None]
        return max(requested) + 1 if requested else 0

    def bits_required(self) -> int:
        """Address bits needed to index every requested address"""
        return max(1, (self.size() - 1).bit_length())


@dataclass
class TraceViolation:
    cycle: int
    port: int
    address: int
    reason: str

    def __str__(self):
        return f"cycle {self.cycle}, port {self.port}: address {self.address:#x} {self.reason}"


def verify_trace(component: Component, trace: Trace) -> List[TraceViolation]:
    """Return every request in the trace that the component cannot serve"""
    violations = []

    for cycle_idx, cycle in enumerate(trace):
        for port, address in enumerate(cycle):
            if address is None:
                continue

            if port >= len(component.banks):
                reason = f"has no bank (component has {len(component.banks)} banks)"
            elif not component.banks[port].can_read(address, component.width):
                reason = f"is not readable from bank {port}"
            else:
                continue

            violation = TraceViolation(cycle_idx, port, address, reason)
            log.warning(str(violation))
            violations.append(violation)

    log.debug(f"checked {len(trace)} cycles on {trace.num_ports()} ports: {len(violations)} violations")
    return violations
