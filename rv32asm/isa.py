"""
RV32I instruction and register tables.

The definitions live in JSON files next to this module and are loaded once at
import time. Each instruction entry is ``[opcode, funct3, funct7]`` written as
binary strings, grouped by encoding format.
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
import json
import os


class Format(Enum):
    R = "R"            # register-register
    I = "I"            # immediate / loads / jalr
    S = "S"            # store
    B = "B"            # branch
    U = "U"            # upper immediate
    J = "J"            # jump
    PSEUDO = "PSEUDO"  # dispatch only, encoding is fixed per mnemonic


@dataclass(frozen=True)
class InstructionDefinition:
    format: Format
    opcode: int
    funct3: int
    funct7: int


# Loads take the ``rd, imm(rs1)`` operand form
LOAD_MNEMONICS = frozenset({"lb", "lh", "lw", "lbu", "lhu"})

NUM_REGISTERS = 32

base_dir = os.path.dirname(os.path.abspath(__file__))


def _load_instructions(path):
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    table = {}
    for fmt_name, entries in raw.items():
        fmt = Format(fmt_name)
        for mnemonic, (opcode, funct3, funct7) in entries.items():
            table[mnemonic.lower()] = InstructionDefinition(
                fmt, int(opcode, 2), int(funct3, 2), int(funct7, 2))
    return MappingProxyType(table)


def _load_registers(path):
    with open(path, encoding="utf-8") as f:
        aliases = json.load(f)
    table = {f"x{i}": i for i in range(NUM_REGISTERS)}
    table.update((name.lower(), index) for name, index in aliases.items())
    return MappingProxyType(table)


INSTRUCTIONS = _load_instructions(os.path.join(base_dir, "instructions.json"))
REGISTERS = _load_registers(os.path.join(base_dir, "registers.json"))


def lookup_instruction(mnemonic):
    """Return the InstructionDefinition for ``mnemonic`` or None."""
    return INSTRUCTIONS.get(mnemonic.lower())


def lookup_register(name):
    """Return the register index (0..31) for a name or ABI alias, or None."""
    return REGISTERS.get(name.lower())
