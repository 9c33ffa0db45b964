"""
isasm Instruction-Set Package
=============================

This package holds the instruction-set model: the validated table built
from configuration that maps each mnemonic to its opcode and permitted
addressing modes. The parser, resolver and encoder all receive the model
explicitly; nothing in the assembler keeps a global instruction table.

Usage:
    from isasm.isa import load_instruction_set, AddressingMode

    isa = load_instruction_set("recop.toml")
    definition = isa.lookup("add")
    assert definition.allows(AddressingMode.IMMEDIATE)
"""

from isasm.isa.model import (
    AddressingMode,
    InstructionDefinition,
    InstructionSetModel,
    MODE_FLAGS,
    DEFAULT_OPCODE_BITS,
    is_valid_mnemonic,
)
from isasm.isa.config import load_instruction_set, parse_instruction_set

__all__ = [
    # Core types
    "AddressingMode",
    "InstructionDefinition",
    "InstructionSetModel",
    # Constants
    "MODE_FLAGS",
    "DEFAULT_OPCODE_BITS",
    "is_valid_mnemonic",
    # Loading
    "load_instruction_set",
    "parse_instruction_set",
]
