"""
Instruction-Set Model
=====================

The instruction-set model is the data table that drives the whole
assembler. Each entry maps a mnemonic to its opcode and the addressing
modes it may be used with. The resolver and encoder consult it uniformly,
so adding an instruction only ever means adding a configuration entry.

Configuration Entry Format
--------------------------
Each mnemonic maps to a table:

| Key    | Type | Meaning                                     |
|--------|------|---------------------------------------------|
| opcode | int  | Opcode placed in the word's opcode field    |
| imm    | bool | Immediate mode allowed (#value)             |
| reg    | bool | Register mode allowed (rN)                  |
| dir    | bool | Direct mode allowed ($address)              |
| inh    | bool | Inherent mode allowed (no operands)         |
| args   | int  | Exact operand count (optional)              |

Absent mode flags are false. An entry with every flag false can never be
assembled and is rejected.

The model is built once and never mutated afterwards; it is passed
explicitly to every stage of the pipeline.
"""

import difflib
import logging
import string
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Optional

from isasm.errors import DefinitionError, UnknownMnemonicError, SourceLocation

logger = logging.getLogger(__name__)

# Width of the opcode field in the default word layout
DEFAULT_OPCODE_BITS = 6

# Characters that can start / continue a mnemonic
MNEMONIC_START = string.ascii_letters + "_"
MNEMONIC_CHARS = string.ascii_letters + string.digits + "_."


def is_valid_mnemonic(name: str) -> bool:
    """Return True if name can be written as a mnemonic in source."""
    return bool(name) and name[0] in MNEMONIC_START and all(c in MNEMONIC_CHARS for c in name)


# =============================================================================
# Addressing Modes
# =============================================================================

class AddressingMode(IntEnum):
    """
    Addressing modes, valued by their selector in the encoded word.

    The selector values follow the ReCOP instruction word (2-bit field).
    """
    INHERENT = 0     # no operands
    IMMEDIATE = 1    # #value
    REGISTER = 2     # rN
    DIRECT = 3       # $address

    @property
    def label(self) -> str:
        """Lower-case name used in messages ('immediate', 'register', ...)."""
        return self.name.lower()


# Configuration key -> addressing mode
MODE_FLAGS: dict[str, AddressingMode] = {
    "inh": AddressingMode.INHERENT,
    "imm": AddressingMode.IMMEDIATE,
    "reg": AddressingMode.REGISTER,
    "dir": AddressingMode.DIRECT,
}

ENTRY_KEYS = frozenset({"opcode", "args"}) | frozenset(MODE_FLAGS)


# =============================================================================
# Instruction Definition
# =============================================================================

@dataclass(frozen=True)
class InstructionDefinition:
    """
    One instruction of the configured instruction set.

    Attributes:
        mnemonic: Lower-case instruction name
        opcode: Value of the opcode field
        modes: Addressing modes the instruction may be used with
        operand_count: Exact number of operands required, or None for
                       any count consistent with the mode
    """
    mnemonic: str
    opcode: int
    modes: frozenset[AddressingMode]
    operand_count: Optional[int] = None

    def allows(self, mode: AddressingMode) -> bool:
        return mode in self.modes

    def mode_labels(self) -> list[str]:
        """Allowed modes as labels, in selector order."""
        return [mode.label for mode in sorted(self.modes)]


# =============================================================================
# Instruction-Set Model
# =============================================================================

class InstructionSetModel(Mapping):
    """
    Immutable, validated mapping from mnemonic to InstructionDefinition.

    Lookups are case-insensitive. Use build() to construct one from a
    configuration mapping; the constructor is for already-validated
    definitions.

    Usage:
        isa = InstructionSetModel.build({"nop": {"opcode": 0, "inh": True}})
        definition = isa.lookup("NOP")
    """

    def __init__(self, definitions: dict[str, InstructionDefinition],
                 opcode_bits: int = DEFAULT_OPCODE_BITS):
        self._definitions = MappingProxyType(dict(definitions))
        self._opcode_bits = opcode_bits

    @classmethod
    def build(cls, config: Mapping[str, Any],
              opcode_bits: int = DEFAULT_OPCODE_BITS,
              source: Optional[str] = None) -> "InstructionSetModel":
        """
        Validate a configuration mapping and build the model.

        Every entry is checked before anything is returned; a single bad
        entry aborts the build.

        Args:
            config: Mapping of mnemonic -> entry table
            opcode_bits: Width of the opcode field
            source: Configuration file name, for error messages

        Returns:
            The validated InstructionSetModel

        Raises:
            DefinitionError: If any entry is invalid
        """
        definitions: dict[str, InstructionDefinition] = {}
        for name, entry in config.items():
            definition = _build_definition(name, entry, opcode_bits, source)
            if definition.mnemonic in definitions:
                raise DefinitionError(
                    name,
                    "duplicate mnemonic (mnemonics are case-insensitive)",
                    source=source,
                )
            definitions[definition.mnemonic] = definition

        logger.debug(f"Built instruction set with {len(definitions)} instructions")
        return cls(definitions, opcode_bits=opcode_bits)

    @property
    def opcode_bits(self) -> int:
        return self._opcode_bits

    @property
    def mnemonics(self) -> list[str]:
        return sorted(self._definitions)

    def lookup(self, mnemonic: str,
               location: Optional[SourceLocation] = None,
               source_line: Optional[str] = None) -> InstructionDefinition:
        """
        Find the definition for a mnemonic (case-insensitive).

        Raises:
            UnknownMnemonicError: If the mnemonic is not defined
        """
        definition = self._definitions.get(mnemonic.lower())
        if definition is None:
            similar = difflib.get_close_matches(mnemonic.lower(), self._definitions, n=3)
            raise UnknownMnemonicError(
                mnemonic,
                location=location,
                source_line=source_line,
                similar=similar,
            )
        return definition

    def __getitem__(self, mnemonic: str) -> InstructionDefinition:
        return self._definitions[mnemonic.lower()]

    def __contains__(self, mnemonic: object) -> bool:
        return isinstance(mnemonic, str) and mnemonic.lower() in self._definitions

    def __iter__(self) -> Iterator[str]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __repr__(self) -> str:
        return f"InstructionSetModel({len(self)} instructions, opcode_bits={self._opcode_bits})"


# =============================================================================
# Entry Validation
# =============================================================================

def _build_definition(name: Any, entry: Any, opcode_bits: int,
                      source: Optional[str]) -> InstructionDefinition:
    """Validate one configuration entry."""
    if not isinstance(name, str) or not is_valid_mnemonic(name):
        raise DefinitionError(
            str(name),
            "mnemonic must start with a letter or underscore and contain only "
            "letters, digits, underscores and dots",
            source=source,
        )

    if not isinstance(entry, Mapping):
        raise DefinitionError(name, "entry must be a table", source=source)

    unknown = sorted(set(entry) - ENTRY_KEYS)
    if unknown:
        raise DefinitionError(
            name, f"unknown key(s): {', '.join(unknown)}", source=source
        )

    # bool is a subclass of int; reject it explicitly
    opcode = entry.get("opcode")
    if opcode is None:
        raise DefinitionError(name, "missing 'opcode'", source=source)
    if not isinstance(opcode, int) or isinstance(opcode, bool):
        raise DefinitionError(name, f"opcode must be an integer, got {opcode!r}", source=source)
    if not 0 <= opcode < (1 << opcode_bits):
        raise DefinitionError(
            name,
            f"opcode {opcode} does not fit in {opcode_bits} bits "
            f"(valid range 0 to {(1 << opcode_bits) - 1})",
            source=source,
        )

    modes = set()
    for key, mode in MODE_FLAGS.items():
        flag = entry.get(key, False)
        if not isinstance(flag, bool):
            raise DefinitionError(name, f"'{key}' must be true or false, got {flag!r}", source=source)
        if flag:
            modes.add(mode)
    if not modes:
        raise DefinitionError(
            name,
            "no addressing mode enabled (set at least one of imm, reg, dir, inh)",
            source=source,
        )

    operand_count = entry.get("args")
    if operand_count is not None:
        if not isinstance(operand_count, int) or isinstance(operand_count, bool) or operand_count < 0:
            raise DefinitionError(
                name, f"'args' must be a non-negative integer, got {operand_count!r}", source=source
            )

    return InstructionDefinition(
        mnemonic=name.lower(),
        opcode=opcode,
        modes=frozenset(modes),
        operand_count=operand_count,
    )
