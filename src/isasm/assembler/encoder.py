"""
Instruction Word Encoder
========================

Packs a resolved statement into a fixed-width machine word and renders
words as hexadecimal text.

Word Layout
-----------
The default layout is the 32-bit ReCOP instruction word, with the opcode
in the most significant bits:

    31      26 25  24 23  20 19  16 15                0
    +---------+------+------+------+-------------------+
    | opcode  | mode |  rz  |  rx  |  value            |
    +---------+------+------+------+-------------------+

- rz: destination register (first operand, or the only register operand)
- rx: source register (second operand in register mode)
- value: immediate literal or direct address
  (-2**(n-1) to 2**n - 1 for an n-bit field; negative literals are
  stored as two's complement)

Fields that a statement does not use are zero. A value that does not fit
its field raises EncodingError; nothing is truncated or wrapped.

Output Format
-------------
render_hex() writes one word per line as lower-case hexadecimal, padded
to the word width (8 digits for 32-bit words), suitable for $readmemh.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional

from isasm.errors import AddressingModeError, ConfigError, EncodingError, SourceLocation
from isasm.isa import AddressingMode, InstructionDefinition
from isasm.assembler.parser import Operand, OperandKind, Statement
from isasm.assembler.resolver import derive_addressing_mode

logger = logging.getLogger(__name__)


# =============================================================================
# Word Layout
# =============================================================================

@dataclass(frozen=True)
class WordLayout:
    """
    Bit widths of the instruction word fields.

    Fields are packed from the most significant end in this order:
    opcode, mode, rz, rx, value.
    """
    opcode_bits: int = 6
    mode_bits: int = 2
    register_bits: int = 4
    value_bits: int = 16

    def __post_init__(self) -> None:
        for name in ("opcode_bits", "mode_bits", "register_bits", "value_bits"):
            width = getattr(self, name)
            if not isinstance(width, int) or width <= 0:
                raise ConfigError(f"word layout: {name} must be a positive integer, got {width!r}")
        if (1 << self.mode_bits) <= max(AddressingMode):
            raise ConfigError(
                f"word layout: mode_bits={self.mode_bits} cannot hold "
                f"{len(AddressingMode)} addressing modes"
            )

    @property
    def word_bits(self) -> int:
        return self.opcode_bits + self.mode_bits + 2 * self.register_bits + self.value_bits

    @property
    def hex_digits(self) -> int:
        return (self.word_bits + 3) // 4

    @property
    def rx_shift(self) -> int:
        return self.value_bits

    @property
    def rz_shift(self) -> int:
        return self.rx_shift + self.register_bits

    @property
    def mode_shift(self) -> int:
        return self.rz_shift + self.register_bits

    @property
    def opcode_shift(self) -> int:
        return self.mode_shift + self.mode_bits


DEFAULT_LAYOUT = WordLayout()


# =============================================================================
# Encoded Words
# =============================================================================

@dataclass(frozen=True)
class EncodedWord:
    """
    One assembled machine word.

    Attributes:
        value: The word as an unsigned integer
        width: Word width in bits
        location: Source location of the originating statement
    """
    value: int
    width: int = DEFAULT_LAYOUT.word_bits
    location: Optional[SourceLocation] = None

    def to_hex(self) -> str:
        return f"{self.value:0{(self.width + 3) // 4}x}"

    def __int__(self) -> int:
        return self.value


class DecodedFields(NamedTuple):
    """Fields recovered from an encoded word."""
    opcode: int
    mode: AddressingMode
    rz: int
    rx: int
    value: int


def unpack(word: int | EncodedWord, layout: WordLayout = DEFAULT_LAYOUT,
           signed: bool = False) -> DecodedFields:
    """
    Split a word back into its fields.

    Args:
        word: Encoded word or its integer value
        layout: Layout the word was encoded with
        signed: Read the value field as two's complement

    Returns:
        DecodedFields(opcode, mode, rz, rx, value)
    """
    value = int(word)

    def field(shift: int, bits: int) -> int:
        return (value >> shift) & ((1 << bits) - 1)

    operand = field(0, layout.value_bits)
    if signed and operand >> (layout.value_bits - 1):
        operand -= 1 << layout.value_bits

    return DecodedFields(
        opcode=field(layout.opcode_shift, layout.opcode_bits),
        mode=AddressingMode(field(layout.mode_shift, layout.mode_bits)),
        rz=field(layout.rz_shift, layout.register_bits),
        rx=field(layout.rx_shift, layout.register_bits),
        value=operand,
    )


def render_hex(words: Iterable[EncodedWord]) -> str:
    """
    Render words as text, one fixed-width hex word per line.

    Returns:
        The text, with a trailing newline when there is at least one word
    """
    lines = [word.to_hex() for word in words]
    return "".join(f"{line}\n" for line in lines)


# =============================================================================
# Encoder
# =============================================================================

_VALUE_FIELD_NAMES = {
    OperandKind.IMMEDIATE: "immediate value",
    OperandKind.DIRECT: "direct address",
}


class Encoder:
    """
    Packs statements into machine words.

    Usage:
        encoder = Encoder()
        word = encoder.encode(statement, definition, mode)
        print(word.to_hex())
    """

    def __init__(self, layout: WordLayout = DEFAULT_LAYOUT):
        self.layout = layout

    def encode(self, statement: Statement, definition: InstructionDefinition,
               mode: AddressingMode) -> EncodedWord:
        """
        Encode one resolved statement.

        Args:
            statement: The parsed statement
            definition: Its instruction definition
            mode: The resolved addressing mode

        Returns:
            The EncodedWord

        Raises:
            AddressingModeError: If mode does not match the operands or is
                not permitted by definition
            AssemblySyntaxError: If the operand list has no valid shape
            EncodingError: If an operand value does not fit its field
        """
        layout = self.layout

        mode = AddressingMode(mode)
        shape = derive_addressing_mode(statement)
        if mode != shape:
            raise AddressingModeError(
                definition.mnemonic,
                mode.label,
                location=statement.location,
                source_line=statement.source_line,
                message=(
                    f"operands of '{statement.mnemonic}' are {shape.label} addressing, "
                    f"not {mode.label}"
                ),
                hint="pass the mode returned by derive_addressing_mode()",
            )
        if not definition.allows(mode):
            raise AddressingModeError(
                definition.mnemonic,
                mode.label,
                location=statement.location,
                source_line=statement.source_line,
                valid_modes=definition.mode_labels(),
            )
        if definition.opcode >= (1 << layout.opcode_bits):
            raise EncodingError(
                "opcode", definition.opcode, layout.opcode_bits,
                location=statement.location,
                source_line=statement.source_line,
                token=statement.mnemonic,
            )

        rz = rx = value = 0
        operands = statement.operands
        if mode is not AddressingMode.INHERENT:
            last = operands[-1]
            if len(operands) == 2:
                rz = self._field(statement, operands[0], "register index", layout.register_bits)
            if mode is AddressingMode.REGISTER:
                index = self._field(statement, last, "register index", layout.register_bits)
                if len(operands) == 2:
                    rx = index
                else:
                    rz = index
            else:
                value = self._field(
                    statement, last, _VALUE_FIELD_NAMES[last.kind], layout.value_bits,
                    signed=True,
                )

        word = (
            (definition.opcode << layout.opcode_shift)
            | (int(mode) << layout.mode_shift)
            | (rz << layout.rz_shift)
            | (rx << layout.rx_shift)
            | value
        )
        logger.debug(f"line {statement.line}: {statement.mnemonic} -> {word:0{layout.hex_digits}x}")
        return EncodedWord(word, layout.word_bits, statement.location)

    @staticmethod
    def _field(statement: Statement, operand: Operand, name: str, bits: int,
               signed: bool = False) -> int:
        """Range-check an operand; negative values become two's complement."""
        minimum = -(1 << (bits - 1)) if signed else 0
        if not minimum <= operand.value < (1 << bits):
            raise EncodingError(
                name, operand.value, bits,
                location=statement.operand_location(operand),
                source_line=statement.source_line,
                token=operand.text,
                minimum=minimum,
            )
        return operand.value & ((1 << bits) - 1)
