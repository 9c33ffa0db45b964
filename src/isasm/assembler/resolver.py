"""
Addressing-Mode Resolution
==========================

Derives the addressing mode implied by a statement's operand shapes and
checks it against the instruction set.

| Operands              | Mode      |
|-----------------------|-----------|
| (none)                | Inherent  |
| rA                    | Register  |
| #v        / rA #v     | Immediate |
| $a        / rA $a     | Direct    |
| rA rB                 | Register  |

With two operands the first is the destination register and the second
decides the mode. The permission check is a plain lookup in the
instruction definition; no mnemonic gets special handling.
"""

import logging
from typing import Optional

from isasm.errors import AddressingModeError, AssemblySyntaxError
from isasm.isa import AddressingMode, InstructionDefinition, InstructionSetModel
from isasm.assembler.parser import OperandKind, Statement

logger = logging.getLogger(__name__)

MAX_OPERANDS = 2

_KIND_MODES = {
    OperandKind.REGISTER: AddressingMode.REGISTER,
    OperandKind.IMMEDIATE: AddressingMode.IMMEDIATE,
    OperandKind.DIRECT: AddressingMode.DIRECT,
}


def derive_addressing_mode(statement: Statement) -> AddressingMode:
    """
    Classify a statement by the shape of its operands.

    Raises:
        AssemblySyntaxError: If the operand list has no valid shape
    """
    operands = statement.operands

    if not operands:
        return AddressingMode.INHERENT

    if len(operands) > MAX_OPERANDS:
        extra = operands[MAX_OPERANDS]
        raise AssemblySyntaxError(
            f"too many operands for '{statement.mnemonic}' "
            f"({len(operands)}, at most {MAX_OPERANDS})",
            statement.operand_location(extra),
            source_line=statement.source_line,
            token=extra.text,
        )

    if len(operands) == 2 and not operands[0].is_register:
        first = operands[0]
        raise AssemblySyntaxError(
            f"first of two operands must be a register, found '{first.text}'",
            statement.operand_location(first),
            hint="write the destination register first, e.g. 'add r1 #1'",
            source_line=statement.source_line,
            token=first.text,
        )

    return _KIND_MODES[operands[-1].kind]


class AddressingModeResolver:
    """
    Resolves and validates addressing modes against an instruction set.

    The instruction set is passed in and only read, so one resolver can be
    shared between worker threads.

    Usage:
        resolver = AddressingModeResolver(isa)
        definition, mode = resolver.resolve(statement)
    """

    def __init__(self, isa: InstructionSetModel):
        self.isa = isa

    def resolve(self, statement: Statement) -> tuple[InstructionDefinition, AddressingMode]:
        """
        Look up the statement's instruction and validate its addressing mode.

        Returns:
            (definition, mode) for the encoder

        Raises:
            UnknownMnemonicError: If the mnemonic is not defined
            AssemblySyntaxError: If the operand count or shape is wrong
            AddressingModeError: If the mode is not permitted
        """
        definition = self.isa.lookup(
            statement.mnemonic,
            location=statement.location,
            source_line=statement.source_line,
        )

        self._check_operand_count(statement, definition)
        mode = derive_addressing_mode(statement)

        if not definition.allows(mode):
            raise AddressingModeError(
                statement.mnemonic,
                mode.label,
                location=statement.location,
                source_line=statement.source_line,
                valid_modes=definition.mode_labels(),
            )

        logger.debug(f"line {statement.line}: {statement.mnemonic} -> {mode.label}")
        return definition, mode

    @staticmethod
    def _check_operand_count(statement: Statement, definition: InstructionDefinition) -> None:
        expected: Optional[int] = definition.operand_count
        if expected is None or expected == len(statement.operands):
            return
        raise AssemblySyntaxError(
            f"'{statement.mnemonic}' expects {expected} operand(s), "
            f"got {len(statement.operands)}",
            statement.location,
            source_line=statement.source_line,
            token=statement.mnemonic,
        )


def resolve_addressing_mode(statement: Statement, isa: InstructionSetModel) -> AddressingMode:
    """
    Convenience function returning only the validated mode.

    Raises:
        UnknownMnemonicError, AssemblySyntaxError, AddressingModeError
    """
    _, mode = AddressingModeResolver(isa).resolve(statement)
    return mode
