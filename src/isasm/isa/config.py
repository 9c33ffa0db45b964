"""
Instruction-Set Configuration Loading
=====================================

Reads the TOML instruction table and builds an InstructionSetModel.

Example configuration:

    [nop]
    opcode = 0
    inh = true

    [add]
    opcode = 3
    reg = true
    imm = true

The whole file is parsed and validated before any source line is read.
"""

import logging
import tomllib
from pathlib import Path

from isasm.errors import ConfigError
from isasm.isa.model import DEFAULT_OPCODE_BITS, InstructionSetModel

logger = logging.getLogger(__name__)


def parse_instruction_set(text: str, source: str = "<config>",
                          opcode_bits: int = DEFAULT_OPCODE_BITS) -> InstructionSetModel:
    """
    Build an instruction set from TOML text.

    Args:
        text: TOML document
        source: Name used in error messages
        opcode_bits: Width of the opcode field

    Returns:
        The validated InstructionSetModel

    Raises:
        ConfigError: If the text is not valid TOML
        DefinitionError: If an instruction entry is invalid
    """
    try:
        table = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML: {e}", source=source) from e

    if not table:
        raise ConfigError("no instructions defined", source=source)

    return InstructionSetModel.build(table, opcode_bits=opcode_bits, source=source)


def load_instruction_set(path: str | Path,
                         opcode_bits: int = DEFAULT_OPCODE_BITS) -> InstructionSetModel:
    """
    Load and validate an instruction-set configuration file.

    Raises:
        ConfigError: If the file cannot be read, is not UTF-8, or cannot be parsed
        DefinitionError: If an instruction entry is invalid
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read file: {e.strerror or e}", source=str(path)) from e
    except UnicodeDecodeError as e:
        raise ConfigError(
            f"not valid UTF-8 (byte 0x{e.object[e.start]:02x} at offset {e.start})",
            source=str(path),
        ) from e

    isa = parse_instruction_set(text, source=str(path), opcode_bits=opcode_bits)
    logger.info(f"Loaded {len(isa)} instructions from {path}")
    return isa
