"""
isasm - Assembler for Configurable Instruction Sets
===================================================

This package translates assembly source for a user-defined instruction set
into fixed-width machine words, written as a hexadecimal memory image for
HDL simulation ($readmemh) or other toolchains.

The instruction set is not built in. It is read from a TOML table that
maps each mnemonic to its opcode and permitted addressing modes, so an
evolving architecture only needs a configuration change, never a new
encoder.

Main Components
---------------
- **isa**: Instruction-set model and configuration loading
- **assembler**: Lexer, parser, addressing-mode resolver, encoder
- **cli**: The isasm command-line tool

Quick Start
-----------
Assemble a program:
    >>> from isasm import Assembler, load_instruction_set
    >>> isa = load_instruction_set("recop.toml")
    >>> asm = Assembler(isa)
    >>> asm.assemble_file("program.asm")
    >>> asm.write_hex("out.txt")

Or use the command-line tool:
    $ isasm -i recop.toml program.asm -o program.hex

Source Syntax
-------------
    ; comment
    nop                 ; inherent
    add r1 #1           ; immediate
    ld  r2 $0x40        ; direct
    or  r2 r1           ; register

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from isasm.assembler import (
    Assembler,
    assemble,
    assemble_file,
    EncodedWord,
    WordLayout,
    DEFAULT_LAYOUT,
    render_hex,
    unpack,
)
from isasm.isa import (
    AddressingMode,
    InstructionDefinition,
    InstructionSetModel,
    load_instruction_set,
    parse_instruction_set,
)
from isasm.errors import (
    IsasmError,
    ConfigError,
    DefinitionError,
    AssemblerError,
    UnknownMnemonicError,
    AssemblySyntaxError,
    AddressingModeError,
    EncodingError,
    SourceLocation,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "assemble",
    "assemble_file",
    "EncodedWord",
    "WordLayout",
    "DEFAULT_LAYOUT",
    "render_hex",
    "unpack",
    # Instruction set
    "AddressingMode",
    "InstructionDefinition",
    "InstructionSetModel",
    "load_instruction_set",
    "parse_instruction_set",
    # Errors
    "IsasmError",
    "ConfigError",
    "DefinitionError",
    "AssemblerError",
    "UnknownMnemonicError",
    "AssemblySyntaxError",
    "AddressingModeError",
    "EncodingError",
    "SourceLocation",
]
