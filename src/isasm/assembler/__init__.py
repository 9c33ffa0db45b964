"""
isasm Assembler
===============

This package assembles source code for a configurable instruction set into
fixed-width machine words.

Main Components
---------------
- **Assembler**: Orchestrates the pipeline over a whole source file
- **Lexer**: Splits one line into mnemonic and operand tokens
- **Parser**: Builds Statement objects from tokens
- **AddressingModeResolver**: Derives and validates addressing modes
- **Encoder**: Packs statements into words laid out by a WordLayout

Assembly Process
----------------
Each line is handled on its own, in three steps:

1. **Parsing (Lexer + Parser)**: mnemonic plus typed operands
2. **Resolution (AddressingModeResolver)**: mode from operand shape,
   checked against the instruction set
3. **Encoding (Encoder)**: opcode, mode and operand fields packed into
   one word

There are no labels, so no line depends on another and the output order is
simply the source order.

Example Usage
-------------
>>> from isasm.assembler import assemble, render_hex
>>> from isasm.isa import InstructionSetModel
>>> isa = InstructionSetModel.build({"or": {"opcode": 2, "reg": True}})
>>> print(render_hex(assemble("or r2 r1", isa)), end="")
0a210000
"""

from isasm.assembler.assembler import Assembler, assemble, assemble_file, DEFAULT_OUTPUT
from isasm.assembler.lexer import Lexer, Token, TokenType
from isasm.assembler.parser import (
    Parser,
    Statement,
    Operand,
    OperandKind,
    number_lines,
    parse_line,
    parse_source,
)
from isasm.assembler.resolver import (
    AddressingModeResolver,
    derive_addressing_mode,
    resolve_addressing_mode,
)
from isasm.assembler.encoder import (
    DEFAULT_LAYOUT,
    DecodedFields,
    EncodedWord,
    Encoder,
    WordLayout,
    render_hex,
    unpack,
)

__all__ = [
    # Main class and functions
    "Assembler",
    "assemble",
    "assemble_file",
    "DEFAULT_OUTPUT",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "Parser",
    "Statement",
    "Operand",
    "OperandKind",
    "number_lines",
    "parse_line",
    "parse_source",
    # Resolver
    "AddressingModeResolver",
    "derive_addressing_mode",
    "resolve_addressing_mode",
    # Encoder
    "DEFAULT_LAYOUT",
    "DecodedFields",
    "EncodedWord",
    "Encoder",
    "WordLayout",
    "render_hex",
    "unpack",
]
