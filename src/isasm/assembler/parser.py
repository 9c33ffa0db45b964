"""
Assembly Statement Parser
=========================

This module turns source lines into Statement objects. Each line is
independent: a statement holds the mnemonic and its operands and nothing
else, since there are no labels, directives or macros.

Statement Shapes
----------------
| Source        | Operands                       |
|---------------|--------------------------------|
| nop           | ()                             |
| add r1 #1     | (Register 1, Immediate 1)      |
| ld r2 $0x40   | (Register 2, Direct 64)        |
| or r2 r1      | (Register 2, Register 1)       |

Blank lines and comment-only lines produce no statement. The parser does
not look at the instruction set; mnemonic lookup and addressing-mode
checks happen in the resolver.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from isasm.errors import SourceLocation
from isasm.assembler.lexer import Lexer, Token, TokenType


# =============================================================================
# Operand Kinds
# =============================================================================

class OperandKind(Enum):
    """The kind of an operand, selected by its prefix character."""
    REGISTER = "register"
    IMMEDIATE = "immediate"
    DIRECT = "direct"


_TOKEN_KINDS = {
    TokenType.REGISTER: OperandKind.REGISTER,
    TokenType.IMMEDIATE: OperandKind.IMMEDIATE,
    TokenType.DIRECT: OperandKind.DIRECT,
}


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass(frozen=True)
class Operand:
    """
    Instruction operand.

    Attributes:
        kind: Register, immediate or direct
        value: Register index, literal value or address
        text: The operand as written in the source
        column: Column of the operand (1-indexed)
    """
    kind: OperandKind
    value: int
    text: str = ""
    column: int = 0

    @classmethod
    def from_token(cls, token: Token) -> "Operand":
        return cls(_TOKEN_KINDS[token.type], token.value, token.text, token.column)

    @property
    def is_register(self) -> bool:
        return self.kind is OperandKind.REGISTER


@dataclass
class Statement:
    """
    One parsed instruction line.

    Attributes:
        location: Source location of the mnemonic
        mnemonic: Lower-case instruction name
        operands: Operands in source order
        source_line: The full source line, for error context
    """
    location: SourceLocation
    mnemonic: str
    operands: tuple[Operand, ...] = field(default_factory=tuple)
    source_line: str = ""

    @property
    def line(self) -> int:
        return self.location.line

    def operand_location(self, operand: Operand) -> SourceLocation:
        return SourceLocation(self.location.filename, self.location.line, operand.column)


# =============================================================================
# Parser Implementation
# =============================================================================

class Parser:
    """
    Parses assembly source into statements.

    Usage:
        parser = Parser(source, filename)
        statements = parser.parse()

    Parsing stops at the first malformed line; use numbered_lines() with
    parse_line() to keep going past errors.
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

    def parse(self) -> list[Statement]:
        """
        Parse every line of the source.

        Returns:
            Statements in source order

        Raises:
            AssemblySyntaxError: On the first malformed line
        """
        statements = []
        for line_number, line in self.numbered_lines():
            statement = parse_line(line, line_number, self.filename)
            if statement is not None:
                statements.append(statement)
        return statements

    def numbered_lines(self) -> list[tuple[int, str]]:
        """Source lines paired with their 1-based line numbers."""
        return number_lines(self.source)


def number_lines(source: str) -> list[tuple[int, str]]:
    """
    Split source into (line number, text) pairs.

    Only newline ends a line, so numbering matches what an editor shows
    even when the text holds form feeds or other Unicode line breaks. A
    trailing carriage return is left for the lexer to strip.
    """
    if not source:
        return []
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    return list(enumerate(lines, start=1))


def parse_line(line: str, line_number: int = 1,
               filename: str = "<input>") -> Optional[Statement]:
    """
    Parse one source line.

    Args:
        line: Source text of the line
        line_number: 1-based line number
        filename: Source file name for error messages

    Returns:
        The Statement, or None for blank and comment-only lines

    Raises:
        AssemblySyntaxError: If the line is malformed
    """
    tokens = list(Lexer(line, filename, line_number).tokenize())
    if not tokens:
        return None

    mnemonic, operand_tokens = tokens[0], tokens[1:]
    return Statement(
        location=mnemonic.location,
        mnemonic=mnemonic.value,
        operands=tuple(Operand.from_token(token) for token in operand_tokens),
        source_line=line.rstrip("\r\n"),
    )


def parse_source(source: str, filename: str = "<input>") -> list[Statement]:
    """
    Convenience function to parse a whole source text.

    Raises:
        AssemblySyntaxError: On the first malformed line
    """
    return Parser(source, filename).parse()
