"""
Assembly Line Lexer
===================

This module splits one line of assembly source into tokens. A line is a
mnemonic followed by zero or more whitespace-separated operands; the first
character of each operand selects its kind.

Token Types
-----------
- MNEMONIC: Instruction name (first word of the line)
- REGISTER: r followed by a decimal index (r0, R12)
- IMMEDIATE: # followed by a numeric literal (#42, #0x2A)
- DIRECT: $ followed by a numeric literal ($100, $0xFF)

Number Formats
--------------
| Format      | Prefix | Example | Value |
|-------------|--------|---------|-------|
| Decimal     | (none) | 123     | 123   |
| Hexadecimal | 0x     | 0x7F    | 127   |
| Binary      | 0b     | 0b1010  | 10    |
| Octal       | 0o     | 0o177   | 127   |

Register indices are always decimal and unsigned. Immediate and direct
literals may carry a leading minus sign (#-1); the encoder stores them as
two's complement in the value field.

Comments
--------
A semicolon starts a comment that runs to the end of the line.

Example
-------
>>> from isasm.assembler.lexer import Lexer
>>> for token in Lexer("add r1 #0x10 ; bump", "prog.asm", 3).tokenize():
...     print(token)
Token(MNEMONIC, 'add', 3:1)
Token(REGISTER, 1, 3:5)
Token(IMMEDIATE, 16, 3:8)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, Optional
import string

from isasm.errors import AssemblySyntaxError, SourceLocation
from isasm.isa.model import is_valid_mnemonic


COMMENT_CHAR = ";"


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for one assembly line."""
    MNEMONIC = auto()
    REGISTER = auto()    # rN
    IMMEDIATE = auto()   # #value
    DIRECT = auto()      # $address


# Operand prefix character -> token type
OPERAND_PREFIXES = {
    "r": TokenType.REGISTER,
    "#": TokenType.IMMEDIATE,
    "$": TokenType.DIRECT,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from a source line.

    Attributes:
        type: The TokenType classification
        value: Lower-case name for mnemonics, integer value for operands
        text: The token exactly as written in the source
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int
    text: str
    line: int
    column: int
    filename: str

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)


# =============================================================================
# Number Scanning
# =============================================================================

# Alternate base prefix (after a leading 0) -> (base, digit set)
BASE_PREFIXES = {
    "x": (16, string.hexdigits),
    "b": (2, "01"),
    "o": (8, "01234567"),
}


def scan_number(text: str, decimal_only: bool = False) -> tuple[Optional[int], int, str]:
    """
    Scan a numeric literal at the start of text.

    Args:
        text: Characters following the operand prefix
        decimal_only: Accept plain decimal digits only (register indices)

    Returns:
        (value, consumed, problem) where value is None when no digits were
        found; consumed is the number of characters used; problem names what
        was expected when value is None.
    """
    pos = 0
    base, digits = 10, string.digits

    if not decimal_only and text[:1] == "0" and text[1:2].lower() in BASE_PREFIXES:
        base, digits = BASE_PREFIXES[text[1].lower()]
        pos = 2

    start = pos
    # Note: '' in digits is True, so bound by length explicitly
    while pos < len(text) and text[pos] in digits:
        pos += 1

    if pos == start:
        kind = {16: "hexadecimal", 2: "binary", 8: "octal", 10: "decimal"}[base]
        return None, pos, f"{kind} digits"

    return int(text[start:pos], base), pos, ""


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes one line of assembly source.

    Blank lines and comment-only lines yield no tokens. Any malformed
    operand raises AssemblySyntaxError carrying the line number, column and
    the offending token.

    Usage:
        tokens = list(Lexer(line, filename, line_number).tokenize())
    """

    def __init__(self, line: str, filename: str = "<input>", line_number: int = 1):
        """
        Initialize the lexer with one source line.

        Args:
            line: The source line (without line terminator)
            filename: Name of the source file (for error messages)
            line_number: 1-based line number of this line
        """
        self.line = line.rstrip("\r\n")
        self.filename = filename
        self.line_number = line_number
        self._pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate the tokens of the line.

        Yields:
            The MNEMONIC token followed by one token per operand

        Raises:
            AssemblySyntaxError: If a word cannot be tokenized
        """
        first = True
        while not self._at_end():
            if self._skip_whitespace():
                continue
            if self._peek() == COMMENT_CHAR:
                break

            column = self._pos + 1
            word = self._read_word()
            if first:
                yield self._scan_mnemonic(word, column)
                first = False
            else:
                yield self._scan_operand(word, column)

    # =========================================================================
    # Character Access
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.line)

    def _peek(self) -> str:
        if self._at_end():
            return ""
        return self.line[self._pos]

    def _skip_whitespace(self) -> bool:
        skipped = False
        while not self._at_end() and self.line[self._pos].isspace():
            self._pos += 1
            skipped = True
        return skipped

    def _read_word(self) -> str:
        """Consume characters up to whitespace or a comment."""
        start = self._pos
        while not self._at_end():
            char = self.line[self._pos]
            if char.isspace() or char == COMMENT_CHAR:
                break
            self._pos += 1
        return self.line[start:self._pos]

    def _error(self, message: str, column: int, token: str,
               hint: Optional[str] = None) -> AssemblySyntaxError:
        location = SourceLocation(self.filename, self.line_number, column)
        return AssemblySyntaxError(
            message, location, hint=hint, source_line=self.line, token=token
        )

    def _make_token(self, token_type: TokenType, value: str | int,
                    text: str, column: int) -> Token:
        return Token(
            type=token_type,
            value=value,
            text=text,
            line=self.line_number,
            column=column,
            filename=self.filename,
        )

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_mnemonic(self, word: str, column: int) -> Token:
        if word.endswith(":"):
            raise self._error(
                f"unexpected label '{word}'", column, word,
                hint="labels are not supported; each line holds one instruction",
            )
        if not is_valid_mnemonic(word):
            raise self._error(f"expected mnemonic, found '{word}'", column, word)
        return self._make_token(TokenType.MNEMONIC, word.lower(), word, column)

    def _scan_operand(self, word: str, column: int) -> Token:
        prefix = word[0].lower()
        token_type = OPERAND_PREFIXES.get(prefix)
        if token_type is None:
            raise self._error(
                f"invalid operand '{word}'", column, word,
                hint="operands start with r (register), # (immediate) or $ (direct)",
            )

        body = word[1:]
        negative = body.startswith("-")
        if negative:
            if token_type is TokenType.REGISTER:
                raise self._error(
                    f"negative register index in operand '{word}'", column + 1, word,
                    hint="register indices are unsigned",
                )
            body = body[1:]

        value, consumed, expected = scan_number(
            body, decimal_only=token_type is TokenType.REGISTER
        )
        # Offset of body within word: prefix plus an optional sign
        offset = 1 + negative
        if value is None:
            raise self._error(
                f"expected {expected} after '{word[:offset + consumed]}' in operand '{word}'",
                column + offset + consumed, word,
            )
        if consumed < len(body):
            raise self._error(
                f"unexpected '{body[consumed:]}' after number in operand '{word}'",
                column + offset + consumed, word,
            )

        return self._make_token(token_type, -value if negative else value, word, column)
