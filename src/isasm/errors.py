"""
isasm Error Hierarchy
=====================

This module defines the exception hierarchy for the whole assembler.
All exceptions inherit from IsasmError, allowing callers to catch every
assembler-related failure with a single except clause if desired.

Exception Hierarchy
-------------------
IsasmError (base)
├── ConfigError - unreadable or malformed instruction-set configuration
│   └── DefinitionError - invalid instruction entry (duplicate, opcode range,
│                         no permitted addressing mode)
└── AssemblerError (per-statement errors)
    ├── UnknownMnemonicError - mnemonic absent from the instruction set
    ├── AssemblySyntaxError - malformed line or operand token
    ├── AddressingModeError - mode not permitted for the mnemonic
    └── EncodingError - operand value does not fit its bit field

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class IsasmError(Exception):
    """
    Base exception for all isasm errors.

        try:
            assembler.assemble_file("program.asm")
        except IsasmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed, 0 when unknown)
    """
    filename: str
    line: int
    column: int = 0

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        if self.column > 0:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.filename}:{self.line}"


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigError(IsasmError):
    """
    The instruction-set configuration cannot be used.

    Raised before any source line is read: the file is missing or is not
    valid TOML, or the word layout is inconsistent.

    Attributes:
        message: The error description
        source: Configuration file name (optional)
    """

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        if source:
            super().__init__(f"{source}: config error: {message}")
        else:
            super().__init__(f"config error: {message}")


class DefinitionError(ConfigError):
    """
    An instruction entry in the configuration is invalid.

    Examples:
        - the same mnemonic declared twice (case-insensitively)
        - opcode outside the opcode field width
        - no addressing-mode flag set to true
    """

    def __init__(self, mnemonic: str, message: str, source: Optional[str] = None):
        self.mnemonic = mnemonic
        super().__init__(f"instruction '{mnemonic}': {message}", source=source)


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(IsasmError):
    """
    Base exception for errors tied to a source statement.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    @property
    def line(self) -> Optional[int]:
        return self.location.line if self.location else None

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.asm:3:9: error: register index 16 does not fit in 4 bits
                add r16 #1
                    ^
            hint: valid register indices are 0 to 15
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class UnknownMnemonicError(AssemblerError):
    """
    Mnemonic not present in the instruction set.

    Similar mnemonics are suggested in the hint to help catch typos.
    """

    def __init__(
        self,
        mnemonic: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        similar: Optional[list[str]] = None,
    ):
        self.mnemonic = mnemonic
        self.similar = similar or []

        hint = None
        if self.similar:
            suggestions = ", ".join(f"'{s}'" for s in self.similar[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f"unknown mnemonic '{mnemonic}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source code.

    Examples:
        - operand without a recognised prefix (r, #, $)
        - prefix with no digits ("#", "r")
        - trailing garbage after a number ("#12ab")
        - wrong number or shape of operands
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        token: Optional[str] = None,
    ):
        self.token = token
        super().__init__(message, location=location, hint=hint, source_line=source_line)


class AddressingModeError(AssemblerError):
    """
    Addressing mode used but not permitted for the mnemonic, or a mode that
    does not match the statement's operands.

    Example:
        or r1 #4   ; Error if 'or' is only declared with reg = true
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        valid_modes: Optional[list[str]] = None,
        message: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.valid_modes = valid_modes or []

        if hint is None and self.valid_modes:
            modes_str = ", ".join(self.valid_modes)
            hint = f"{mnemonic} supports: {modes_str}"

        super().__init__(
            message or f"'{mnemonic}' does not support {mode} addressing mode",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class EncodingError(AssemblerError):
    """
    Operand value does not fit in its bit field.

    Values are never truncated or wrapped; an out-of-range register index,
    immediate or direct address aborts the statement.
    """

    def __init__(
        self,
        field_name: str,
        value: int,
        bits: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        token: Optional[str] = None,
        minimum: int = 0,
    ):
        self.field_name = field_name
        self.value = value
        self.bits = bits
        self.token = token
        self.minimum = minimum

        subject = f"'{token}'" if token else str(value)
        super().__init__(
            f"{field_name} {subject} does not fit in {bits} bits",
            location=location,
            hint=f"valid {field_name} values are {minimum} to {(1 << bits) - 1}",
            source_line=source_line,
        )
