"""
isasm Command-Line Interface
============================

This package provides the command-line tool for the assembler:

- **isasm**: assemble a source file against an instruction-set
  configuration and write a hex memory image

The tool is a Click-based CLI application with help text and uniform
error reporting and exit codes.
"""

__all__ = ["isasm"]
