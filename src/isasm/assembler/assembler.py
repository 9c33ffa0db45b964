"""
isasm Assembler - Main Interface
================================

This module provides the Assembler class, the primary interface for
assembling source code against a configured instruction set. It runs each
line through the pipeline:

1. **Parse**: split the line into mnemonic and typed operands
2. **Resolve**: derive the addressing mode and check it is permitted
3. **Encode**: pack opcode, mode and operand values into a word

Lines do not depend on each other, so the work can be spread over a thread
pool (jobs > 1). Results are always gathered in source order, and the
output is identical whatever the job count.

Example Usage
-------------
>>> from isasm.assembler import Assembler
>>> from isasm.isa import parse_instruction_set
>>>
>>> isa = parse_instruction_set('''
... [nop]
... opcode = 0
... inh = true
... [add]
... opcode = 3
... reg = true
... imm = true
... ''')
>>> asm = Assembler(isa)
>>> words = asm.assemble_string("nop\\nadd r1 #1\\n")
>>> print(asm.get_hex(), end="")
00000000
0d100001

Error Policy
------------
By default every line is assembled and all errors are collected
(has_errors(), get_error_report()). With fail_fast=True the first error, in
line order, is raised. Output is only ever written when the whole source
assembled without error.
"""

import logging
import os
import stat
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from isasm.errors import AssemblerError, ConfigError, SourceLocation
from isasm.isa import InstructionSetModel, load_instruction_set
from isasm.assembler.parser import number_lines, parse_line
from isasm.assembler.resolver import AddressingModeResolver
from isasm.assembler.encoder import DEFAULT_LAYOUT, EncodedWord, Encoder, WordLayout, render_hex

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "out.txt"


@dataclass(frozen=True)
class _LineResult:
    """Outcome of assembling one line: a word, an error, or neither."""
    word: Optional[EncodedWord] = None
    error: Optional[AssemblerError] = None


def _decode_error(error: UnicodeDecodeError, filename: str) -> AssemblerError:
    """Report undecodable source bytes at their line and column."""
    data = error.object
    line = data.count(b"\n", 0, error.start) + 1
    column = error.start - (data.rfind(b"\n", 0, error.start) + 1) + 1
    return AssemblerError(
        f"source is not valid UTF-8 (byte 0x{data[error.start]:02x})",
        location=SourceLocation(filename, line, column),
        hint="save the file as UTF-8",
    )


def _output_mode(path: Path) -> int:
    """Permission bits for the output file: the existing file's, or the umask default."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


class Assembler:
    """
    Assembles source text into machine words.

    The instruction set is fixed for the lifetime of the assembler and is
    only ever read, which is what makes the threaded mode safe.

    Attributes:
        isa: The instruction set to assemble against
        layout: Word layout used by the encoder
        jobs: Number of worker threads (1 = sequential)
        fail_fast: Raise the first error instead of collecting them all
    """

    def __init__(self, isa: InstructionSetModel,
                 layout: WordLayout = DEFAULT_LAYOUT,
                 jobs: int = 1,
                 fail_fast: bool = False,
                 verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            isa: Validated instruction set
            layout: Word layout (field widths)
            jobs: Worker threads for per-line work; values below 1 mean 1
            fail_fast: Stop at the first error and raise it
            verbose: Log progress at INFO level

        Raises:
            ConfigError: If the instruction set's opcodes cannot fit the layout
        """
        if isa.opcode_bits > layout.opcode_bits:
            raise ConfigError(
                f"instruction set uses {isa.opcode_bits}-bit opcodes but the word "
                f"layout only has {layout.opcode_bits} opcode bits"
            )

        self.isa = isa
        self.layout = layout
        self.jobs = max(1, jobs)
        self.fail_fast = fail_fast
        self._verbose = verbose

        self._resolver = AddressingModeResolver(isa)
        self._encoder = Encoder(layout)

        self._words: list[EncodedWord] = []
        self._errors: list[AssemblerError] = []
        self._source_file: Optional[Path] = None

    @classmethod
    def from_config_file(cls, path: str | Path,
                         layout: WordLayout = DEFAULT_LAYOUT,
                         **kwargs) -> "Assembler":
        """
        Create an assembler from an instruction-set configuration file.

        Raises:
            ConfigError: If the configuration is unreadable or invalid
        """
        isa = load_instruction_set(path, opcode_bits=layout.opcode_bits)
        return cls(isa, layout=layout, **kwargs)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def assemble_line(self, line: str, line_number: int = 1,
                      filename: str = "<input>") -> Optional[EncodedWord]:
        """
        Assemble a single line.

        Returns:
            The encoded word, or None for blank and comment-only lines

        Raises:
            AssemblerError: If the line cannot be assembled
        """
        statement = parse_line(line, line_number, filename)
        if statement is None:
            return None
        definition, mode = self._resolver.resolve(statement)
        return self._encoder.encode(statement, definition, mode)

    def assemble_string(self, source: str, filename: str = "<input>") -> list[EncodedWord]:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            Encoded words in source order; empty if any line failed

        Raises:
            AssemblerError: The first error, when fail_fast is set
        """
        self._words = []
        self._errors = []

        lines = number_lines(source)
        if self._verbose:
            logger.info(f"Assembling {len(lines)} lines from {filename} (jobs={self.jobs})")

        words = []
        for result in self._run(lines, filename):
            if result.error is not None:
                self._errors.append(result.error)
                if self.fail_fast:
                    raise result.error
            elif result.word is not None:
                words.append(result.word)

        if self._errors:
            logger.debug(f"{filename}: {len(self._errors)} error(s), no words kept")
            return []

        self._words = words
        if self._verbose:
            logger.info(f"Assembled {len(words)} words")
        return list(words)

    def assemble_file(self, filepath: str | Path) -> list[EncodedWord]:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If the file is not valid UTF-8, or the first
                error when fail_fast is set
            FileNotFoundError: If the source file does not exist
        """
        filepath = Path(filepath)
        self._source_file = filepath
        try:
            source = filepath.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise _decode_error(e, str(filepath)) from e
        return self.assemble_string(source, str(filepath))

    def _run(self, lines: list[tuple[int, str]], filename: str) -> Iterator[_LineResult]:
        """Assemble numbered lines, yielding results in line order."""
        def work(item: tuple[int, str]) -> _LineResult:
            line_number, line = item
            try:
                return _LineResult(word=self.assemble_line(line, line_number, filename))
            except AssemblerError as e:
                return _LineResult(error=e)

        if self.jobs == 1 or len(lines) < 2:
            for item in lines:
                yield work(item)
            return

        # Executor.map yields in submission order
        with ThreadPoolExecutor(max_workers=self.jobs) as pool:
            yield from pool.map(work, lines)

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_words(self) -> list[EncodedWord]:
        return list(self._words)

    def get_hex(self) -> str:
        """Assembled words as hex text, one word per line."""
        return render_hex(self._words)

    def write_hex(self, filepath: str | Path) -> None:
        """
        Write the assembled words as a hex memory image.

        The text goes to a temporary file beside the target, which then
        replaces it, so a failed write never leaves a partial image.

        Raises:
            AssemblerError: If the last assembly produced errors
            OSError: If the file cannot be written
        """
        if self._errors:
            raise AssemblerError(
                f"refusing to write {filepath}: assembly failed with "
                f"{len(self._errors)} error(s)"
            )
        filepath = Path(filepath)
        tmp = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=filepath.parent,
            prefix=f".{filepath.name}.", suffix=".tmp", delete=False,
        )
        try:
            with tmp:
                tmp.write(self.get_hex())
            os.chmod(tmp.name, _output_mode(filepath))
            os.replace(tmp.name, filepath)
        except BaseException:
            os.unlink(tmp.name)
            raise
        if self._verbose:
            logger.info(f"Wrote {len(self._words)} words to {filepath}")

    # =========================================================================
    # Error Handling
    # =========================================================================

    def has_errors(self) -> bool:
        return bool(self._errors)

    def get_errors(self) -> list[AssemblerError]:
        return list(self._errors)

    def get_error_report(self) -> str:
        """
        Get formatted error report.

        Returns:
            Every error in line order followed by a count
        """
        if not self._errors:
            return ""
        parts = [str(error) for error in self._errors]
        parts.append(f"{len(self._errors)} error(s), no output written")
        return "\n".join(parts)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(source: str, isa: InstructionSetModel,
             filename: str = "<input>",
             layout: WordLayout = DEFAULT_LAYOUT) -> list[EncodedWord]:
    """
    Assemble source code, raising the first error.

    Raises:
        AssemblerError: If any line fails
    """
    asm = Assembler(isa, layout=layout, fail_fast=True)
    return asm.assemble_string(source, filename)


def assemble_file(filepath: str | Path, isa: InstructionSetModel,
                  layout: WordLayout = DEFAULT_LAYOUT) -> list[EncodedWord]:
    """
    Assemble a file, raising the first error.

    Raises:
        AssemblerError: If any line fails
    """
    asm = Assembler(isa, layout=layout, fail_fast=True)
    return asm.assemble_file(filepath)
