"""
isasm - Assembler Command-Line Interface
========================================

Command-line front end for the configurable-instruction-set assembler.

Usage Examples
--------------
Basic assembly (writes out.txt):
    $ isasm -i recop.toml program.asm

With output file:
    $ isasm -i recop.toml program.asm -o program.hex

Stop at the first error, use four worker threads:
    $ isasm -i recop.toml --fail-fast -j 4 program.asm

Verbose mode:
    $ isasm -v -i recop.toml program.asm
"""

import logging
import sys
from pathlib import Path

import click

from isasm import __version__
from isasm.assembler import Assembler, DEFAULT_OUTPUT
from isasm.cli.errors import ExitCode, handle_cli_exception


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-i", "--instructions",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Instruction-set configuration file (TOML)",
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OUTPUT,
    show_default=True,
    help="Output hex file",
)
@click.option(
    "-j", "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Worker threads for line assembly",
)
@click.option(
    "--fail-fast/--all-errors",
    default=False,
    help="Stop at the first error instead of reporting every failing line. "
         "Default: report all errors.",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="isasm")
def main(
    input_file: Path,
    instructions: Path,
    output: Path,
    jobs: int,
    fail_fast: bool,
    verbose: bool,
) -> None:
    """
    Assemble INPUT_FILE against a configured instruction set.

    The instruction set is read from the TOML file given with -i. Each
    table names a mnemonic and gives its opcode and permitted addressing
    modes (imm, reg, dir, inh).

    The output is a text file with one hexadecimal word per source
    statement, in source order. Nothing is written if any line fails.

    \b
    Examples:
        isasm -i recop.toml prog.asm              # Outputs out.txt
        isasm -i recop.toml prog.asm -o prog.hex  # Specify output file
    """
    setup_logging(verbose)

    try:
        # The instruction set is validated before the source is read
        asm = Assembler.from_config_file(
            instructions,
            jobs=jobs,
            fail_fast=fail_fast,
            verbose=verbose,
        )
        if verbose:
            click.echo(f"Loaded {len(asm.isa)} instructions from {instructions}")

        asm.assemble_file(input_file)

        if asm.has_errors():
            click.echo(asm.get_error_report(), err=True)
            sys.exit(ExitCode.BUILD_ERROR)

        asm.write_hex(output)
        if verbose:
            click.echo(f"Wrote {len(asm.get_words())} words to {output}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
