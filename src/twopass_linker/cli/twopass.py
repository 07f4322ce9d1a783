"""
twopass - Two-Pass Linker Command-Line Interface
================================================

Links a relocatable multi-module program and prints its symbol table
and memory map.

Usage Examples
--------------
Basic link:
    $ twopass input-1.txt

Read from standard input:
    $ cat input-1.txt | twopass -

Write the listing and symbol table to files:
    $ twopass input-1.txt -o input-1.map -s input-1.sym

Show every module and resolve duplicate symbols to the first definition:
    $ twopass --modules --duplicates first input-1.txt
"""

from pathlib import Path
from typing import Optional
import logging

import click

from twopass_linker import __version__
from twopass_linker.cli.errors import handle_cli_exception
from twopass_linker.config import DuplicatePolicy, LinkerConfig
from twopass_linker.linker import Linker
from twopass_linker.listing import format_listing, format_symbol_table, write_listing

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "Warning: %(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the listing to this file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the global symbol table to this file",
)
@click.option(
    "--modules",
    is_flag=True,
    help="Include a dump of every module in the listing",
)
@click.option(
    "--duplicates",
    type=click.Choice([p.value for p in DuplicatePolicy], case_sensitive=False),
    default=None,
    help="How to treat symbols defined more than once. Default: error "
         "(or TWOPASS_DUPLICATES).",
)
@click.option(
    "--machine-size",
    type=click.IntRange(1, 1000),
    default=None,
    help="Number of addressable words. Default: 1000 (or TWOPASS_MACHINE_SIZE).",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="twopass")
def main(
    input_file: Path,
    output: Optional[Path],
    symbols: Optional[Path],
    modules: bool,
    duplicates: Optional[str],
    machine_size: Optional[int],
    verbose: bool,
) -> None:
    """
    Link a relocatable multi-module program.

    INPUT_FILE is the program to link, or - for standard input.

    The program is a stream of alphanumeric tokens; every other
    character is a separator. Each module gives its definitions,
    its uses and its instructions, each preceded by a count.

    \b
    Examples:
        twopass input-1.txt                 # Print symbols and memory map
        twopass input-1.txt -o out.map      # Also write the listing
        twopass --modules input-1.txt       # Dump every module
    """
    setup_logging(verbose)

    try:
        config = LinkerConfig.from_env()
        if duplicates is not None:
            config.duplicate_policy = DuplicatePolicy(duplicates.lower())
        if machine_size is not None:
            config.machine_size = machine_size

        linker = Linker(config)

        filename = "<stdin>" if str(input_file) == "-" else str(input_file)
        logger.info(f"Linking {filename}")
        with click.open_file(str(input_file)) as stream:
            source = stream.read()
        result = linker.link_string(source, filename)

        click.echo(format_listing(result, modules=modules), nl=False)

        if output:
            write_listing(output, result, modules=modules)
            logger.info(f"Wrote listing to {output}")

        if symbols:
            symbols.write_text(format_symbol_table(result.symbols) + "\n")
            logger.info(f"Wrote symbols to {symbols}")

        if verbose:
            click.echo(
                f"Linked {len(result.modules)} module(s): "
                f"{len(result.memory_map)} word(s), {len(result.symbols)} symbol(s), "
                f"{len(result.warnings)} warning(s)",
                err=True,
            )

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
