# src/refgenome/cli.py
from __future__ import annotations

import functools
import logging
import sys
from typing import Optional

import click

from .config import DEFAULT_HALF_WINDOW, GenomeConfig
from .errors import RefGenomeError
from .genome import open_genome


def genome_options(func):
    """Options shared by every subcommand that opens a genome."""

    @click.option(
        "--half-window",
        type=click.IntRange(min=1),
        default=DEFAULT_HALF_WINDOW,
        show_default=True,
        help="Half size of the in-memory window, in bases.",
    )
    @click.option(
        "--timeout",
        type=click.FloatRange(min=0),
        default=None,
        help="HTTP timeout in seconds for DAS sources (default: none).",
    )
    @click.option(
        "--strict-length/--no-strict-length",
        default=False,
        show_default=True,
        help="Fail when a DAS server returns fewer bases than requested.",
    )
    @functools.wraps(func)
    def wrapper(*args, half_window, timeout, strict_length, **kwargs):
        config = GenomeConfig(
            half_window=half_window, timeout=timeout, strict_length=strict_length
        )
        return func(*args, config=config, **kwargs)

    return wrapper


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", is_flag=True, help="Log debug messages to stderr.")
def main(verbose: bool) -> None:
    """
    refgenome command-line interface.

    LOCATOR is either an indexed FASTA file or the base URL of a DAS
    server.

    Subcommands:
      dict  : list contig names and lengths
      fetch : print bases of a contig
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@main.command(name="dict")
@click.argument("locator")
@genome_options
def dict_cmd(locator: str, config: GenomeConfig) -> None:
    """Print one `name<TAB>length` line per contig."""
    try:
        with open_genome(locator, config=config) as genome:
            for rec in genome.get_dictionary():
                click.echo("%s\t%d" % (rec.name, rec.length))
    except (RefGenomeError, OSError) as err:
        raise click.ClickException(str(err)) from err


@main.command(name="fetch")
@click.argument("locator")
@click.argument("contig")
@click.argument("start", type=click.IntRange(min=0), required=False)
@click.argument("end", type=click.IntRange(min=0), required=False)
@genome_options
def fetch_cmd(
    locator: str,
    contig: str,
    start: Optional[int],
    end: Optional[int],
    config: GenomeConfig,
) -> None:
    """
    Print bases [START, END) of CONTIG (0-based; whole contig by default).
    """
    try:
        with open_genome(locator, config=config) as genome:
            seq = genome.get_contig(contig)
            if seq is None:
                raise click.ClickException(
                    "no contig %r in %s" % (contig, genome.source)
                )
            lo = 0 if start is None else start
            hi = seq.length if end is None else end
            click.echo(seq.fetch(lo, hi))
    except (RefGenomeError, OSError) as err:
        raise click.ClickException(str(err)) from err


if __name__ == "__main__":
    sys.exit(main())
