"""
Command-line interface for neo-footprint.
"""

import logging
import sys

import click

from . import __version__
from .footprint_pipeline import (
    FootprintPipelineError,
    MalformedRecordLineError,
    generate_footprint_report,
    load_footprint_records,
    run_footprint,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@click.group()
@click.version_option(version=__version__)
def cli():
    """Neo-peptide footprint index for tumor cohorts."""
    pass


@cli.command('run')
@click.argument('config_files', nargs=-1, type=click.Path())
@click.option(
    '--verbose', '-v',
    is_flag=True,
    default=False,
    help='Enable debug logging'
)
def run_command(config_files, verbose: bool):
    """
    Compute allele footprint indexes for a patient cohort.

    CONFIG_FILES are YAML files applied in order; values in later files
    override earlier ones.
    """
    if not config_files:
        ctx = click.get_current_context()
        click.echo(f"Usage: {ctx.command_path} CONFIG_FILE1 [CONFIG_FILE2 ...]", err=True)
        sys.exit(1)

    _setup_logging(verbose)

    try:
        result = run_footprint(*config_files)
    except (FootprintPipelineError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Footprint type: {result.footprint_type}")
    click.echo(f"Tumors processed: {result.processed_barcodes}/{result.total_barcodes}")
    click.echo(f"Records written: {result.total_records}")
    if result.empty_barcodes:
        click.echo(f"Tumors without peptide pairs: {len(result.empty_barcodes)}")
    click.echo(f"Output: {result.footprint_file}")

    if result.failed_barcodes:
        click.echo(f"\nWarnings ({len(result.failed_barcodes)} tumors skipped):", err=True)
        for barcode, error in list(result.failed_barcodes.items())[:10]:
            click.echo(f"  - {barcode}: {error}", err=True)
        if len(result.failed_barcodes) > 10:
            click.echo(f"  ... and {len(result.failed_barcodes) - 10} more", err=True)


@cli.command('summarize')
@click.argument('footprint_file', type=click.Path(exists=True, dir_okay=False))
def summarize_command(footprint_file: str):
    """
    Print a summary report for an existing footprint file.
    """
    try:
        records = load_footprint_records(footprint_file)
    except MalformedRecordLineError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(generate_footprint_report(records))


# Main entry point - use cli group
def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
