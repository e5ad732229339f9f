"""
hawkeye CLI - Firmware Security Report

Command-line interface using Click.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .catalog import FILE_TYPES, UNKNOWN_FILE_TYPE
from .config import AnalyzerConfig, load_config_file
from .errors import AnalysisError
from .export import export_report, load_report, report_to_json
from .pipeline import AnalysisPipeline
from .types import FirmwareFile


# --------------------------------------------------------------------------
# CLI Group
# --------------------------------------------------------------------------

@click.group()
@click.version_option(version=__version__)
@click.option('-v', '--verbose', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose):
    """hawkeye - Firmware Security Report

    Runs a firmware image through the staged analysis pipeline and
    prints vulnerabilities, potential issues, structure and risk score.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


# --------------------------------------------------------------------------
# Analysis
# --------------------------------------------------------------------------

@cli.command()
@click.argument('firmware', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@click.option('-o', '--output', type=click.Path(file_okay=False, path_type=Path),
              help='Directory for firmware-analysis-<id>.json')
@click.option('-c', '--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='Python config file')
@click.option('--fast', is_flag=True, help='Skip the pauses between stages')
@click.pass_context
def analyze(ctx, firmware: Path, as_json: bool, output: Optional[Path],
            config_path: Optional[str], fast: bool):
    """Analyze a firmware file."""
    verbose = ctx.obj.get('verbose', False)

    try:
        config = load_config_file(config_path) if config_path else AnalyzerConfig()
    except (FileNotFoundError, ImportError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    if fast:
        config.delay_scale = 0.0

    # Keep stdout clean for --json
    def echo(message: str) -> None:
        click.echo(message, err=as_json)

    pipeline = AnalysisPipeline(
        config=config,
        log_callback=echo if verbose else None,
    )
    if not verbose:
        pipeline.on_progress(lambda progress: echo(str(progress)))

    try:
        report = asyncio.run(pipeline.run(FirmwareFile.from_path(firmware)))
    except AnalysisError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    if as_json:
        click.echo(report_to_json(report))
    else:
        click.echo("")
        click.echo(report.summary())

    if output:
        path = export_report(report, output)
        click.echo(f"[+] Report exported to {path}", err=as_json)


@cli.command()
@click.argument('report_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def show(ctx, report_file: Path):
    """Show a previously exported report."""
    try:
        report = load_report(report_file)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        click.echo(f"Error: invalid report file {report_file}: {e}", err=True)
        ctx.exit(1)
    click.echo(report.summary())


@cli.command()
@click.option('--json', 'as_json', is_flag=True, help='Output as JSON')
def filetypes(as_json):
    """List recognized firmware file extensions."""
    if as_json:
        click.echo(json.dumps(FILE_TYPES, indent=2))
        return

    for ext, name in FILE_TYPES.items():
        click.echo(f"  .{ext:<8} {name}")
    click.echo(f"  {'(other)':<9} {UNKNOWN_FILE_TYPE}")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
