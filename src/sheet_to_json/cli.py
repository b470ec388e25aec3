"""Command-line interface for the sheet-to-JSON converter.

This module provides a CLI with support for:
- Converting a spreadsheet or CSV file to a JSON file
- Previewing the JSON document without writing it
- Listing the sheets of a source
- Configuration validation
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import click

from sheet_to_json import __version__
from sheet_to_json.config.config_manager import ConfigurationError, config_manager
from sheet_to_json.converter import SheetToJsonConverter
from sheet_to_json.models.data_models import AppConfig
from sheet_to_json.models.errors import ConversionError
from sheet_to_json.utils.encodings import register_encoding_aliases
from sheet_to_json.utils.logger import setup_logging


# Every conversion flag defaults to None so that unset flags fall back to
# the configured defaults.
_CONVERSION_OPTIONS = [
    click.option('--header-rows', '-H', type=int, default=None,
                 help='Number of header rows; column names come from the last one'),
    click.option('--sheet', '-s', 'sheet_name', default=None,
                 help='Convert only this sheet (case-insensitive)'),
    click.option('--exclude-prefix', '-x', default=None,
                 help='Skip sheets and columns whose name starts with this prefix'),
    click.option('--array/--dict', 'export_array', default=None,
                 help='Build each sheet as an array of rows or a dictionary keyed by the first column'),
    click.option('--lowercase/--no-lowercase', default=None,
                 help='Fold field names to lowercase'),
    click.option('--force-sheet-name/--no-force-sheet-name', default=None,
                 help='Always wrap sheets in an object keyed by sheet name'),
    click.option('--cell-json/--no-cell-json', default=None,
                 help='Parse cells holding JSON arrays or objects'),
    click.option('--all-string/--no-all-string', default=None,
                 help='Convert every value to text'),
    click.option('--single-line-array/--no-single-line-array', default=None,
                 help='Put each array element on its own compact line'),
    click.option('--date-format', default=None,
                 help='strftime pattern for dates, e.g. "%Y-%m-%d"'),
    click.option('--encoding', '-e', default=None,
                 help='Output text encoding, e.g. utf-8, utf-8-bom, ansi'),
]


def conversion_options(func: Callable) -> Callable:
    """Attach the shared conversion flags to a command."""
    for option in reversed(_CONVERSION_OPTIONS):
        func = option(func)
    return func


def _load_config(ctx: click.Context) -> AppConfig:
    """Load configuration and initialize logging and encodings."""
    config = config_manager.load_config(ctx.obj.get('config_path'))
    setup_logging(config.logging)
    register_encoding_aliases()
    return config


@click.group(invoke_without_command=True)
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--version', is_flag=True, help='Show version information')
@click.pass_context
def main(ctx: click.Context, config: Optional[str], version: bool) -> None:
    """Sheet-to-JSON Converter - turn spreadsheet and CSV tables into JSON documents."""
    if version:
        click.echo(f"Sheet-to-JSON Converter v{__version__}")
        return

    # Store config path in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config

    # If no command specified, show help
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Output JSON file (defaults to the source path with a .json suffix)')
@conversion_options
@click.pass_context
def convert(ctx: click.Context, source: Path, output: Optional[Path], **flags: Any) -> None:
    """Convert a spreadsheet or CSV file to a JSON file.

    SOURCE: Path to the .xlsx, .xlsm, .xls or .csv file to convert
    """
    try:
        config = _load_config(ctx)
        options = config.conversion.to_options(source, output, **flags)
        if options.output_path is None:
            options = options.with_overrides(output_path=options.resolved_output_path)

        result = SheetToJsonConverter().convert(options)

        click.echo(f"Converted {source} -> {result.output_path}")
        click.echo(f"Sheets: {result.sheet_count}")
        click.echo(f"Rows: {result.row_count}")

    except (ConfigurationError, ConversionError) as e:
        click.echo(f"Conversion error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@conversion_options
@click.pass_context
def preview(ctx: click.Context, source: Path, **flags: Any) -> None:
    """Print the JSON document for a file without writing it.

    The document goes to standard output; sheet, row and depth counts go to
    standard error.

    SOURCE: Path to the .xlsx, .xlsm, .xls or .csv file to preview
    """
    try:
        config = _load_config(ctx)
        options = config.conversion.to_options(source, **flags)

        result = SheetToJsonConverter().preview(options)

        click.echo(result.text)
        click.echo(
            f"Sheets: {result.sheet_count}, Rows: {result.row_count}, Depth: {result.max_depth}",
            err=True,
        )

    except (ConfigurationError, ConversionError) as e:
        click.echo(f"Preview error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument('source', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--header-rows', '-H', type=int, default=None, help='Number of header rows')
@click.pass_context
def sheets(ctx: click.Context, source: Path, header_rows: Optional[int]) -> None:
    """List the sheets of a spreadsheet or CSV file.

    SOURCE: Path to the file to inspect
    """
    try:
        config = _load_config(ctx)
        if header_rows is None:
            header_rows = config.conversion.header_rows

        names = SheetToJsonConverter().list_sheet_names(source, header_rows)

        click.echo(f"Found {len(names)} sheets:")
        for i, name in enumerate(names, 1):
            click.echo(f"  {i}. {name}")

    except (ConfigurationError, ConversionError) as e:
        click.echo(f"Sheets error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.pass_context
def config_check(ctx: click.Context) -> None:
    """Validate and display current configuration."""
    config_path = ctx.obj.get('config_path')

    try:
        click.echo("Loading and validating configuration...")

        config = config_manager.load_config(config_path)

        click.echo("✓ Configuration loaded successfully")
        click.echo()
        _display_config(config)

    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)


def _display_config(config: AppConfig) -> None:
    """Display formatted configuration summary."""
    conversion: Dict[str, Any] = vars(config.conversion)

    click.echo("Configuration Summary:")
    click.echo("  Conversion defaults:")
    for key, value in conversion.items():
        click.echo(f"    {key}: {value!r}")
    click.echo(f"  Preview debounce: {config.preview.debounce_seconds}s")
    click.echo(f"  Preview workers: {config.preview.max_workers}")
    click.echo(f"  Logging level: {config.logging.level}")
    click.echo(f"  Log file: {config.logging.file_path if config.logging.file_enabled else 'disabled'}")


if __name__ == '__main__':
    main()
