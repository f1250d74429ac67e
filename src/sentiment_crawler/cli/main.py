"""Command line interface for the sentiment crawler."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.writers import WRITERS
from ..foundation.config import get_config_manager
from ..foundation.errors import ConfigurationError, CrawlerError
from ..foundation.logging import get_logger, setup_logging
from ..foundation.metrics import get_metrics_collector
from ..models.extraction import OutputFormat, RunConfiguration, RunResult
from ..services.extract import ExtractService
from ..version import __version__

# Create consoles for rich output
console = Console()
error_console = Console(stderr=True)

logger = get_logger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-help", "--help", "-h"]}

FORMAT_NAMES = ", ".join(f"'{fmt.value}'" for fmt in OutputFormat)


def setup_cli_logging(verbose: int) -> None:
    """Setup logging based on verbosity level.

    Args:
        verbose: Verbosity level (0-3); 0 keeps the configured level
    """
    level_map = {
        0: None,
        1: "INFO",
        2: "DEBUG",
        3: "DEBUG"
    }

    setup_logging(level=level_map[min(max(verbose, 0), 3)])


def handle_cli_error(error: Exception, debug: bool = False) -> int:
    """Report an error that ended the run.

    Args:
        error: Exception that occurred
        debug: Whether to show the traceback

    Returns:
        Exit code
    """
    if isinstance(error, CrawlerError):
        error_console.print(f"[red]Error:[/red] {escape(error.message)}", soft_wrap=True)
        if error.details:
            details = ", ".join(f"{key}={value}" for key, value in error.details.items())
            error_console.print(f"Details: {escape(details)}", soft_wrap=True)
        if debug:
            error_console.print_exception()
        return 1
    elif isinstance(error, click.exceptions.Exit):
        return error.exit_code
    elif isinstance(error, click.ClickException):
        # Let click handle its own exceptions
        error.show()
        return error.exit_code
    else:
        if debug:
            error_console.print_exception()
        else:
            error_console.print(f"[red]Unexpected error:[/red] {escape(str(error))}", soft_wrap=True)
            error_console.print("Use -verbose for more details")
        return 1


def show_run_summary(result: RunResult) -> None:
    """Show a summary table of the run."""
    table = Table(title="Extraction Summary")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("URL", result.uri)
    if result.document_uri != result.uri:
        table.add_row("Document", result.document_uri)
    table.add_row("Content Type", result.content_type or "N/A")
    for syntax, count in result.triples_by_syntax.items():
        table.add_row(f"Triples ({syntax})", str(count))
    table.add_row("Triples Total", str(result.triple_count))
    table.add_row("Writer", result.writer)
    table.add_row("Output", str(result.output_path))
    table.add_row("Bytes Written", str(result.bytes_written))

    timings = get_metrics_collector().get_summary()["timings"]
    for name in ("engine.fetch", "engine.extract", "sink.write"):
        if name in timings:
            table.add_row(f"Time ({name})", f"{timings[name]:.2f}s")
    table.add_row("Elapsed Time", f"{result.duration:.2f}s")

    console.print(table)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option(
    "-url",
    "--url",
    "uri",
    metavar="URL",
    help="run sentiment extraction on this URL"
)
@click.option(
    "-outputDir",
    "--output-dir",
    "output_dir",
    metavar="OUTPUT_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    help="output directory for extracted s, p, o sentiments"
)
@click.option(
    "-outputFormat",
    "--output-format",
    "output_format",
    metavar="OUTPUT_SERIALIZATION",
    help=f"output serialization for extracted s, p, o sentiments (one of {FORMAT_NAMES})"
)
@click.option(
    "-config",
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file path (YAML or JSON)"
)
@click.option(
    "-verbose",
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (use -v, -vv)"
)
@click.option(
    "-quiet",
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress output except errors"
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output"
)
@click.version_option(__version__, "-version", "--version", prog_name="sentiment-crawler")
@click.pass_context
def cli(ctx, uri, output_dir, output_format, config_path, verbose, quiet, no_color):
    """Extract s, p, o relationships from one document.

    Fetches URL (http, https, file or a local path), extracts the structured
    data embedded in it (microdata, RDFa, JSON-LD, microformats, Open Graph,
    Dublin Core, the page head, license and XFN links) and writes the
    triples to OUTPUT_DIR/sentiment.txt.

    Examples:

        # Turtle into the current directory
        sentiment-crawler -url https://example.com

        # N-Triples into /tmp/out
        sentiment-crawler -url https://example.com -outputDir /tmp/out -outputFormat ntriples
    """
    if quiet:
        verbose = 0

    if no_color:
        console.no_color = True
        error_console.no_color = True

    try:
        config_manager = get_config_manager()
        if config_path:
            config_manager.config_path = config_path
            config_manager.reload_config()
        config = config_manager.config
    except ConfigurationError as e:
        setup_cli_logging(verbose)
        ctx.exit(handle_cli_error(e, debug=verbose > 0))

    setup_cli_logging(verbose)

    run_config = RunConfiguration(uri=uri, output_dir=output_dir, output_format=output_format)
    logger.debug(f"Run configuration: {run_config!r}")

    try:
        with ExtractService(config=config) as service:
            result = service.run(run_config)
    except Exception as e:
        ctx.exit(handle_cli_error(e, debug=verbose > 0))

    if result.serialization_failed:
        error_console.print("[yellow]Warning:[/yellow] the writer failed to serialize; output may be incomplete")

    if not quiet:
        requested = run_config.output_format
        if requested and OutputFormat.parse(requested) is None:
            console.print(f"No output writer found for type: {escape(requested)}", soft_wrap=True)
            console.print(f"Defaulting to {WRITERS[result.output_format].__name__} output serialization")
        console.print(f"Selected {result.writer} as output writer.")
        if verbose > 0:
            show_run_summary(result)
        console.print(f"[green]Successfully wrote file to:[/green] {escape(str(result.output_path))}", soft_wrap=True)


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    if args is None:
        args = sys.argv[1:]

    try:
        result = cli.main(args=args, prog_name="sentiment-crawler", standalone_mode=False)
        return result if isinstance(result, int) else 0
    except KeyboardInterrupt:
        error_console.print("\n[yellow]Operation cancelled by user.[/yellow]")
        return 130
    except click.exceptions.Abort:
        error_console.print("\n[yellow]Aborted.[/yellow]")
        return 1
    except Exception as e:
        debug = any(arg in ("-verbose", "--verbose", "-v", "-vv", "-vvv") for arg in args)
        return handle_cli_error(e, debug)


if __name__ == "__main__":
    sys.exit(main())
