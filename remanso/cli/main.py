"""Main CLI entry point for the remanso command.

This module provides the Typer application with two subcommands:
``publish`` pushes changed documents to the PDS and ``sync`` rebuilds the
local state file from the records already published.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from remanso.cli.models import ExitCode
from remanso.cli.output import OutputHandler
from remanso.cli.publish_command import PublishCommand
from remanso.cli.sync_command import SyncCommand

app = typer.Typer(
    name="remanso",
    help="""Publish local Markdown documents to an ATProto PDS.

QUICK START:
  remanso publish              # Publish new and changed documents
  remanso publish --dry-run    # Preview what would be published
  remanso sync                 # Rebuild state from the PDS

Credentials are read from ATP_IDENTIFIER and ATP_APP_PASSWORD
(environment or .env file).""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'remanso' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger("remanso")
    app_logger.setLevel(level)

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"remanso_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


@app.command()
def publish(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Republish every non-draft document, changed or not",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be published without changing anything",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to remanso.yaml (searched upwards from the current directory by default)",
        metavar="FILE",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Publish new and changed documents, delete removed ones."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    if dry_run:
        output.print("[yellow]Dry run: no changes will be made[/yellow]")

    publish_cmd = PublishCommand(config_path=config, output_handler=output)
    exit_code = publish_cmd.run(force=force, dry_run=dry_run)
    raise typer.Exit(exit_code)


@app.command()
def sync(
    update_frontmatter: bool = typer.Option(
        False,
        "--update-frontmatter",
        "-u",
        help="Write the matched record URI into each local document",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Report matches without writing files or state",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to remanso.yaml (searched upwards from the current directory by default)",
        metavar="FILE",
    ),
    logdir: Optional[str] = typer.Option(
        None,
        "--logdir",
        help="Directory for log files (creates timestamped log file)",
    ),
    verbosity: int = typer.Option(
        0,
        "--verbosity",
        "-v",
        help="Verbosity level: 0=summary, 1=info, 2=debug",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
) -> None:
    """Rebuild the state file from documents already on the PDS."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    sync_cmd = SyncCommand(config_path=config, output_handler=output)
    exit_code = sync_cmd.run(update_frontmatter=update_frontmatter, dry_run=dry_run)
    raise typer.Exit(exit_code)


@app.command()
def version() -> None:
    """Show version and exit."""
    typer.echo(f"remanso version {__version__}")
    raise typer.Exit(ExitCode.SUCCESS)


def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
