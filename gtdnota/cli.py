"""CLI entrypoint for gtdnota."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _configure_logging(level: str) -> None:
    """Log to stderr; stdout is reserved for command output and the MCP stream."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _data_file_argument(exists: bool):
    return click.argument(
        "data_file",
        envvar="GTDNOTA_FILE",
        type=click.Path(exists=exists, file_okay=True, dir_okay=False, path_type=Path),
    )


@click.group()
@click.version_option(__version__, prog_name="gtdnota")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="GTDNOTA_LOG_LEVEL",
    help="Logging verbosity (logs go to stderr)",
)
def cli(log_level: str) -> None:
    """gtdnota - GTD task engine where tasks, projects and contexts are all notas.

    Data lives in a single TOML file. Older file formats are migrated
    automatically when loaded.
    """
    _configure_logging(log_level.upper())


@cli.command()
@_data_file_argument(exists=False)
@click.option(
    "--sync-git",
    is_flag=True,
    envvar="GTDNOTA_SYNC_GIT",
    help="Pull before loading, commit and push after each change",
)
def serve(data_file: Path, sync_git: bool) -> None:
    """Run the MCP tool server on stdio.

    The data file is created on the first change if it does not exist.

    Examples:

        gtdnota serve ~/gtd.toml

        gtdnota serve ~/notes/gtd.toml --sync-git
    """
    from .commands.serve import run_serve

    sys.exit(run_serve(data_file, sync_git))


@cli.command("list")
@_data_file_argument(exists=False)
@click.option("--status", type=str, default=None, help="Only this status (e.g. next_action, project)")
@click.option("--date", type=str, default=None, metavar="YYYY-MM-DD", help="Hide calendar items starting later")
@click.option("--keyword", "-k", type=str, default=None, help="Case-insensitive search in id, title and notes")
@click.option("--project", type=str, default=None, help="Only notas in this project")
@click.option("--context", type=str, default=None, help="Only notas in this context")
@click.option("--exclude-notes", is_flag=True, help="Leave notes out of the output")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def list_command(
    data_file: Path,
    status: str | None,
    date: str | None,
    keyword: str | None,
    project: str | None,
    context: str | None,
    exclude_notes: bool,
    output_json: bool,
) -> None:
    """List notas in a data file."""
    from .commands.list_cmd import run_list

    sys.exit(run_list(data_file, status, date, keyword, project, context, exclude_notes, output_json))


@cli.command()
@_data_file_argument(exists=True)
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default="error",
    help="Exit with error if this level or higher found",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
def check(data_file: Path, fail_on: str, output_json: bool) -> None:
    """Check a data file for broken references and other integrity problems.

    Rules: duplicate-id, missing-project, missing-context,
    calendar-without-date, bad-recurrence.
    """
    from .commands.check import run_check

    sys.exit(run_check(data_file, fail_on, output_json))


@cli.command()
@_data_file_argument(exists=True)
@click.option("--dry-run", is_flag=True, help="Print the migrated document instead of writing it")
def migrate(data_file: Path, dry_run: bool) -> None:
    """Rewrite a data file in the current format version."""
    from .commands.migrate import run_migrate

    sys.exit(run_migrate(data_file, dry_run))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
