"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, spinners, the publish plan and the run summaries.
Supports verbosity levels and --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table

from .models import DeletionInfo, PlanEntry, PublishSummary, SyncSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Published 3 document(s)")
        >>> with handler.spinner("Publishing..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(no_color=no_color, highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Example:
            >>> with handler.spinner("Fetching documents..."):
            ...     pass
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_plan(
        self,
        to_publish: List[PlanEntry],
        deletions: List[DeletionInfo],
        orphans: List[DeletionInfo],
        draft_count: int = 0,
    ) -> None:
        """Display what a publish run will do.

        Args:
            to_publish: Documents to create or update
            deletions: Records of locally deleted documents
            orphans: Remote records with no local document
            draft_count: Number of drafts skipped
        """
        if draft_count:
            self.console.print(f"[dim]Skipping {draft_count} draft(s)[/dim]")

        if to_publish:
            self.console.print(f"\n[bold]{len(to_publish)} document(s) to publish:[/bold]")
            for entry in to_publish:
                icon = "[green]+[/green]" if entry.action == "create" else "[blue]~[/blue]"
                self.console.print(f"  {icon} {entry.document.relative_path} ({entry.reason})")

        if deletions:
            self.console.print(
                f"\n[bold]{len(deletions)} deleted local file(s) to remove from the PDS:[/bold]"
            )
            for deletion in deletions:
                self.console.print(f"  [red]-[/red] {deletion.title}")

        if orphans:
            self.console.print(f"\n[bold]{len(orphans)} unmatched PDS record(s) to delete:[/bold]")
            for orphan in orphans:
                self.console.print(f"  [red]-[/red] {orphan.title}")

    def print_publish_summary(self, summary: PublishSummary) -> None:
        """Display publish summary table with color coding."""
        table = Table(title="Publish Summary", show_header=False, box=None, padding=(0, 2))
        table.add_column("Result")
        table.add_column("Count", justify="right")

        table.add_row("[green]Published[/green]", str(summary.created_count))
        table.add_row("[blue]Updated[/blue]", str(summary.updated_count))
        if summary.deleted_count:
            table.add_row("[red]Deleted[/red]", str(summary.deleted_count))
        if summary.unchanged_count:
            table.add_row("[dim]Unchanged[/dim]", str(summary.unchanged_count))
        if summary.draft_count:
            table.add_row("[dim]Drafts[/dim]", str(summary.draft_count))
        if summary.bsky_post_count:
            table.add_row("Bluesky posts", str(summary.bsky_post_count))
        if summary.skipped_count:
            table.add_row("[yellow]Unparseable[/yellow]", str(summary.skipped_count))
        if summary.note_warning_count:
            table.add_row("[yellow]Warnings[/yellow]", str(summary.note_warning_count))
        if summary.error_count:
            table.add_row("[red]Errors[/red]", str(summary.error_count))

        self.console.print()
        self.console.print(table)

        if summary.error_count:
            self.console.print(f"\n[red]Publish completed with {summary.error_count} error(s)[/red]")
        else:
            self.console.print("\n[green]Publish completed successfully[/green]")

    def print_sync_summary(self, summary: SyncSummary, dry_run: bool = False) -> None:
        """Display state recovery summary."""
        self.console.print("\n[bold]Sync Summary:[/bold]")
        self.console.print(f"  Matched: {summary.matched_count} document(s)")
        self.console.print(f"  Unchanged since publish: {summary.verified_count}")
        if summary.unmatched_count:
            self.console.print(
                f"  [yellow]Unmatched PDS records: {summary.unmatched_count}[/yellow]"
            )
        if summary.frontmatter_updated_count:
            self.console.print(f"  Frontmatter updated: {summary.frontmatter_updated_count} file(s)")
        if dry_run:
            self.console.print("\n[yellow]Dry run complete. No changes made.[/yellow]")
