"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output.
Uses Rich for spinners, colored output and the build summary. Supports
verbosity levels and the --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from .models import BuildSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Build completed")
        >>> with handler.spinner("Mirroring workspace..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.no_color = no_color
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
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
        """Display message verbatim, without markup processing.

        Used for captured process output, which may contain brackets.
        """
        self.console.print(message, markup=False, highlight=False)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for a single blocking operation.

        Args:
            message: Message to display with spinner

        Example:
            >>> with handler.spinner("Copying customizations..."):
            ...     overlay.apply()
        """
        if not self.console.is_terminal:
            self.info(message)
            yield
            return
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def print_summary(self, summary: BuildSummary) -> None:
        """Display build summary with color coding."""
        self.console.print("\n[bold]Build Summary:[/bold]")

        if summary.mirrored_files > 0:
            self.console.print(f"  [green]↦[/green] Mirrored: {summary.mirrored_files} file(s)")

        if summary.excluded_paths > 0:
            self.console.print(f"  [dim]─[/dim] Excluded: {summary.excluded_paths} path(s)")

        if summary.overlay_entries > 0:
            self.console.print(f"  [blue]⇪[/blue] Customizations: {summary.overlay_entries} item(s)")

        if summary.folder_pages > 0:
            self.console.print(
                f"  [green]▤[/green] Folder pages: {summary.folder_pages} "
                f"from {summary.content_nodes} content node(s)"
            )

        if summary.failed_paths > 0:
            self.console.print(f"  [yellow]⚠[/yellow] Failed: {summary.failed_paths} path(s)")
            self.console.print("\n[yellow]Build completed with warnings[/yellow]")
        else:
            self.console.print("\n[green]Build completed![/green]")
