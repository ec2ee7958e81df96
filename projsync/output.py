"""Console output formatting built on rich."""

from typing import Optional

from rich.console import Console


class OutputFormatter:
    """Formats user-facing messages for the terminal.

    Informational output goes to stdout, warnings and errors to stderr.
    With ``quiet`` set, only warnings and errors are shown.
    """

    def __init__(
        self,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.quiet = quiet
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)

    def print(self, message: str = "") -> None:
        """Print a plain message."""
        if not self.quiet:
            self.console.print(message, highlight=False)

    def info(self, message: str) -> None:
        """Print an informational message."""
        if not self.quiet:
            self.console.print(message, highlight=False)

    def success(self, message: str) -> None:
        """Print a success message."""
        if not self.quiet:
            self.console.print(f"[green]✓[/green] {message}", highlight=False)

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self.err_console.print(f"[yellow]Warning:[/yellow] {message}", highlight=False)

    def error(self, message: str) -> None:
        """Print an error message."""
        self.err_console.print(f"[red]Error:[/red] {message}", highlight=False)
