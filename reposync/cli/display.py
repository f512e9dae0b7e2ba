"""Display components for CLI using Rich."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from reposync.models.sync import WorkflowResult

console = Console()


def show_banner(mode: str) -> None:
    """Display a one-line header for the run."""
    console.print()
    console.print(Panel(f"[bold cyan]reposync[/] [dim]{escape(mode)}[/]", border_style="cyan", expand=False))


def show_success(title: str, message: str) -> None:
    """Display a success message."""
    console.print()
    console.print(
        Panel(
            f"[bold green]{escape(message)}[/]",
            title=f"[bold]{escape(title)}[/]",
            border_style="green",
        )
    )


def show_error(title: str, message: str) -> None:
    """Display an error message."""
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(message)}[/]",
            title=f"[bold]{escape(title)}[/]",
            border_style="red",
        )
    )


def show_info(title: str, message: str) -> None:
    """Display an info message."""
    console.print()
    console.print(
        Panel(
            escape(message),
            title=f"[bold]{escape(title)}[/]",
            border_style="blue",
        )
    )


def show_summary(config: dict) -> None:
    """Display the run configuration before syncing.

    Args:
        config: Field name to value; empty values are skipped.
    """
    console.print()
    table = Table(title="[bold]Sync Configuration[/]", show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    for field, value in config.items():
        if value in (None, "", [], ()):
            continue
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        table.add_row(field, escape(str(value)))

    console.print(Panel(table, border_style="yellow"))


def show_sync_results(result: WorkflowResult, dry_run: bool = False) -> None:
    """Display one row per target.

    Args:
        result: Completed workflow result.
        dry_run: Label changed targets as "would change".
    """
    console.print()
    table = Table(title="[bold]Sync Results[/]")
    table.add_column("Target", style="cyan")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Pull Request / Error")

    for sync in result.sync_results:
        if sync.error is not None:
            status = "[bold red]FAILED[/]"
            detail = f"[red]{escape(sync.error)}[/]"
        elif not sync.files_changed:
            status = "[dim]UP TO DATE[/]"
            detail = ""
        elif dry_run:
            status = "[yellow]WOULD CHANGE[/]"
            detail = escape(", ".join(sync.files_changed))
        else:
            status = "[bold green]SYNCED[/]"
            detail = escape(sync.pull_request_url or "")
        table.add_row(escape(sync.target_repo), status, str(len(sync.files_changed)), detail)

    console.print(table)


def show_repo_list(title: str, repos: list[str]) -> None:
    """Display a list of repositories."""
    console.print()
    table = Table(title=f"[bold]{escape(title)}[/]", show_header=False, box=None)
    table.add_column("Repository", style="cyan")
    for repo in repos:
        table.add_row(escape(repo))
    console.print(table)
