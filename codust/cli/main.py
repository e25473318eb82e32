"""
Main CLI entry point for codust.
"""

# Standard library imports
import importlib.metadata

# Third-party imports
import click
import typer
from typer.core import TyperGroup

try:
    # Newer Typer releases raise their own bundled copy of click's UsageError.
    from typer._click.exceptions import UsageError as TyperUsageError
except ImportError:
    TyperUsageError = click.UsageError

# Local imports
from codust.activation import activate, launch_agent
from codust.config import ConfigKind, scan_configurations
from codust.environment import display_value, get_settings
from codust.errors import EmptySelectionError, SwitcherError
from codust.selector import select_entry
from codust.utils.paths import get_path_manager
from codust.utils.rich_console import get_console, get_console_logger, print_panel, print_table


console = get_console()
logger = get_console_logger()

USAGE_ERRORS = (click.UsageError, TyperUsageError)


class HelpOnErrorGroup(TyperGroup):
    """Show the command overview instead of a bare usage error."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except USAGE_ERRORS as error:
            typer.echo(str(error))
            print_main_help_and_exit()

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except USAGE_ERRORS as error:
            typer.echo(str(error))
            print_main_help_and_exit()


app = typer.Typer(
    cls=HelpOnErrorGroup,
    help="codust - Claude Code configuration switcher\n\nPick a Claude Code settings file or a Claude Code Router config and launch Claude with it.",
)


def print_main_help_and_exit():
    banner = [
        ("green", "               _           _   "),
        ("cyan", "  ___ ___   __| |_   _ ___| |_ "),
        ("green", " / __/ _ \\ / _` | | | / __| __|"),
        ("cyan", "| (_| (_) | (_| | |_| \\__ \\ |_ "),
        ("green", " \\___\\___/ \\__,_|\\__,_|___/\\__|"),
    ]
    for color, line in banner:
        console.print(line, style=color, highlight=False)
    typer.echo("\n Claude Code configuration switcher\n")
    command_rows = [
        ["code", "Show interactive configuration selector"],
        ["list", "List discovered configurations"],
        ["version", "Show codust version"],
    ]
    print_table(["Subcommand", "Description"], command_rows, title="Available codust Subcommands")
    typer.echo("\nFor more information about a subcommand, run:")
    typer.echo("  codust <subcommand> --help")
    raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    codust - Claude Code configuration switcher
    """
    if ctx.invoked_subcommand is None:
        print_main_help_and_exit()


def _load_entries():
    settings = get_settings()
    entries = scan_configurations(settings.claude_dir, settings.router_dir)
    return settings, entries


@app.command()
def code(
    no_launch: bool = typer.Option(False, "--no-launch", help="Activate the configuration without starting Claude"),
):
    """Show the interactive configuration selector and activate the chosen entry."""
    settings, entries = _load_entries()
    paths = get_path_manager(settings)

    try:
        index = select_entry(entries, console)
    except SwitcherError as error:
        typer.echo(str(error))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        typer.echo("\nCancelled")
        raise typer.Exit(130)

    if index is None:
        typer.echo("Cancelled")
        return

    entry = entries[index]
    try:
        result = activate(entry, paths, settings)
    except SwitcherError as error:
        print_panel(str(error), title="Activation Failed", style="bold red", border_style="red")
        raise typer.Exit(1)
    except OSError as error:
        print_panel(f"Could not write configuration files: {error}", title="Activation Failed", style="bold red", border_style="red")
        raise typer.Exit(1)

    if entry.kind is ConfigKind.ROUTER:
        logger.success(f"Switched to Claude Code Router configuration: {entry.display_name}")
    else:
        logger.success(f"Switched to Claude configuration: {entry.display_name}")
    print_table(
        ["Variable", "Value"],
        [[a.name, display_value(a.name, a.value)] for a in result.plan.assignments],
        title="Exported Environment",
    )
    for warning in result.warnings:
        print_panel(f"Warning: {warning}", title="Restart", style="yellow", border_style="yellow")

    if no_launch:
        return

    typer.echo("Launching Claude with configuration environment...")
    try:
        warnings = launch_agent(result, paths, settings)
    except KeyboardInterrupt:
        typer.echo("\nClaude session interrupted")
        raise typer.Exit(130)
    for warning in warnings:
        print_panel(f"Warning: {warning}", title="Claude Session", style="yellow", border_style="yellow")
    typer.echo("Claude session completed.")


@app.command("list")
def list_configurations():
    """List the discovered configurations in display order."""
    _, entries = _load_entries()
    if not entries:
        typer.echo(str(EmptySelectionError()))
        raise typer.Exit(1)
    rows = [
        [entry.display_name, "CCR" if entry.kind is ConfigKind.ROUTER else "Claude", entry.path]
        for entry in entries
    ]
    print_table(["Name", "Kind", "Path"], rows, title="Configurations")


@app.command()
def version():
    """Show the codust version."""
    typer.echo(f"codust version: {importlib.metadata.version('codust')}")


if __name__ == "__main__":
    app()
