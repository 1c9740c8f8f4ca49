"""
CLI for agent-workspace.

Runs the fs_read and fs_write tools against a workspace directory from the
command line, the same way an agent would call them.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from agent_workspace import __version__
from agent_workspace.filesystem.models import EditAction, Operation
from agent_workspace.filesystem.patterns import PatternMode, Preset
from agent_workspace.filesystem.tools import WorkspaceTools
from agent_workspace.settings.config import WorkspaceSettings

# Load environment variables
load_dotenv()

console = Console()


def setup_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Setup rich logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_settings(config_file: Optional[str]) -> WorkspaceSettings:
    """Settings from a file if given, else from the environment."""
    if config_file:
        return WorkspaceSettings.from_file(config_file)
    return WorkspaceSettings()


def _compact(arguments: dict[str, Any]) -> dict[str, Any]:
    """Drop unset options so the request models apply their defaults."""
    return {
        k: v for k, v in arguments.items() if v is not None and v is not False and v != []
    }


def _run(ctx: click.Context, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    tools: WorkspaceTools = ctx.obj["tools"]
    return asyncio.run(tools.execute_tool(tool_name, _compact(arguments)))


def _print_error(result: dict[str, Any]) -> None:
    error = result.get("error", {})
    console.print(f"[bold red]{error.get('code', 'ERROR')}:[/bold red] {error.get('message', '')}")
    for candidate in result.get("candidates", []):
        console.print(f"  • {candidate}")


def _print_hint(result: dict[str, Any]) -> None:
    if result.get("hint"):
        console.print(f"[dim]{result['hint']}[/dim]")


def _render_read(result: dict[str, Any]) -> None:
    if not result.get("success"):
        _print_error(result)
        _print_hint(result)
        return

    if result.get("type") == "file":
        content = result["content"]
        console.print(
            Panel(
                Text(content["text"]),
                title=result["path"],
                subtitle=f"{content['totalLines']} lines, checksum {content['checksum']}",
            )
        )
    elif result.get("type") == "directory":
        tree = result["tree"]
        table = Table(title=result["path"], show_header=True)
        table.add_column("Path")
        table.add_column("Kind")
        table.add_column("Size / Score", justify="right")
        for entry in tree["entries"]:
            detail = entry.get("size") or entry.get("score") or entry.get("children", "")
            table.add_row(entry["path"], entry["kind"], str(detail))
        console.print(table)
        console.print(f"[bold]{tree['summary']}[/bold]")
    else:
        for match in result.get("matches", []):
            console.print(f"[bold green]{match['file']}[/bold green]:{match['line']}:{match['column']}")
            context = match["context"]
            for line in context["before"] + context["match"] + context["after"]:
                console.print(f"  {line}", highlight=False, markup=False)

    _print_hint(result)


def _render_write(result: dict[str, Any]) -> None:
    if not result.get("success"):
        _print_error(result)
        _print_hint(result)
        return

    outcome = result.get("result", {})
    status = "[green]applied[/green]" if result.get("applied") else "[yellow]preview[/yellow]"
    console.print(f"[bold]{outcome.get('action')}[/bold] {result['path']} ({status})")

    diff = outcome.get("diff")
    if diff:
        console.print(Panel(Syntax(diff, "diff", theme="monokai"), title="Diff"))

    _print_hint(result)


def _emit(result: dict[str, Any], as_json: bool, renderer) -> None:
    if as_json:
        console.print_json(json.dumps(result))
    else:
        renderer(result)
    if not result.get("success"):
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--root",
    "-r",
    default=None,
    help="Workspace root (overrides AGENT_WORKSPACE_ROOT and the config file)",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Settings file (YAML or JSON)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, root: Optional[str], config_file: Optional[str], verbose: bool):
    """Agent Workspace CLI - sandboxed file access for AI agents."""
    try:
        settings = load_settings(config_file)
        setup_logging(verbose, settings.log_level)
        ctx.obj = {"tools": WorkspaceTools(settings.to_workspace_config(root=root))}
    except (ValidationError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)


@cli.command()
@click.argument("path", default=".")
@click.option("--pattern", "-p", default=None, help="Search content for this pattern")
@click.option(
    "--preset",
    type=click.Choice([p.value for p in Preset]),
    default=None,
    help="Search content with a preset pattern",
)
@click.option(
    "--mode",
    "-m",
    "pattern_mode",
    type=click.Choice([m.value for m in PatternMode]),
    default=None,
    help="Pattern mode (default: literal)",
)
@click.option("--find", "-f", default=None, help="Fuzzy find files by name")
@click.option("--lines", "-l", default=None, help='Line range, e.g. "10" or "10-50"')
@click.option("--depth", "-d", type=int, default=None, help="Traversal depth")
@click.option("--context", type=int, default=None, help="Context lines around matches")
@click.option("--ignore-case", "-i", is_flag=True, help="Case-insensitive search")
@click.option("--word", "-w", is_flag=True, help="Match whole words only")
@click.option("--multiline", is_flag=True, help="Let . match newlines")
@click.option("--exclude", "-x", multiple=True, help="Glob to exclude (repeatable)")
@click.option("--type", "-t", "types", multiple=True, help="File type or extension (repeatable)")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result")
@click.pass_context
def read(
    ctx: click.Context,
    path: str,
    pattern: Optional[str],
    preset: Optional[str],
    pattern_mode: Optional[str],
    find: Optional[str],
    lines: Optional[str],
    depth: Optional[int],
    context: Optional[int],
    ignore_case: bool,
    word: bool,
    multiline: bool,
    exclude: tuple[str, ...],
    types: tuple[str, ...],
    as_json: bool,
):
    """
    Read a file, list a directory, find files or search content.

    Examples:

        # List the workspace root
        agent-workspace read

        # Read lines 10-40 of a file
        agent-workspace read notes/todo.md -l 10-40

        # Fuzzy find files
        agent-workspace read . -f config

        # Search open tasks in Markdown files
        agent-workspace read . --preset tasks_open -t md
    """
    result = _run(
        ctx,
        "fs_read",
        {
            "path": path,
            "pattern": pattern,
            "preset": preset,
            "patternMode": pattern_mode,
            "find": find,
            "lines": lines,
            "depth": depth,
            "context": context,
            "caseInsensitive": ignore_case,
            "wholeWord": word,
            "multiline": multiline,
            "exclude": list(exclude),
            "types": list(types),
        },
    )
    _emit(result, as_json, _render_read)


@cli.command()
@click.argument("path")
@click.option(
    "--operation",
    "-o",
    type=click.Choice([o.value for o in Operation]),
    default=Operation.UPDATE.value,
    help="Write operation (default: update)",
)
@click.option(
    "--action",
    "-a",
    type=click.Choice([a.value for a in EditAction]),
    default=None,
    help="Update action",
)
@click.option("--content", default=None, help="Content to write")
@click.option(
    "--content-file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="Read content from a file ('-' for stdin)",
)
@click.option("--lines", "-l", default=None, help='Target lines, e.g. "10" or "10-15"')
@click.option("--pattern", "-p", default=None, help="Target content by pattern")
@click.option(
    "--mode",
    "-m",
    "pattern_mode",
    type=click.Choice([m.value for m in PatternMode]),
    default=None,
    help="Pattern mode (default: literal)",
)
@click.option("--replace-all", is_flag=True, help="Replace every pattern match")
@click.option("--ignore-case", "-i", is_flag=True, help="Case-insensitive pattern")
@click.option("--checksum", default=None, help="Checksum from a previous read")
@click.option("--dry-run", "-n", is_flag=True, help="Preview the change without applying it")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON result")
@click.pass_context
def write(
    ctx: click.Context,
    path: str,
    operation: str,
    action: Optional[str],
    content: Optional[str],
    content_file,
    lines: Optional[str],
    pattern: Optional[str],
    pattern_mode: Optional[str],
    replace_all: bool,
    ignore_case: bool,
    checksum: Optional[str],
    dry_run: bool,
    as_json: bool,
):
    """
    Create, update or delete a file.

    Examples:

        # Create a file
        agent-workspace write notes/new.md -o create --content "# New"

        # Preview replacing line 2
        agent-workspace write notes/new.md -a replace -l 2 --content "B" -n

        # Replace every occurrence of a word
        agent-workspace write src/app.py -a replace -p foo --content bar --replace-all
    """
    if content_file is not None:
        if content is not None:
            raise click.UsageError("Use either --content or --content-file, not both")
        content = content_file.read()

    result = _run(
        ctx,
        "fs_write",
        {
            "path": path,
            "operation": operation,
            "action": action,
            "content": content,
            "lines": lines,
            "pattern": pattern,
            "patternMode": pattern_mode,
            "replaceAll": replace_all,
            "caseInsensitive": ignore_case,
            "checksum": checksum,
            "dryRun": dry_run,
        },
    )
    _emit(result, as_json, _render_write)


@cli.command()
@click.pass_context
def schemas(ctx: click.Context):
    """Print the tool schemas (OpenAI function calling format)."""
    tools: WorkspaceTools = ctx.obj["tools"]
    console.print_json(json.dumps(tools.get_tool_schemas()))


@cli.command()
@click.pass_context
def info(ctx: click.Context):
    """Show the effective workspace configuration."""
    tools: WorkspaceTools = ctx.obj["tools"]
    table = Table(title="Workspace", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in tools.get_summary().items():
        table.add_row(key, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)


if __name__ == "__main__":
    cli()
