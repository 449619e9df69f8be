"""Click CLI entry point for PromptShelf.

Provides `promptshelf analyze` for one-off analysis plus the `prompt`,
`project` and `category` command groups that manage the library.
"""

from __future__ import annotations

import functools
import logging
import sys
from dataclasses import replace
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from promptshelf import __version__
from promptshelf.analyzer import analyze, suggest
from promptshelf.config import load_config
from promptshelf.errors import LibraryError
from promptshelf.library import Library
from promptshelf.models import DEFAULT_COLOR
from promptshelf.reporter import (
    render_json,
    render_markdown,
    render_project_table,
    render_prompt_detail,
    render_prompt_table,
    render_text,
)
from promptshelf.storage import open_backend

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _read_text(text: Optional[str], file: Optional[str]) -> str:
    """Resolve text from the argument, a file, or stdin."""
    if text is not None:
        return text

    if file:
        try:
            with open(file, "r", encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            console.print(f"[red]Error:[/] File not found: {escape(file)}")
            raise SystemExit(1)
        except OSError as e:
            console.print(f"[red]Error:[/] Could not read file: {escape(str(e))}")
            raise SystemExit(1)

    # Try reading from stdin (piped input)
    if not sys.stdin.isatty():
        return sys.stdin.read()

    console.print("[red]Error:[/] No prompt provided.")
    console.print("Pass the text as an argument, use --file, or pipe via stdin.")
    console.print()
    console.print('  promptshelf analyze "Your prompt here"')
    console.print("  promptshelf analyze --file prompt.txt")
    console.print('  echo "Your prompt" | promptshelf analyze')
    raise SystemExit(1)


def _reports_errors(func):
    """Turn LibraryError into a red console message and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except LibraryError as e:
            logger.debug("Command failed", exc_info=True)
            console.print(f"[red]Error:[/] {escape(str(e))}")
            raise SystemExit(1)

    return wrapper


def _library(ctx: click.Context) -> Library:
    """Open the configured library the first time a command needs it."""
    obj = ctx.ensure_object(dict)
    if "library" not in obj:
        obj["library"] = Library(open_backend(load_config()))
    return obj["library"]


def _print_analysis(content: str, output_json: bool, output_md: bool, show_all: bool) -> None:
    result = analyze(content)
    if show_all:
        result = replace(result, suggestions=tuple(suggest(content)))

    if output_json:
        click.echo(render_json(result))
    elif output_md:
        click.echo(render_markdown(result))
    else:
        render_text(result, console=console)


@click.group()
@click.version_option(version=__version__, prog_name="promptshelf")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """PromptShelf -- Organize, search and improve your prompts."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------

@cli.command("analyze")
@click.argument("prompt_text", required=False, default=None)
@click.option("--file", "-f", type=str, help="Read prompt from a file.")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@click.option("--markdown", "output_md", is_flag=True, help="Output results as Markdown.")
@click.option("--all", "show_all", is_flag=True, help="Show every suggestion, not a sample of six.")
def analyze_cmd(
    prompt_text: Optional[str],
    file: Optional[str],
    output_json: bool,
    output_md: bool,
    show_all: bool,
) -> None:
    """Analyze prompt text and get improvement suggestions.

    \b
    Examples:
        promptshelf analyze "Write me something about dogs"
        promptshelf analyze --file my_prompt.txt
        echo "Fix my code" | promptshelf analyze --markdown
    """
    text = _read_text(prompt_text, file)
    _print_analysis(text, output_json, output_md, show_all)


# ---------------------------------------------------------------------------
# prompt
# ---------------------------------------------------------------------------

@cli.group()
def prompt() -> None:
    """Create, find and use stored prompts."""


@prompt.command("add")
@click.argument("title")
@click.option("--content", "-c", type=str, help="Prompt text (otherwise --file or stdin).")
@click.option("--file", "-f", type=str, help="Read prompt text from a file.")
@click.option("--project", "-p", "project_ref", required=True, help="Project name or id.")
@click.option("--category", "category_ref", help="Category name or id within the project.")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable).")
@click.option("--analyze", "show_analysis", is_flag=True, help="Show an analysis after saving.")
@click.pass_context
@_reports_errors
def prompt_add(
    ctx: click.Context,
    title: str,
    content: Optional[str],
    file: Optional[str],
    project_ref: str,
    category_ref: Optional[str],
    tags: tuple[str, ...],
    show_analysis: bool,
) -> None:
    """Save a new prompt."""
    lib = _library(ctx)
    text = _read_text(content, file)
    project = lib.get_project(project_ref)
    category = lib.get_category(category_ref, project.id) if category_ref else None

    saved = lib.add_prompt(
        title,
        text,
        project.id,
        category_id=category.id if category else None,
        tags=tags,
    )
    console.print(f"[green]Saved[/] [bold]{escape(saved.title)}[/] [dim]({saved.id})[/]")
    if show_analysis:
        render_text(analyze(saved.content), console=console)


@prompt.command("list")
@click.argument("query", required=False, default="")
@click.option("--project", "-p", "project_ref", help="Only prompts in this project.")
@click.option("--category", "category_ref", help="Only prompts in this category.")
@click.option("--tag", "-t", help="Only prompts with this tag.")
@click.option("--favorites", is_flag=True, help="Only favorite prompts.")
@click.pass_context
@_reports_errors
def prompt_list(
    ctx: click.Context,
    query: str,
    project_ref: Optional[str],
    category_ref: Optional[str],
    tag: Optional[str],
    favorites: bool,
) -> None:
    """List prompts, optionally filtered by a search QUERY."""
    lib = _library(ctx)
    project = lib.get_project(project_ref) if project_ref else None
    category = (
        lib.get_category(category_ref, project.id if project else None)
        if category_ref
        else None
    )
    found = lib.search(
        query,
        project_id=project.id if project else None,
        category_id=category.id if category else None,
        favorites_only=favorites,
        tag=tag,
    )
    title = "Favorite Prompts" if favorites else "Prompts"
    render_prompt_table(
        found, lib.list_projects(), lib.list_categories(), console=console, title=title
    )


@prompt.command("show")
@click.argument("prompt_id")
@click.pass_context
@_reports_errors
def prompt_show(ctx: click.Context, prompt_id: str) -> None:
    """Show a prompt with its metadata."""
    lib = _library(ctx)
    found = lib.get_prompt(prompt_id)
    project = next((p for p in lib.list_projects() if p.id == found.project_id), None)
    category = next(
        (c for c in lib.list_categories() if c.id == found.category_id), None
    )
    render_prompt_detail(found, project, category, console=console)


@prompt.command("edit")
@click.argument("prompt_id")
@click.option("--title", type=str, help="New title.")
@click.option("--content", "-c", type=str, help="New prompt text.")
@click.option("--file", "-f", type=str, help="Read new prompt text from a file.")
@click.option("--project", "-p", "project_ref", help="Move to this project.")
@click.option("--category", "category_ref", help="Move to this category.")
@click.option("--no-category", is_flag=True, help="Remove the prompt from its category.")
@click.option("--tag", "-t", "tags", multiple=True, help="Replace tags (repeatable).")
@click.pass_context
@_reports_errors
def prompt_edit(
    ctx: click.Context,
    prompt_id: str,
    title: Optional[str],
    content: Optional[str],
    file: Optional[str],
    project_ref: Optional[str],
    category_ref: Optional[str],
    no_category: bool,
    tags: tuple[str, ...],
) -> None:
    """Edit a prompt. Each edit creates a new version."""
    lib = _library(ctx)
    current = lib.get_prompt(prompt_id)
    project_id = lib.get_project(project_ref).id if project_ref else None

    kwargs = {}
    if category_ref:
        kwargs["category_id"] = lib.get_category(
            category_ref, project_id or current.project_id
        ).id
    elif no_category:
        kwargs["category_id"] = None

    if file:
        content = _read_text(None, file)

    updated = lib.update_prompt(
        current.id,
        title=title,
        content=content,
        project_id=project_id,
        tags=list(tags) if tags else None,
        **kwargs,
    )
    console.print(
        f"[green]Updated[/] [bold]{escape(updated.title)}[/] to v{updated.version}"
    )


@prompt.command("delete")
@click.argument("prompt_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@_reports_errors
def prompt_delete(ctx: click.Context, prompt_id: str, yes: bool) -> None:
    """Delete a prompt."""
    lib = _library(ctx)
    found = lib.get_prompt(prompt_id)
    if not yes:
        click.confirm(f"Delete prompt '{found.title}'?", abort=True)
    lib.delete_prompt(found.id)
    console.print(f"[green]Deleted[/] {escape(found.title)}")


@prompt.command("favorite")
@click.argument("prompt_id")
@click.pass_context
@_reports_errors
def prompt_favorite(ctx: click.Context, prompt_id: str) -> None:
    """Toggle a prompt's favorite flag."""
    updated = _library(ctx).toggle_favorite(prompt_id)
    state = "added to" if updated.is_favorite else "removed from"
    console.print(f"[bold]{escape(updated.title)}[/] {state} favorites")


@prompt.command("use")
@click.argument("prompt_id")
@click.pass_context
@_reports_errors
def prompt_use(ctx: click.Context, prompt_id: str) -> None:
    """Print a prompt's raw text and count the use."""
    used = _library(ctx).record_use(prompt_id)
    click.echo(used.content)


@prompt.command("analyze")
@click.argument("prompt_id")
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON.")
@click.option("--markdown", "output_md", is_flag=True, help="Output results as Markdown.")
@click.option("--all", "show_all", is_flag=True, help="Show every suggestion, not a sample of six.")
@click.pass_context
@_reports_errors
def prompt_analyze(
    ctx: click.Context,
    prompt_id: str,
    output_json: bool,
    output_md: bool,
    show_all: bool,
) -> None:
    """Analyze a stored prompt."""
    found = _library(ctx).get_prompt(prompt_id)
    _print_analysis(found.content, output_json, output_md, show_all)


# ---------------------------------------------------------------------------
# project
# ---------------------------------------------------------------------------

@cli.group()
def project() -> None:
    """Manage projects."""


@project.command("add")
@click.argument("name")
@click.option("--description", "-d", default="", help="Short description.")
@click.option("--color", default=DEFAULT_COLOR, show_default=True, help="Hex colour.")
@click.pass_context
@_reports_errors
def project_add(ctx: click.Context, name: str, description: str, color: str) -> None:
    """Create a project."""
    created = _library(ctx).add_project(name, description=description, color=color)
    console.print(f"[green]Created project[/] [bold]{escape(created.name)}[/] [dim]({created.id})[/]")


@project.command("list")
@click.pass_context
@_reports_errors
def project_list(ctx: click.Context) -> None:
    """List projects with their categories and prompt counts."""
    lib = _library(ctx)
    counts: dict[str, int] = {}
    for p in lib.search():
        counts[p.project_id] = counts.get(p.project_id, 0) + 1
    render_project_table(lib.list_projects(), lib.list_categories(), counts, console=console)


@project.command("edit")
@click.argument("project_ref")
@click.option("--name", type=str, help="New name.")
@click.option("--description", "-d", type=str, help="New description.")
@click.option("--color", type=str, help="New hex colour.")
@click.pass_context
@_reports_errors
def project_edit(
    ctx: click.Context,
    project_ref: str,
    name: Optional[str],
    description: Optional[str],
    color: Optional[str],
) -> None:
    """Rename or recolour a project. Its prompts stay attached."""
    lib = _library(ctx)
    found = lib.get_project(project_ref)
    updated = lib.update_project(found.id, name=name, description=description, color=color)
    console.print(f"[green]Updated project[/] [bold]{escape(updated.name)}[/]")


@project.command("delete")
@click.argument("project_ref")
@click.option("--force", is_flag=True, help="Also delete the project's prompts.")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@_reports_errors
def project_delete(ctx: click.Context, project_ref: str, force: bool, yes: bool) -> None:
    """Delete a project and its categories."""
    lib = _library(ctx)
    found = lib.get_project(project_ref)
    if not yes:
        click.confirm(f"Delete project '{found.name}'?", abort=True)
    removed = lib.delete_project(found.id, force=force)
    console.print(f"[green]Deleted project[/] {escape(found.name)} ({removed} prompt(s) removed)")


# ---------------------------------------------------------------------------
# category
# ---------------------------------------------------------------------------

@cli.group()
def category() -> None:
    """Manage categories within projects."""


@category.command("add")
@click.argument("project_ref")
@click.argument("name")
@click.option("--description", "-d", default="", help="Short description.")
@click.pass_context
@_reports_errors
def category_add(ctx: click.Context, project_ref: str, name: str, description: str) -> None:
    """Create a category NAME inside PROJECT_REF."""
    lib = _library(ctx)
    owner = lib.get_project(project_ref)
    created = lib.add_category(owner.id, name, description=description)
    console.print(
        f"[green]Created category[/] [bold]{escape(created.name)}[/] in {escape(owner.name)} "
        f"[dim]({created.id})[/]"
    )


@category.command("list")
@click.option("--project", "-p", "project_ref", help="Only categories in this project.")
@click.pass_context
@_reports_errors
def category_list(ctx: click.Context, project_ref: Optional[str]) -> None:
    """List categories."""
    lib = _library(ctx)
    owner = lib.get_project(project_ref) if project_ref else None
    categories = lib.list_categories(owner.id if owner else None)
    if not categories:
        console.print("[dim]No categories yet.[/]")
        return
    names = {p.id: p.name for p in lib.list_projects()}
    for c in categories:
        owner_name = escape(names.get(c.project_id, "?"))
        line = f"  [dim]{c.id[:8]}[/]  [bold]{escape(c.name)}[/]  ({owner_name})"
        if c.description:
            line += f"  [dim]{escape(c.description)}[/]"
        console.print(line)


@category.command("delete")
@click.argument("category_ref")
@click.option("--project", "-p", "project_ref", help="Project the category belongs to.")
@click.pass_context
@_reports_errors
def category_delete(ctx: click.Context, category_ref: str, project_ref: Optional[str]) -> None:
    """Delete a category. Its prompts are kept without a category."""
    lib = _library(ctx)
    owner = lib.get_project(project_ref) if project_ref else None
    found = lib.get_category(category_ref, owner.id if owner else None)
    detached = lib.delete_category(found.id)
    console.print(f"[green]Deleted category[/] {escape(found.name)} ({detached} prompt(s) detached)")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
