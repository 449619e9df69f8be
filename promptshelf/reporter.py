"""Output formatting for analysis results and library listings.

Analysis results support three output modes:
    - text     Rich terminal output with colors and tables
    - json     Machine-readable JSON
    - markdown Markdown-formatted report (good for pasting into docs)

Library listings are rendered as Rich tables only.
"""

from __future__ import annotations

import json
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from promptshelf.analyzer import AnalysisResult
from promptshelf.models import Category, Project, Prompt

_CATEGORY_ICONS = {
    "clarity": "👁️",
    "specificity": "🎯",
    "structure": "🏗️",
    "context": "📚",
    "tone": "🎭",
}
_DEFAULT_ICON = "💡"

_PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}
_DEFAULT_STYLE = "white"


def _value(member) -> str:
    """Accept either an Enum member or its plain string value."""
    return getattr(member, "value", member)


def suggestion_icon(category) -> str:
    """Return the display glyph for a suggestion category."""
    return _CATEGORY_ICONS.get(_value(category), _DEFAULT_ICON)


def priority_style(priority) -> str:
    """Return the Rich style used to show a suggestion priority."""
    return _PRIORITY_STYLES.get(_value(priority), _DEFAULT_STYLE)


def _readability_color(score: int) -> str:
    if score >= 60:
        return "green"
    if score >= 40:
        return "yellow"
    if score >= 20:
        return "dark_orange"
    return "red"


# ---------------------------------------------------------------------------
# Rich (text) output
# ---------------------------------------------------------------------------

def render_text(
    result: AnalysisResult,
    console: Optional[Console] = None,
    title: str = "Prompt Analysis",
) -> None:
    """Print a formatted analysis report to the terminal using Rich."""
    if console is None:
        console = Console()

    console.print()
    console.print(
        Panel(
            Text(title, style="bold cyan", justify="center"),
            border_style="cyan",
        )
    )
    console.print()

    color = _readability_color(result.readability_score)
    console.print(
        f"  [dim]Words:[/] {result.word_count}    "
        f"[dim]Characters:[/] {result.character_count}    "
        f"[dim]Est. tokens:[/] {result.estimated_tokens}"
    )
    console.print(
        f"  [bold]Readability:[/] [{color} bold]{result.readability_score}/100[/] "
        f"({result.readability_label})"
    )
    console.print()

    if not result.suggestions:
        console.print("  [green]No suggestions -- nothing to improve here.[/]")
        console.print()
        return

    table = Table(title="Suggestions", show_header=True, header_style="bold cyan")
    table.add_column("", min_width=2)
    table.add_column("Category", style="bold", min_width=11)
    table.add_column("Priority", justify="center", min_width=8)
    table.add_column("Suggestion", min_width=40)

    for s in result.suggestions:
        style = priority_style(s.priority)
        table.add_row(
            suggestion_icon(s.category),
            s.category.value,
            f"[{style}]{s.priority.value.upper()}[/]",
            s.message,
        )

    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# JSON output
# ---------------------------------------------------------------------------

def result_to_dict(result: AnalysisResult) -> dict:
    return {
        "word_count": result.word_count,
        "character_count": result.character_count,
        "estimated_tokens": result.estimated_tokens,
        "readability_score": result.readability_score,
        "suggestions": [
            {
                "rule": s.rule,
                "category": s.category.value,
                "priority": s.priority.value,
                "message": s.message,
            }
            for s in result.suggestions
        ],
    }


def render_json(result: AnalysisResult) -> str:
    """Return the analysis as a JSON string."""
    return json.dumps(result_to_dict(result), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Markdown output
# ---------------------------------------------------------------------------

def render_markdown(result: AnalysisResult, title: str = "Prompt Analysis") -> str:
    """Return the analysis as a Markdown-formatted string."""
    lines: list[str] = []

    lines.append(f"# {title}")
    lines.append("")
    lines.append(
        f"**Words:** {result.word_count} | **Characters:** {result.character_count} "
        f"| **Est. tokens:** {result.estimated_tokens}"
    )
    lines.append("")
    lines.append(
        f"## Readability: {result.readability_score}/100 ({result.readability_label})"
    )
    lines.append("")

    if result.suggestions:
        lines.append("## Suggestions")
        lines.append("")
        lines.append("| Category | Priority | Suggestion |")
        lines.append("|----------|----------|------------|")
        for s in result.suggestions:
            lines.append(
                f"| {suggestion_icon(s.category)} {s.category.value} "
                f"| {s.priority.value} | {s.message} |"
            )
        lines.append("")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Library listings
# ---------------------------------------------------------------------------

def _short_id(record_id: str) -> str:
    return record_id[:8]


def _tag_summary(tags: Sequence[str], limit: int = 2) -> str:
    shown = ", ".join(tags[:limit])
    if len(tags) > limit:
        shown += f" +{len(tags) - limit}"
    return shown


def render_prompt_table(
    prompts: Sequence[Prompt],
    projects: Sequence[Project],
    categories: Sequence[Category],
    console: Optional[Console] = None,
    title: str = "Prompts",
) -> None:
    """Print prompts as a table with their project, category and usage."""
    if console is None:
        console = Console()

    if not prompts:
        console.print("[dim]No prompts found.[/]")
        return

    project_by_id = {p.id: p for p in projects}
    category_by_id = {c.id: c for c in categories}

    table = Table(
        title=f"{title} ({len(prompts)})", show_header=True, header_style="bold cyan"
    )
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("", min_width=1)
    table.add_column("Title", style="bold", no_wrap=True)
    table.add_column("Project", no_wrap=True)
    table.add_column("Category")
    table.add_column("Tags")
    table.add_column("Ver", justify="right")
    table.add_column("Used", justify="right")
    table.add_column("Updated", no_wrap=True)

    for prompt in prompts:
        project = project_by_id.get(prompt.project_id)
        category = category_by_id.get(prompt.category_id) if prompt.category_id else None
        project_cell = (
            f"[{project.color}]{escape(project.name)}[/]" if project else "[red]?[/]"
        )
        table.add_row(
            _short_id(prompt.id),
            "[yellow]★[/]" if prompt.is_favorite else "",
            Text(prompt.title),
            project_cell,
            Text(category.name) if category else "",
            Text(_tag_summary(prompt.tags)),
            f"v{prompt.version}",
            str(prompt.usage_count),
            prompt.updated_at.strftime("%Y-%m-%d"),
        )

    console.print(table)


def render_prompt_detail(
    prompt: Prompt,
    project: Optional[Project],
    category: Optional[Category],
    console: Optional[Console] = None,
) -> None:
    """Print one prompt with its full content and metadata."""
    if console is None:
        console = Console()

    star = " [yellow]★[/]" if prompt.is_favorite else ""
    location = escape(project.name) if project else "?"
    if category:
        location += f" / {escape(category.name)}"

    console.print()
    console.print(f"[bold]{escape(prompt.title)}[/]{star}  [dim]{prompt.id}[/]")
    console.print(
        f"  [dim]Project:[/] {location}    [dim]Version:[/] v{prompt.version}    "
        f"[dim]Used:[/] {prompt.usage_count} times"
    )
    console.print(
        f"  [dim]Created:[/] {prompt.created_at:%Y-%m-%d %H:%M}    "
        f"[dim]Updated:[/] {prompt.updated_at:%Y-%m-%d %H:%M}"
    )
    if prompt.tags:
        console.print(f"  [dim]Tags:[/] {escape(', '.join(prompt.tags))}")
    console.print()
    console.print(Panel(Text(prompt.content), title="Content", border_style="dim"))
    console.print()


def render_project_table(
    projects: Sequence[Project],
    categories: Sequence[Category],
    prompt_counts: dict[str, int],
    console: Optional[Console] = None,
) -> None:
    """Print projects with their categories and prompt counts."""
    if console is None:
        console = Console()

    if not projects:
        console.print("[dim]No projects yet.[/]")
        return

    table = Table(title="Projects", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="bold")
    table.add_column("Description")
    table.add_column("Categories")
    table.add_column("Prompts", justify="right")

    for project in projects:
        names = [c.name for c in categories if c.project_id == project.id]
        table.add_row(
            _short_id(project.id),
            f"[{project.color}]■[/] {escape(project.name)}",
            Text(project.description),
            Text(", ".join(names)),
            str(prompt_counts.get(project.id, 0)),
        )

    console.print(table)
