"""Rich console rendering of parse results, outlines and statistics."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from scriptlex.analyzers import Outline, SceneSummary, ScriptStatistics, SectionNode
from scriptlex.parser import Diagnostic, ElementKind, ParseResult, TitlePage

TEXT_PREVIEW_LENGTH = 50


def element_details(element: Any) -> str:
    """Short description of the kind-specific fields of an element."""
    parts: list[str] = []
    if element.is_forced:
        parts.append("forced")
    if getattr(element, "scene_number", None):
        parts.append(f"#{element.scene_number}")
    if element.kind == ElementKind.SECTION:
        parts.append(f"level {element.level}")
    if getattr(element, "extension", None):
        parts.append(element.extension)
    if getattr(element, "is_dual_dialogue", False):
        parts.append("dual")
    if getattr(element, "block_id", None) is not None:
        parts.append(f"block {element.block_id}")
    if element.emphasis_spans:
        parts.append(f"{len(element.emphasis_spans)} emphasis")
    return ", ".join(parts)


def element_rows(result: ParseResult) -> list[tuple[str, str, str, str]]:
    """Line label, kind, text preview and details of every element.

    Line labels are 1-based; multi-line elements show an inclusive range.
    """
    rows = []
    for element in result.elements:
        text = element.text.replace("\n", " / ")
        if len(text) > TEXT_PREVIEW_LENGTH:
            text = text[: TEXT_PREVIEW_LENGTH - 3] + "..."
        source = element.source_range
        line = (
            str(source.start + 1)
            if source.line_count == 1
            else f"{source.start + 1}-{source.end}"
        )
        rows.append((line, element.kind.value, text, element_details(element)))
    return rows


def _scene_label(scene: SceneSummary) -> str:
    label = f"[cyan]{scene.number}.[/cyan] {escape(scene.heading)}"
    if scene.synopsis:
        label += f" [dim]{escape(scene.synopsis)}[/dim]"
    return label


def _add_section(tree: Tree, node: SectionNode) -> None:
    label = f"[bold]{escape(node.title) or '(untitled section)'}[/bold]"
    if node.synopsis:
        label += f" [dim]{escape(node.synopsis)}[/dim]"
    branch = tree.add(label)
    for scene in node.scenes:
        branch.add(_scene_label(scene))
    for child in node.children:
        _add_section(branch, child)


def build_tree(outline: Outline) -> Tree:
    """Tree of sections with their scenes; scenes before any section come first."""
    tree = Tree(f"[bold magenta]{escape(outline.title or 'Untitled')}[/bold magenta]")
    for scene in outline.scenes:
        if not scene.section_path:
            tree.add(_scene_label(scene))
    for node in outline.sections:
        _add_section(tree, node)
    return tree


class ScreenplayFormatter:
    """Print screenplay results as rich tables and trees."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_summary(self, title: str, data: Mapping[str, Any]) -> None:
        """Print a two-column table of labelled values."""
        table = Table(title=title, show_header=False)
        table.add_column("Property", style="cyan")
        table.add_column("Value")
        for key, value in data.items():
            table.add_row(key.replace("_", " ").title(), escape(str(value)))
        self.console.print(table)

    def print_title_page(self, title_page: TitlePage) -> None:
        if title_page.entries:
            self.print_summary("Title Page", title_page.as_dict())

    def print_elements(self, result: ParseResult) -> None:
        if not result.elements:
            self.console.print("[yellow]No screenplay elements found[/yellow]")
            return
        table = Table(title="Elements", header_style="bold magenta")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Kind", style="cyan")
        table.add_column("Text")
        table.add_column("Details", style="green")
        for line, kind, text, details in element_rows(result):
            table.add_row(line, kind, escape(text), escape(details))
        self.console.print(table)

    def print_diagnostics(self, diagnostics: Sequence[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.console.print(
                f"[yellow]Line {diagnostic.line + 1}: {escape(diagnostic.message)} "
                f"({diagnostic.code.value})[/yellow]"
            )

    def print_parse_result(self, result: ParseResult) -> None:
        """Print the title page, the element table and the diagnostics."""
        self.print_title_page(result.title_page)
        self.print_elements(result)
        self.print_diagnostics(result.diagnostics)
        self.console.print(
            f"\n[green]✓[/green] {len(result.elements)} elements, "
            f"{len(result.dialogue_blocks)} dialogue blocks, "
            f"{len(result.diagnostics)} diagnostics"
        )

    def print_outline(self, outline: Outline) -> None:
        """Print the section tree and a table of speaking characters."""
        self.console.print(build_tree(outline))
        if not outline.characters:
            self.console.print("[dim]No speaking characters[/dim]")
            return
        table = Table(title="Characters", header_style="bold magenta")
        table.add_column("Character", style="cyan")
        table.add_column("Dialogue Blocks", justify="right")
        table.add_column("Scenes")
        for character in outline.characters:
            table.add_row(
                escape(character.name),
                str(character.dialogue_count),
                ", ".join(str(number) for number in character.scenes),
            )
        self.console.print(table)

    def print_statistics(self, stats: ScriptStatistics) -> None:
        """Print the counts, then the per-kind element counts."""
        summary = stats.to_dict()
        element_counts = summary.pop("element_counts")
        self.print_summary("Script Statistics", summary)
        if element_counts:
            self.print_summary("Elements", element_counts)
