"""
Flashdeck Visual Components.

Panels, tables and trees shared by the CLI commands and the learn
session presenter.
"""

from __future__ import annotations

from typing import Any

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.style import Style
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from src.core.models import FlashCard, FlashCardCollection, FullMindMap, MindMap
from src.learn.engine import CardState, LearnSessionEngine
from src.library.hierarchy import CollectionNode
from src.mindmap.graph import NodeTree
from src.utils.formatters import compact_number, format_date, signed, truncate

# =============================================================================
# THEME
# =============================================================================

FLASHDECK_THEME = {
    "primary": "#3B82F6",  # Blue - headers, card borders
    "success": "#10B981",  # Green - positive scores, remembered
    "warning": "#F59E0B",  # Amber - practice again
    "error": "#EF4444",  # Red - negative scores, failures
    "dim": "#6B7280",  # Gray - secondary text
}

STYLES = {
    "primary": Style(color=FLASHDECK_THEME["primary"], bold=True),
    "success": Style(color=FLASHDECK_THEME["success"], bold=True),
    "warning": Style(color=FLASHDECK_THEME["warning"], bold=True),
    "error": Style(color=FLASHDECK_THEME["error"], bold=True),
    "dim": Style(color=FLASHDECK_THEME["dim"]),
}


class Spinner:
    """
    Spinner for remote calls using Rich's console.status().

    Usage:
        with Spinner(console, "Loading session..."):
            await client.get_learn_session(...)
    """

    def __init__(self, console: Console, message: str = "Working..."):
        self.console = console
        self.message = message
        self._status = None

    def __enter__(self):
        self._status = self.console.status(f"[cyan]{self.message}[/cyan]", spinner="dots")
        self._status.__enter__()
        return self

    def __exit__(self, *args):
        if self._status:
            self._status.__exit__(*args)


def score_style(value: int) -> Style:
    return STYLES["success"] if value >= 0 else STYLES["error"]


# =============================================================================
# LEARN SESSION
# =============================================================================


def render_progress(engine: LearnSessionEngine) -> Group:
    """Remembered count over the session plus position in the current round."""
    header = Table.grid(expand=True)
    header.add_column(justify="left")
    header.add_column(justify="right")
    header.add_row(
        Text(f"Progress: {engine.remembered_count} / {engine.total} remembered", style=STYLES["dim"]),
        Text(
            f"Round {engine.round_number}: {engine.round_position} / {engine.round_size}",
            style=STYLES["dim"],
        ),
    )
    bar = ProgressBar(
        total=max(1, engine.total),
        completed=engine.remembered_count,
        complete_style=FLASHDECK_THEME["primary"],
    )
    return Group(header, bar)


def render_card_panel(card: CardState, revealed: bool = False) -> Panel:
    """The card being learned: term, and the definition once revealed."""
    text = Text(justify="center")
    text.append(f"\n{card.term}\n", style=Style(bold=True))
    if revealed:
        text.append(f"\n{card.definition}\n", style=Style(color=FLASHDECK_THEME["success"]))
    else:
        text.append("\n[press Enter to reveal]\n", style=STYLES["dim"])

    return Panel(
        text,
        title="[bold]Definition[/bold]" if revealed else "[bold]Term[/bold]",
        border_style=Style(color=FLASHDECK_THEME["primary"]),
        box=box.ROUNDED,
        padding=(1, 4),
    )


def render_score_help(score_range: int) -> Text:
    text = Text()
    text.append("Score ", style=STYLES["dim"])
    text.append(f"-{score_range}..-1", style=STYLES["error"])
    text.append(" / ", style=STYLES["dim"])
    text.append(f"+1..+{score_range}", style=STYLES["success"])
    text.append("   x = exit", style=STYLES["dim"])
    return text


def render_review_table(engine: LearnSessionEngine) -> Table:
    """Every card of the session with its accumulated score and status."""
    table = Table(title="Session Review", box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Term", style="bold")
    table.add_column("Definition")
    table.add_column("Score", justify="right")
    table.add_column("Learned", justify="right", style="dim")
    table.add_column("Status")

    for position, card in enumerate(engine.cards, start=1):
        status = (
            Text("✓ Remembered", style=STYLES["success"])
            if card.is_remembered
            else Text("↻ Practice again", style=STYLES["warning"])
        )
        table.add_row(
            str(position),
            truncate(card.term, 40),
            truncate(card.definition, 60),
            Text(signed(card.total_score_modification), style=score_style(card.total_score_modification)),
            str(card.times_learned),
            status,
        )
    return table


def render_review_help(engine: LearnSessionEngine) -> Text:
    text = Text()
    text.append("number", style=STYLES["primary"])
    text.append(" = toggle card   ", style=STYLES["dim"])
    if engine.can_continue:
        text.append("c", style=STYLES["primary"])
        text.append(f" = continue learning ({len(engine.pending_cards)} cards)   ", style=STYLES["dim"])
    text.append("e", style=STYLES["primary"])
    text.append(" = end session   ", style=STYLES["dim"])
    text.append("x", style=STYLES["primary"])
    text.append(" = exit without saving", style=STYLES["dim"])
    return text


def render_session_summary(submitted: int, total: int) -> Panel:
    text = Text()
    text.append("Session complete\n\n", style=STYLES["primary"])
    text.append(f"Cards learned: {total}\n", style=STYLES["success"])
    text.append(f"Score updates saved: {submitted}\n", style=STYLES["dim"])
    return Panel(
        text,
        title="[bold]Summary[/bold]",
        border_style=Style(color=FLASHDECK_THEME["success"]),
        box=box.HEAVY,
        padding=(1, 2),
    )


def render_error_panel(message: str) -> Panel:
    return Panel(
        Text(message, style=STYLES["error"]),
        title="[bold]Error[/bold]",
        border_style=Style(color=FLASHDECK_THEME["error"]),
        box=box.ROUNDED,
    )


# =============================================================================
# LIBRARY
# =============================================================================


def render_collection_tree(forest: list[CollectionNode]) -> Tree:
    tree = Tree("[bold]Collections[/bold]", guide_style="dim")

    def add(branch: Tree, node: CollectionNode) -> None:
        c = node.collection
        label = Text()
        label.append(f"{c.title}", style=STYLES["primary"])
        label.append(f"  #{c.id}", style=STYLES["dim"])
        label.append(f"  {compact_number(c.flash_card_count)} cards", style=STYLES["dim"])
        if c.description:
            label.append(f"\n{truncate(c.description, 70)}")
        child_branch = branch.add(label)
        for child in node.children:
            add(child_branch, child)

    for root in forest:
        add(tree, root)
    return tree


def render_collection_panel(collection: FlashCardCollection) -> Panel:
    body = Text()
    body.append(f"{collection.description or '(no description)'}\n\n")
    body.append(f"Cards: {collection.flash_card_count}   ", style=STYLES["dim"])
    body.append(f"Sub-collections: {collection.children_count}", style=STYLES["dim"])
    return Panel(body, title=f"[bold]{collection.title}[/bold] #{collection.id}", box=box.ROUNDED)


def render_flashcard_table(
    cards: list[FlashCard], page_number: int = 1, total_pages: int = 1, total_count: int | None = None
) -> Table:
    caption = f"Page {page_number} / {max(1, total_pages)}"
    if total_count is not None:
        caption += f"  ({total_count} cards)"
    table = Table(box=box.SIMPLE, caption=caption, expand=True)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Term", style="bold")
    table.add_column("Definition")
    table.add_column("Score", justify="right")
    for card in cards:
        table.add_row(
            str(card.id),
            truncate(card.term, 40),
            truncate(card.definition, 70),
            Text(str(card.score), style=score_style(card.score)),
        )
    return table


# =============================================================================
# MIND MAPS
# =============================================================================


def render_mindmap_table(mindmaps: list[MindMap]) -> Table:
    table = Table(title="Mind Maps", box=box.SIMPLE)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Description")
    table.add_column("Created", style="dim")
    for mindmap in mindmaps:
        created = format_date(mindmap.created_at) if mindmap.created_at else ""
        table.add_row(
            str(mindmap.id), mindmap.title, truncate(mindmap.description or "", 50), created
        )
    return table


def render_mindmap_tree(mindmap: FullMindMap, forest: list[NodeTree]) -> Tree:
    tree = Tree(f"[bold]{mindmap.title}[/bold]", guide_style="dim")

    def add(branch: Tree, subtree: NodeTree) -> None:
        node = subtree.node
        label = Text()
        label.append("● ", style=Style(color=node.color))
        label.append(node.label, style=Style(bold=True))
        if node.flash_card is not None:
            label.append(f"  {truncate(node.flash_card.definition, 50)}", style=STYLES["dim"])
        label.append(f"  [node {node.id}]", style=STYLES["dim"])
        if node.hide_children:
            label.append("  (collapsed)", style=STYLES["warning"])
        child_branch = branch.add(label)
        for child in subtree.children:
            add(child_branch, child)

    for root in forest:
        add(tree, root)
    return tree


# =============================================================================
# ANALYTICS
# =============================================================================


def render_key_value_table(title: str, data: dict[str, Any]) -> Table:
    """Flat view of an analytics payload; nested lists are summarized."""
    table = Table(title=title, box=box.SIMPLE, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    for key, value in data.items():
        if isinstance(value, list):
            shown = f"{len(value)} entries"
        elif isinstance(value, dict):
            shown = ", ".join(f"{k}={v}" for k, v in value.items())
        elif isinstance(value, float):
            shown = f"{value:.2f}"
        elif isinstance(value, int) and not isinstance(value, bool):
            shown = compact_number(value)
        else:
            shown = str(value)
        table.add_row(key, shown)
    return table
