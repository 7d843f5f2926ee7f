"""
Typer CLI for flashdeck.

Commands:
    flashdeck auth login               - Sign in and print the token to export
    flashdeck auth register            - Create an account
    flashdeck auth whoami              - Show the signed-in user
    flashdeck auth refresh             - Exchange the token for a fresh one
    flashdeck status                   - Show configuration and API reachability
    flashdeck collections list         - Show the collection tree
    flashdeck collections create       - Create a (sub-)collection
    flashdeck collections update ID    - Rename / move / describe a collection
    flashdeck collections delete ID    - Delete a collection
    flashdeck cards list ID            - Page through a collection's cards
    flashdeck cards add ID             - Add a card
    flashdeck cards edit ID CARD       - Edit a card
    flashdeck cards flip ID            - Swap term and definition
    flashdeck cards delete CARD...     - Delete cards
    flashdeck learn ID                 - Run a learn session
    flashdeck mindmap ...              - Manage mind maps and their nodes
    flashdeck analytics ...            - Show learning analytics

Usage:
    flashdeck --help
    flashdeck collections list
    flashdeck learn 12 --count 15
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar

import typer
from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, Prompt

from config import Settings, get_settings
from src.core.errors import FlashdeckError
from src.core.models import (
    CollectionCreate,
    CollectionUpdate,
    FlashCard,
    MindMapCreate,
    MindMapNodeCreate,
    MindMapNodeUpdate,
    MindMapUpdate,
)
from src.core.platform_client import FlashdeckClient
from src.delivery import visuals as ui
from src.delivery.learn_presenter import LearnPresenter
from src.learn.collaborators import ApiCardSource, ApiScoreSink
from src.learn.engine import LearnSessionEngine
from src.library.editor import CardEditBuffer
from src.library.hierarchy import build_tree
from src.mindmap.graph import COLOR_PRESETS, build_forest, new_node_position

T = TypeVar("T")

app = typer.Typer(
    name="flashdeck",
    help="Flashdeck - flashcard collections, learn sessions and mind maps from the terminal",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
auth_app = typer.Typer(help="Sign in and account details")
collections_app = typer.Typer(help="Manage flashcard collections")
cards_app = typer.Typer(help="Manage the cards of a collection")
mindmap_app = typer.Typer(help="Manage mind maps and their nodes")
analytics_app = typer.Typer(help="Learning analytics")

app.add_typer(auth_app, name="auth")
app.add_typer(collections_app, name="collections")
app.add_typer(cards_app, name="cards")
app.add_typer(mindmap_app, name="mindmap")
app.add_typer(analytics_app, name="analytics")

console = Console()


# ========================================
# Helpers
# ========================================


def _client(settings: Settings) -> FlashdeckClient:
    return FlashdeckClient(settings.get_api_config())


def _run(
    action: Callable[[FlashdeckClient], Awaitable[T]],
    settings: Settings | None = None,
) -> T:
    """Open a client, run one async action, and report API failures."""
    settings = settings or get_settings()

    async def runner() -> T:
        async with _client(settings) as client:
            return await action(client)

    try:
        return asyncio.run(runner())
    except FlashdeckError as e:
        logger.debug(f"Command failed: {e!r}")
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _require_user(settings: Settings) -> int:
    if settings.user_id is None:
        console.print("[red]No user configured. Run 'flashdeck auth login' and export FLASHDECK_USER_ID.[/red]")
        raise typer.Exit(code=1)
    return settings.user_id


def _require_token(settings: Settings) -> None:
    if not settings.has_credentials():
        console.print("[red]No token configured. Run 'flashdeck auth login' and export FLASHDECK_API_TOKEN.[/red]")
        raise typer.Exit(code=1)


# ========================================
# Auth
# ========================================


@auth_app.command("login")
def auth_login(
    username: Annotated[str, typer.Option("--username", "-u", prompt=True)],
    password: Annotated[str, typer.Option("--password", "-p", prompt=True, hide_input=True)],
) -> None:
    """Sign in and print the environment variables to export."""
    auth = _run(lambda client: client.login(username, password))
    console.print(f"[green]✓ Signed in as {auth.username}[/green]")
    console.print(f"export FLASHDECK_API_TOKEN={auth.token}")
    console.print(f"export FLASHDECK_USER_ID={auth.user_id}")


@auth_app.command("register")
def auth_register(
    username: Annotated[str, typer.Option("--username", "-u", prompt=True)],
    email: Annotated[str, typer.Option("--email", "-e", prompt=True)],
    password: Annotated[
        str, typer.Option("--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True)
    ],
) -> None:
    """Create an account."""
    auth = _run(lambda client: client.register(username, email, password))
    console.print(f"[green]✓ Registered {auth.username}[/green]")
    console.print(f"export FLASHDECK_API_TOKEN={auth.token}")
    console.print(f"export FLASHDECK_USER_ID={auth.user_id}")


@auth_app.command("whoami")
def auth_whoami() -> None:
    """Show the user the configured token belongs to."""
    settings = get_settings()
    _require_token(settings)
    user = _run(lambda client: client.get_current_user(), settings)
    console.print(f"[bold]{user.username}[/bold] <{user.email}> role={user.role} id={user.id}")


@auth_app.command("refresh")
def auth_refresh() -> None:
    """Exchange the configured token for a fresh one."""
    settings = get_settings()
    _require_token(settings)
    auth = _run(lambda client: client.refresh_token(), settings)
    console.print("[green]✓ Token refreshed[/green]")
    console.print(f"export FLASHDECK_API_TOKEN={auth.token}")


# ========================================
# Status
# ========================================


@app.command("status")
def status() -> None:
    """Show the configured API, credentials, and whether the API answers."""
    settings = get_settings()
    reachable = _run(lambda client: client.health_check(), settings)
    rows = {
        "API": settings.api_base_url,
        "Token": "configured" if settings.has_credentials() else "not configured",
        "User": str(settings.user_id) if settings.user_id is not None else "not configured",
        "Reachable": "yes" if reachable else "no",
    }
    console.print(ui.render_key_value_table("Flashdeck status", rows))
    if not reachable:
        console.print(f"[red]✗ Cannot reach {settings.api_base_url}[/red]")
        raise typer.Exit(code=1)


# ========================================
# Collections
# ========================================


@collections_app.command("list")
def collections_list() -> None:
    """Show all collections as a tree."""
    settings = get_settings()
    user_id = _require_user(settings)
    collections = _run(lambda client: client.get_collections(user_id), settings)
    if not collections:
        console.print("[yellow]No collections yet. Create one with 'flashdeck collections create'.[/yellow]")
        return
    console.print(ui.render_collection_tree(build_tree(collections)))


@collections_app.command("show")
def collections_show(collection_id: Annotated[int, typer.Argument(help="Collection ID")]) -> None:
    """Show one collection."""
    collection = _run(lambda client: client.get_collection(collection_id))
    console.print(ui.render_collection_panel(collection))


@collections_app.command("create")
def collections_create(
    title: Annotated[str, typer.Argument(help="Collection title")],
    description: Annotated[str, typer.Option("--description", "-d")] = "",
    parent: Annotated[int | None, typer.Option("--parent", "-p", help="Parent collection ID")] = None,
) -> None:
    """Create a collection, optionally inside another one."""
    settings = get_settings()
    user_id = _require_user(settings)
    if not title.strip():
        console.print("[red]Title cannot be empty.[/red]")
        raise typer.Exit(code=1)

    dto = CollectionCreate(user_id=user_id, parent_id=parent or 0, title=title, description=description)
    created = _run(lambda client: client.create_collection(dto), settings)
    console.print(f"[green]✓ Created collection '{created.title}' (#{created.id})[/green]")


@collections_app.command("update")
def collections_update(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    title: Annotated[str | None, typer.Option("--title", "-t")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
    parent: Annotated[int | None, typer.Option("--parent", "-p", help="New parent (0 for root)")] = None,
) -> None:
    """Change a collection's title, description or parent."""
    if title is not None and not title.strip():
        console.print("[red]Title cannot be empty.[/red]")
        raise typer.Exit(code=1)
    dto = CollectionUpdate(title=title, description=description, parent_id=parent)
    updated = _run(lambda client: client.update_collection(collection_id, dto))
    console.print(f"[green]✓ Updated collection '{updated.title}'[/green]")


@collections_app.command("delete")
def collections_delete(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a collection."""
    if not yes and not Confirm.ask(f"Delete collection #{collection_id}?", console=console):
        raise typer.Exit()
    _run(lambda client: client.delete_collection(collection_id))
    console.print(f"[green]✓ Deleted collection #{collection_id}[/green]")


# ========================================
# Cards
# ========================================


@cards_app.command("list")
def cards_list(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    page: Annotated[int, typer.Option("--page", min=1)] = 1,
    page_size: Annotated[int, typer.Option("--page-size", min=1, max=100)] = 10,
    search: Annotated[str | None, typer.Option("--search", "-s")] = None,
) -> None:
    """List one page of cards."""
    result = _run(lambda client: client.get_flashcards(collection_id, page, page_size, search))
    if not result.flash_cards:
        console.print("[yellow]No flashcards found.[/yellow]")
        return
    console.print(
        ui.render_flashcard_table(result.flash_cards, page, result.total_pages, result.total_count)
    )


@cards_app.command("add")
def cards_add(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    term: Annotated[str, typer.Option("--term", "-t", prompt=True)],
    definition: Annotated[str, typer.Option("--definition", "-d", prompt=True)],
) -> None:
    """Add a card to a collection."""
    buffer = CardEditBuffer(collection_id, [])
    buffer.add(term, definition)
    _run(lambda client: client.bulk_update_flashcards(collection_id, buffer.changed()))
    console.print(f"[green]✓ Added '{term}'[/green]")


async def _find_card_page(
    client: FlashdeckClient, collection_id: int, card_id: int, page_size: int = 100
) -> list[FlashCard]:
    """Walk the pages of a collection until the page holding ``card_id`` is found."""
    page = 1
    while True:
        result = await client.get_flashcards(collection_id, page, page_size)
        if any(card.id == card_id for card in result.flash_cards):
            return result.flash_cards
        if page >= result.total_pages or not result.flash_cards:
            raise FlashdeckError(f"Card {card_id} not found in collection {collection_id}")
        page += 1


@cards_app.command("edit")
def cards_edit(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    card_id: Annotated[int, typer.Argument(help="Card ID")],
    term: Annotated[str | None, typer.Option("--term", "-t")] = None,
    definition: Annotated[str | None, typer.Option("--definition", "-d")] = None,
    score: Annotated[int | None, typer.Option("--score")] = None,
) -> None:
    """Change a card's term, definition or score."""

    async def edit(client: FlashdeckClient) -> int:
        buffer = CardEditBuffer(collection_id, await _find_card_page(client, collection_id, card_id))
        buffer.update(card_id, term=term, definition=definition, score=score)
        changed = buffer.changed()
        if changed:
            await client.bulk_update_flashcards(collection_id, changed)
        return len(changed)

    if _run(edit):
        console.print(f"[green]✓ Updated card #{card_id}[/green]")
    else:
        console.print("[yellow]No changes to save.[/yellow]")


@cards_app.command("flip")
def cards_flip(
    collection_id: Annotated[int, typer.Argument(help="Collection ID")],
    card_id: Annotated[int | None, typer.Option("--card", "-c", help="Flip a single card")] = None,
    page: Annotated[int, typer.Option("--page", min=1)] = 1,
    page_size: Annotated[int, typer.Option("--page-size", min=1, max=100)] = 10,
) -> None:
    """Swap term and definition for one card, or for every card on a page."""

    async def flip(client: FlashdeckClient) -> int:
        if card_id is not None:
            buffer = CardEditBuffer(collection_id, await _find_card_page(client, collection_id, card_id))
            buffer.flip(card_id)
        else:
            result = await client.get_flashcards(collection_id, page, page_size)
            buffer = CardEditBuffer(collection_id, result.flash_cards)
            buffer.flip_all()
        changed = buffer.changed()
        if changed:
            await client.bulk_update_flashcards(collection_id, changed)
        return len(changed)

    flipped = _run(flip)
    console.print(f"[green]✓ Flipped {flipped} card(s)[/green]")


@cards_app.command("delete")
def cards_delete(
    card_ids: Annotated[list[int], typer.Argument(help="Card IDs to delete")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete cards. This cannot be undone."""
    if not yes and not Confirm.ask(
        f"Delete {len(card_ids)} flashcard(s)? This action cannot be undone.", console=console
    ):
        raise typer.Exit()
    _run(lambda client: client.bulk_delete_flashcards(card_ids))
    console.print(f"[green]✓ Deleted {len(card_ids)} card(s)[/green]")


# ========================================
# Learn
# ========================================


@app.command("learn")
def learn(
    collection_id: Annotated[int, typer.Argument(help="Collection to learn from")],
    count: Annotated[int | None, typer.Option("--count", "-n", min=1, help="Cards in the session")] = None,
    cooldown_ms: Annotated[
        int | None, typer.Option("--cooldown-ms", min=0, help="Ignore scores entered this soon after the previous one")
    ] = None,
) -> None:
    """
    Run a learn session.

    Cards come back in shuffled rounds until each has been scored
    positive twice in a row. Results are saved when the session ends.
    """
    settings = get_settings()
    engine = LearnSessionEngine(
        collection_id,
        count=count or settings.cards_per_session,
        score_range=settings.score_range,
        cooldown=(cooldown_ms if cooldown_ms is not None else settings.transition_cooldown_ms) / 1000,
    )

    async def session(client: FlashdeckClient) -> Any:
        presenter = LearnPresenter(engine, console)
        return await presenter.run(ApiCardSource(client), ApiScoreSink(client))

    submitted = _run(session, settings)
    if submitted is None:
        raise typer.Exit(code=1 if engine.error_message else 0)


# ========================================
# Mind maps
# ========================================


@mindmap_app.command("list")
def mindmap_list() -> None:
    """List mind maps."""
    settings = get_settings()
    user_id = _require_user(settings)
    mindmaps = _run(lambda client: client.get_mindmaps(user_id), settings)
    if not mindmaps:
        console.print("[yellow]No mind maps yet.[/yellow]")
        return
    console.print(ui.render_mindmap_table(mindmaps))


@mindmap_app.command("show")
def mindmap_show(mindmap_id: Annotated[int, typer.Argument(help="Mind map ID")]) -> None:
    """Show a mind map as a tree (collapsed branches stay hidden)."""
    mindmap = _run(lambda client: client.get_full_mindmap(mindmap_id))
    if not mindmap.nodes:
        console.print(f"[yellow]'{mindmap.title}' has no nodes yet.[/yellow]")
        return
    console.print(ui.render_mindmap_tree(mindmap, build_forest(mindmap.nodes)))


@mindmap_app.command("create")
def mindmap_create(
    title: Annotated[str, typer.Argument(help="Mind map title")],
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
) -> None:
    """Create a mind map."""
    settings = get_settings()
    user_id = _require_user(settings)
    dto = MindMapCreate(user_id=user_id, title=title, description=description)
    created = _run(lambda client: client.create_mindmap(dto), settings)
    console.print(f"[green]✓ Created mind map '{created.title}' (#{created.id})[/green]")


@mindmap_app.command("update")
def mindmap_update(
    mindmap_id: Annotated[int, typer.Argument(help="Mind map ID")],
    title: Annotated[str | None, typer.Option("--title", "-t")] = None,
    description: Annotated[str | None, typer.Option("--description", "-d")] = None,
) -> None:
    """Rename or describe a mind map."""
    dto = MindMapUpdate(title=title, description=description)
    updated = _run(lambda client: client.update_mindmap(mindmap_id, dto))
    console.print(f"[green]✓ Updated mind map '{updated.title}'[/green]")


@mindmap_app.command("delete")
def mindmap_delete(
    mindmap_id: Annotated[int, typer.Argument(help="Mind map ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a mind map."""
    if not yes and not Confirm.ask(f"Delete mind map #{mindmap_id}?", console=console):
        raise typer.Exit()
    _run(lambda client: client.delete_mindmap(mindmap_id))
    console.print(f"[green]✓ Deleted mind map #{mindmap_id}[/green]")


@mindmap_app.command("add-node")
def mindmap_add_node(
    mindmap_id: Annotated[int, typer.Argument(help="Mind map ID")],
    card_id: Annotated[int, typer.Argument(help="Flashcard shown by the node")],
    parent: Annotated[int | None, typer.Option("--parent", "-p", help="Parent node ID")] = None,
    color: Annotated[str, typer.Option("--color", "-c")] = COLOR_PRESETS[0],
) -> None:
    """Add a flashcard to a mind map."""
    x, y = new_node_position()
    dto = MindMapNodeCreate(
        flash_card_id=card_id, parent_node_id=parent, position_x=x, position_y=y, color=color
    )
    node = _run(lambda client: client.create_node(mindmap_id, dto))
    console.print(f"[green]✓ Added node #{node.id}[/green]")


@mindmap_app.command("move")
def mindmap_move(
    node_id: Annotated[int, typer.Argument(help="Node ID")],
    x: Annotated[float, typer.Argument(help="New X position")],
    y: Annotated[float, typer.Argument(help="New Y position")],
) -> None:
    """Move a node on the canvas."""
    _run(lambda client: client.update_node(node_id, MindMapNodeUpdate(position_x=x, position_y=y)))
    console.print(f"[green]✓ Moved node #{node_id} to ({x:.0f}, {y:.0f})[/green]")


@mindmap_app.command("reparent")
def mindmap_reparent(
    node_id: Annotated[int, typer.Argument(help="Node ID")],
    parent: Annotated[int, typer.Argument(help="New parent node ID")],
) -> None:
    """Attach a node to a different parent."""
    _run(lambda client: client.update_node(node_id, MindMapNodeUpdate(parent_node_id=parent)))
    console.print(f"[green]✓ Node #{node_id} now under #{parent}[/green]")


@mindmap_app.command("color")
def mindmap_color(
    node_id: Annotated[int, typer.Argument(help="Node ID")],
    color: Annotated[str | None, typer.Argument(help="Hex color, e.g. #10B981")] = None,
) -> None:
    """Recolor a node (prompts with the preset palette when no color is given)."""
    if color is None:
        color = Prompt.ask("Color", choices=COLOR_PRESETS, default=COLOR_PRESETS[0], console=console)
    _run(lambda client: client.update_node(node_id, MindMapNodeUpdate(color=color)))
    console.print(f"[green]✓ Node #{node_id} is now {color}[/green]")


@mindmap_app.command("fold")
def mindmap_fold(node_id: Annotated[int, typer.Argument(help="Node ID")]) -> None:
    """Collapse or expand a node's children."""

    async def toggle(client: FlashdeckClient) -> bool:
        node = await client.get_node(node_id)
        updated = await client.update_node(
            node_id, MindMapNodeUpdate(hide_children=not node.hide_children)
        )
        return updated.hide_children

    hidden = _run(toggle)
    console.print(f"[green]✓ Node #{node_id} {'collapsed' if hidden else 'expanded'}[/green]")


@mindmap_app.command("remove-node")
def mindmap_remove_node(
    node_id: Annotated[int, typer.Argument(help="Node ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a node. Its children become root nodes."""
    if not yes and not Confirm.ask(
        "Delete this node? Child nodes will become root nodes.", console=console
    ):
        raise typer.Exit()
    _run(lambda client: client.delete_node(node_id))
    console.print(f"[green]✓ Deleted node #{node_id}[/green]")


# ========================================
# Analytics
# ========================================


@analytics_app.command("overview")
def analytics_overview() -> None:
    """Headline numbers across all collections."""
    settings = get_settings()
    user_id = _require_user(settings)
    stats = _run(lambda client: client.get_overview_stats(user_id), settings)
    console.print(ui.render_key_value_table("Overview", stats))


@analytics_app.command("progress")
def analytics_progress() -> None:
    """Learning progress over time."""
    settings = get_settings()
    user_id = _require_user(settings)
    progress = _run(lambda client: client.get_learning_progress(user_id), settings)
    console.print(ui.render_key_value_table("Learning Progress", progress))


@analytics_app.command("collection")
def analytics_collection(collection_id: Annotated[int, typer.Argument(help="Collection ID")]) -> None:
    """Analytics for one collection."""
    settings = get_settings()
    user_id = _require_user(settings)
    stats = _run(lambda client: client.get_collection_analytics(user_id, collection_id), settings)
    console.print(ui.render_key_value_table(f"Collection #{collection_id}", stats))


@analytics_app.command("all")
def analytics_all() -> None:
    """The complete analytics report."""
    settings = get_settings()
    user_id = _require_user(settings)
    report = _run(lambda client: client.get_user_analytics(user_id), settings)
    for section, value in report.items():
        if isinstance(value, dict):
            console.print(ui.render_key_value_table(section, value))
    scalars = {k: v for k, v in report.items() if not isinstance(v, dict)}
    if scalars:
        console.print(ui.render_key_value_table("Summary", scalars))


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="5 MB", retention=3)

    app()


if __name__ == "__main__":
    main()
