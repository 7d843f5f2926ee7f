"""
Terminal presenter for learn sessions.

Reads the engine's state to draw the screen and turns keyboard input into
engine commands. All sequencing rules live in LearnSessionEngine; this
class only decides what to show and what to ask.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from rich.console import Console
from rich.prompt import Confirm, Prompt

from src.core.models import ScoreUpdate
from src.learn.collaborators import CardSource, ScoreSink
from src.learn.engine import LearnSessionEngine, Phase, ScoreOutcome
from src.learn.errors import FetchFailure, SubmitFailure

from . import visuals as ui

EXIT_KEYS = {"x", "q", "exit", "quit"}


class LearnPresenter:
    """
    Drives one learn session in the terminal.

    Args:
        engine: Session state machine
        console: Rich console to draw on
        ask: Line input, defaults to rich Prompt
        confirm: Yes/no input, defaults to rich Confirm
    """

    def __init__(
        self,
        engine: LearnSessionEngine,
        console: Console,
        ask: Callable[[str], str] | None = None,
        confirm: Callable[[str], bool] | None = None,
    ):
        self.engine = engine
        self.console = console
        self.ask = ask or (lambda prompt: Prompt.ask(prompt, console=console, default=""))
        self.confirm = confirm or (
            lambda prompt: Confirm.ask(prompt, console=console, default=False)
        )
        self.submitted: list[ScoreUpdate] | None = None

    async def run(self, source: CardSource, sink: ScoreSink) -> list[ScoreUpdate] | None:
        """
        Run the session until it closes.

        Returns:
            The submitted updates, or None if the session was abandoned
            or could not be loaded
        """
        try:
            with ui.Spinner(self.console, "Loading session..."):
                await self.engine.load(source)
        except FetchFailure as e:
            self.console.print(ui.render_error_panel(str(e)))
            return None

        if self.engine.total == 0:
            self.console.print("[yellow]No cards available for this session.[/yellow]")
            self.engine.exit()
            return None

        while self.engine.phase is not Phase.CLOSED:
            if self.engine.phase is Phase.PRESENTING:
                self._present_card()
            elif self.engine.phase is Phase.REVIEWING:
                await self._review(sink)
            elif self.engine.phase is Phase.ERROR:
                await self._recover(sink)
            else:
                # LOADING and SUBMITTING are only held while awaiting
                logger.error(f"Presenter reached unexpected phase {self.engine.phase.value}")
                self.engine.exit()

        return self.submitted

    # =========================================================================
    # Presenting
    # =========================================================================

    def _present_card(self) -> None:
        card = self.engine.current_card
        self.console.print()
        self.console.print(ui.render_progress(self.engine))
        self.console.print(ui.render_card_panel(card, revealed=False))

        if self.ask("Enter to reveal").strip().lower() in EXIT_KEYS:
            self._confirm_exit()
            return

        self.console.print(ui.render_card_panel(card, revealed=True))
        self.console.print(ui.render_score_help(self.engine.score_range))

        delta = self._ask_score()
        if delta is None:
            self._confirm_exit()
            return

        outcome = self.engine.score(card.id, delta)
        if outcome is ScoreOutcome.NEW_ROUND:
            self.console.print(
                f"[cyan]Round complete. {self.engine.round_size} cards left, reshuffled.[/cyan]"
            )
        elif outcome is ScoreOutcome.REVIEW:
            self.console.print("[green]All cards remembered![/green]")

    def _ask_score(self) -> int | None:
        """Read a score until it is valid; None means the user wants out."""
        limit = self.engine.score_range
        while True:
            raw = self.ask("Score").strip().lower()
            if raw in EXIT_KEYS:
                return None
            try:
                delta = int(raw)
            except ValueError:
                delta = 0
            if delta != 0 and abs(delta) <= limit:
                return delta
            self.console.print(f"[red]Enter a score from -{limit} to -1 or +1 to +{limit}.[/red]")

    # =========================================================================
    # Reviewing
    # =========================================================================

    async def _review(self, sink: ScoreSink) -> None:
        self.console.print()
        self.console.print(ui.render_review_table(self.engine))
        self.console.print(ui.render_review_help(self.engine))

        choice = self.ask("Review").strip().lower()
        if choice.isdigit():
            position = int(choice)
            cards = self.engine.cards
            if 1 <= position <= len(cards):
                self.engine.toggle_remembered(cards[position - 1].id)
            else:
                self.console.print(f"[red]No card number {position}.[/red]")
        elif choice == "c":
            if self.engine.can_continue:
                self.engine.continue_learning()
            else:
                self.console.print("[yellow]Every card is marked remembered.[/yellow]")
        elif choice == "e":
            await self._submit(sink)
        elif choice in EXIT_KEYS:
            self._confirm_exit()

    async def _submit(self, sink: ScoreSink) -> None:
        try:
            with ui.Spinner(self.console, "Saving scores..."):
                updates = await self.engine.end_session(sink)
        except SubmitFailure:
            # Engine is now in ERROR; the loop shows recovery options
            return
        self.submitted = updates
        self.console.print(ui.render_session_summary(len(updates), self.engine.total))

    # =========================================================================
    # Failed submission
    # =========================================================================

    async def _recover(self, sink: ScoreSink) -> None:
        self.console.print(ui.render_error_panel(self.engine.error_message or "Submission failed"))
        self.console.print("[dim]r = retry   b = back to review   x = discard results[/dim]")

        choice = self.ask("Action").strip().lower()
        if choice == "r":
            await self._submit(sink)
        elif choice == "b":
            self.engine.resume_review()
        elif choice in EXIT_KEYS:
            self._confirm_exit()

    def _confirm_exit(self) -> None:
        if self.confirm("Exit the session? Progress will not be saved"):
            self.engine.exit()
