"""Composable view primitives for the Jolly CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card
from ..rules import DEFAULT_THRESHOLDS, validate_meld
from ..state import GameState, Seat


@dataclass(slots=True)
class StateSummaryView:
    """Renderable summarising the current table state."""

    state: GameState
    reveal_cpu: bool
    card_formatter: Callable[[Card], str]

    def _hand_markup(self, cards: list[Card], visible: bool, numbered: bool = False) -> str:
        if not visible:
            return f"{len(cards)} cards"
        if not cards:
            return "—"
        if numbered:
            return " ".join(
                f"[dim]{idx}:[/dim]{self.card_formatter(card)}" for idx, card in enumerate(cards, start=1)
            )
        return " ".join(self.card_formatter(card) for card in cards)

    def _metadata_panel(self) -> Panel:
        state = self.state
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Round[/cyan]: {state.round}  [cyan]Difficulty[/cyan]: {state.difficulty.value}")
        grid.add_row(f"[cyan]Stock[/cyan]: {len(state.deck)} card(s)")
        if state.discard_pile:
            top_card = self.card_formatter(state.discard_pile[-1])
            grid.add_row(f"[cyan]Discard[/cyan]: {top_card} ({len(state.discard_pile)} card(s))")
        else:
            grid.add_row("[cyan]Discard[/cyan]: —")
        bottom = "set aside" if state.bottom_card is not None else "taken"
        grid.add_row(f"[cyan]Bottom card[/cyan]: {bottom}")
        if state.turn_melds or state.turn_additions:
            grid.add_row(
                f"[cyan]Turn points[/cyan]: {state.turn_points}/{DEFAULT_THRESHOLDS.opening_points}"
            )
        return Panel(grid, title="Table State", box=box.SQUARE, border_style="blue")

    def render(self) -> RenderableType:
        state = self.state
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("Player", justify="left", style="bold")
        table.add_column("Hand", justify="left")
        table.add_column("Status", justify="left")

        for seat in Seat:
            player = state.players[seat]
            visible = seat is Seat.HUMAN or self.reveal_cpu
            hand_display = self._hand_markup(player.hand, visible, numbered=seat is Seat.HUMAN)
            status_text = "Opened" if player.has_opened else "Closed"
            if state.winner is seat:
                status_text = "[bold green]Winner[/bold green]"
            name = seat.label
            if seat is state.turn:
                name = f"[bold yellow]{name}[/bold yellow] ({state.phase.value})"
            table.add_row(name, hand_display, status_text)

        components: list[RenderableType] = [table, self._metadata_panel()]

        if state.melds:
            meld_table = Table(box=box.MINIMAL, expand=True)
            meld_table.add_column("Meld", justify="left", style="bold")
            meld_table.add_column("Kind", justify="left")
            meld_table.add_column("Cards", justify="left")
            meld_table.add_column("Points", justify="right")

            for idx, meld in enumerate(state.melds, start=1):
                result = validate_meld(meld)
                kind_label = result.kind.value.title() if result.kind is not None else "?"
                if result.is_pure:
                    kind_label += " (pure)"
                cards_display = " ".join(self.card_formatter(card) for card in meld)
                marker = "*" if idx - 1 in state.turn_melds else ""
                meld_table.add_row(f"M{idx}{marker}", kind_label, cards_display, str(result.points))

            components.append(Panel(meld_table, title="Table Melds", box=box.SQUARE, border_style="green"))

        return Group(*components)
