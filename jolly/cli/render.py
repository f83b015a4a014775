"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Sequence

from rich.console import RenderableType
from rich.panel import Panel

from ..cards import Card, Suit
from ..state import GameState
from .views import StateSummaryView

_SUIT_COLOURS = {
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
    Suit.SPADES: "cyan",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``."""

    if card.is_joker:
        return f"[bold yellow]{card.label()}[/bold yellow]"
    colour = _SUIT_COLOURS.get(card.suit, "white")
    return f"[{colour}]{card.label()}[/{colour}]"


def format_hand(cards: Sequence[Card]) -> str:
    if not cards:
        return "—"
    return " ".join(format_card(card) for card in cards)


def render_state(state: GameState, *, reveal_cpu: bool = False, title: str = "Jolly") -> RenderableType:
    """Return a Rich panel describing the current table state."""

    view = StateSummaryView(state=state, reveal_cpu=reveal_cpu, card_formatter=format_card)
    return Panel(view.render(), title=title, padding=(0, 1), border_style="cyan")
