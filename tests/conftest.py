from __future__ import annotations

from typing import Callable, Sequence

import pytest

from jolly.cards import Card, cards_from_codes
from jolly.deck import Deck
from jolly.rules import organize_meld
from jolly.state import Difficulty, GameState, PlayerState, Seat, TurnPhase


class CardFactory:
    """Hands out cards with unique ids inside the 108-card id space."""

    def __init__(self) -> None:
        self.next_id = 0

    def __call__(self, *codes: str) -> list[Card]:
        cards = cards_from_codes(codes, self.next_id)
        self.next_id += len(cards)
        return cards


def build_state(
    human: Sequence[str] = (),
    cpu: Sequence[str] = (),
    *,
    stock: Sequence[str] = (),
    discard: Sequence[str] = (),
    melds: Sequence[Sequence[str]] = (),
    bottom: str | None = None,
    round: int = 3,
    phase: TurnPhase = TurnPhase.ACTION,
    turn: Seat = Seat.HUMAN,
    human_opened: bool = False,
    cpu_opened: bool = False,
    difficulty: Difficulty = Difficulty.MEDIUM,
) -> GameState:
    make = CardFactory()
    table = [organize_meld(make(*codes)) for codes in melds]
    return GameState(
        deck=Deck(make(*stock)),
        players={
            Seat.HUMAN: PlayerState(hand=make(*human), has_opened=human_opened),
            Seat.CPU: PlayerState(hand=make(*cpu), has_opened=cpu_opened),
        },
        melds=table,
        discard_pile=make(*discard),
        bottom_card=make(bottom)[0] if bottom else None,
        turn=turn,
        phase=phase,
        round=round,
        difficulty=difficulty,
    )


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    return build_state


@pytest.fixture
def make_cards() -> CardFactory:
    return CardFactory()
