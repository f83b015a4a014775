"""Draw pile used by a Jolly game."""

from __future__ import annotations

import random
from typing import Iterable

from .cards import Card, iter_full_deck


class Deck:
    """Shuffled stack of cards; the top of the stack is the end of the list."""

    def __init__(self, cards: Iterable[Card] | None = None, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.cards: list[Card] = list(cards) if cards is not None else []

    @classmethod
    def full(cls, rng: random.Random | None = None) -> "Deck":
        """Return a freshly shuffled 108-card deck."""

        deck = cls(iter_full_deck(), rng)
        deck.shuffle()
        return deck

    def shuffle(self) -> None:
        self.rng.shuffle(self.cards)

    def draw(self) -> Card | None:
        """Pop the top card, or return ``None`` when the stack is empty."""

        if not self.cards:
            return None
        return self.cards.pop()

    def extract_bottom(self) -> Card | None:
        """Remove and return the bottom card of the stack."""

        if not self.cards:
            return None
        return self.cards.pop(0)

    def peek_bottom(self, depth: int) -> list[Card]:
        """Return up to ``depth`` cards from the bottom, bottom-most first."""

        return self.cards[:depth]

    def set_cards(self, cards: Iterable[Card]) -> None:
        self.cards = list(cards)

    def is_empty(self) -> bool:
        return not self.cards

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self):
        return iter(self.cards)
