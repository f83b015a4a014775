"""Threat evaluation helpers used by the discard heuristics."""

from __future__ import annotations

from typing import Sequence

from .cards import Card
from .rules import validate_meld

CRITICAL_HAND_SIZE = 2
CRITICAL_PENALTY = 1000.0
MODERATE_PENALTY = 20.0


def extendable_melds(table: Sequence[Sequence[Card]], card: Card) -> list[int]:
    """Return the indices of table melds that ``card`` could be added to."""

    indices: list[int] = []
    for index, meld in enumerate(table):
        if validate_meld([*meld, card]).valid:
            indices.append(index)
    return indices


def card_extends_table_meld(table: Sequence[Sequence[Card]], card: Card) -> bool:
    """Return True if ``card`` fits onto any meld already on the table."""

    return any(validate_meld([*meld, card]).valid for meld in table)


def discard_threat(
    table: Sequence[Sequence[Card]], card: Card, opponent_hand_size: int | None = None
) -> float:
    """Return the penalty for handing ``card`` to an opponent who can lay it off."""

    if not card_extends_table_meld(table, card):
        return 0.0
    if opponent_hand_size is not None and opponent_hand_size <= CRITICAL_HAND_SIZE:
        return CRITICAL_PENALTY
    return MODERATE_PENALTY
