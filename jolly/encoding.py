"""Card identifier bitmask utilities for Jolly search keys."""

from __future__ import annotations

from typing import Final, Iterable, Sequence

from .cards import Card

DECK_CARD_COUNT: Final[int] = 108


def _validate_card_identifier(card_identifier: int) -> None:
    if card_identifier < 0 or card_identifier >= DECK_CARD_COUNT:
        raise ValueError(f"card identifier {card_identifier} out of range")


def mask_from_ids(card_ids: Iterable[int]) -> int:
    """Return a bit-mask representing the provided card identifiers."""

    mask = 0
    for card_identifier in card_ids:
        _validate_card_identifier(card_identifier)
        mask |= 1 << card_identifier
    return mask


def mask_from_cards(cards: Iterable[Card]) -> int:
    """Return a bit-mask over the ids of ``cards``."""

    return mask_from_ids(card.id for card in cards)


def overlaps(mask_a: int, mask_b: int) -> bool:
    return mask_a & mask_b != 0


def table_key(hand_mask: int, melds: Sequence[Sequence[Card]]) -> tuple[int, ...]:
    """Canonical key for a (hand, table) position used by memoized searches."""

    return (hand_mask, *(mask_from_cards(meld) for meld in melds))
