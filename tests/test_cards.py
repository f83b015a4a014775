from __future__ import annotations

from collections import Counter

import pytest

from jolly.cards import (
    Card,
    Rank,
    Representation,
    Suit,
    cards_from_codes,
    iter_full_deck,
    position_value,
    rank_value,
    sort_hand,
)


@pytest.mark.parametrize(
    ("code", "rank", "suit"),
    [
        ("10♥", Rank.TEN, Suit.HEARTS),
        ("A♠", Rank.ACE, Suit.SPADES),
        ("q♦", Rank.QUEEN, Suit.DIAMONDS),
        ("JK", Rank.JOKER, Suit.JOKER),
        ("joker", Rank.JOKER, Suit.JOKER),
    ],
)
def test_from_code_parses_labels(code: str, rank: Rank, suit: Suit) -> None:
    card = Card.from_code(code, 7)
    assert card.rank is rank
    assert card.suit is suit
    assert card.id == 7


@pytest.mark.parametrize(
    ("rank", "expected"),
    [(Rank.TWO, 2), (Rank.NINE, 9), (Rank.TEN, 10), (Rank.KING, 10), (Rank.ACE, 10), (Rank.JOKER, 0)],
)
def test_rank_values(rank: Rank, expected: int) -> None:
    assert rank_value(rank) == expected


def test_low_ace_position_is_worth_one() -> None:
    assert position_value(-1) == 1
    assert position_value(Rank.ACE.order) == 10


def test_full_deck_has_two_copies_and_four_jokers() -> None:
    deck = list(iter_full_deck())
    assert len(deck) == 108
    assert sorted(card.id for card in deck) == list(range(108))
    assert sum(1 for card in deck if card.is_joker) == 4

    naturals = Counter((card.rank, card.suit) for card in deck if not card.is_joker)
    assert len(naturals) == 52
    assert set(naturals.values()) == {2}


def test_sort_hand_groups_suits_and_puts_jokers_last() -> None:
    hand = cards_from_codes(["JK", "K♠", "3♥", "2♥", "5♦"])
    sort_hand(hand)
    assert [card.label() for card in hand] == ["2♥", "3♥", "5♦", "K♠", "JK"]


def test_joker_label_shows_representation() -> None:
    joker = Card.from_code("JK", 0)
    joker.representation = Representation(Rank.SIX, Suit.HEARTS)
    assert joker.label() == "JK(6♥)"
