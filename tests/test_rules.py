"""Tests covering meld validation and organization."""

from __future__ import annotations

import itertools

import pytest

from jolly import rules
from jolly.cards import Rank, Representation, Suit, cards_from_codes


def _labels(cards) -> list[str]:
    return [card.label() for card in cards]


@pytest.mark.parametrize(
    ("codes", "kind", "points", "pure"),
    [
        (["4♥", "5♥", "JK"], rules.MeldKind.RUN, 15, False),
        (["Q♥", "K♥", "A♥"], rules.MeldKind.RUN, 30, True),
        (["A♥", "2♥", "3♥"], rules.MeldKind.RUN, 6, True),
        (["2♠", "3♠", "4♠", "5♠", "6♠"], rules.MeldKind.RUN, 20, True),
        (["4♥", "JK", "6♥"], rules.MeldKind.RUN, 15, False),
        (["JK", "4♥", "JK"], rules.MeldKind.SET, 12, False),
        (["5♣", "5♦", "5♠"], rules.MeldKind.SET, 15, True),
        (["K♣", "K♦", "K♠", "K♥"], rules.MeldKind.SET, 40, True),
        (["9♣", "9♦", "JK"], rules.MeldKind.SET, 27, False),
    ],
)
def test_valid_melds(codes: list[str], kind: rules.MeldKind, points: int, pure: bool) -> None:
    result = rules.validate_meld(cards_from_codes(codes))
    assert result.valid
    assert result.kind is kind
    assert result.points == points
    assert result.is_pure is pure


@pytest.mark.parametrize(
    "codes",
    [
        ["K♥", "A♥", "2♥"],
        ["4♥", "5♥"],
        ["JK", "JK", "JK"],
        ["2♥", "5♥", "JK"],
        ["5♥", "5♥", "5♦"],
        ["5♥", "5♦", "5♣", "5♠", "JK"],
        ["4♥", "5♦", "6♥"],
        ["J♥", "Q♥", "K♥", "A♥", "2♥"],
    ],
)
def test_invalid_melds(codes: list[str]) -> None:
    assert not rules.validate_meld(cards_from_codes(codes)).valid


@pytest.mark.parametrize(
    "codes",
    [
        ["4♥", "5♥", "JK"],
        ["A♥", "2♥", "3♥", "JK"],
        ["9♣", "JK", "9♦", "9♠"],
        ["K♥", "A♥", "2♥"],
    ],
)
def test_validation_ignores_card_order(codes: list[str]) -> None:
    cards = cards_from_codes(codes)
    expected = rules.validate_meld(cards)
    for permutation in itertools.permutations(cards):
        assert rules.validate_meld(list(permutation)) == expected


def test_organize_places_joker_at_high_end_of_run() -> None:
    cards = cards_from_codes(["JK", "5♥", "4♥"])
    organized = rules.organize_meld(cards)
    assert _labels(organized) == ["4♥", "5♥", "JK(6♥)"]
    assert cards[0].representation == Representation(Rank.SIX, Suit.HEARTS)


def test_organize_fills_gaps_before_ends() -> None:
    organized = rules.organize_meld(cards_from_codes(["JK", "7♠", "5♠"]))
    assert _labels(organized) == ["5♠", "JK(6♠)", "7♠"]


def test_organize_extends_low_end_when_high_end_is_closed() -> None:
    organized = rules.organize_meld(cards_from_codes(["K♦", "A♦", "JK"]))
    assert _labels(organized) == ["JK(Q♦)", "K♦", "A♦"]


def test_organize_assigns_missing_suit_in_sets() -> None:
    organized = rules.organize_meld(cards_from_codes(["9♣", "JK", "9♦"]))
    assert _labels(organized) == ["JK(9♥)", "9♦", "9♣"]


def test_organize_is_idempotent() -> None:
    cards = cards_from_codes(["JK", "8♣", "JK", "6♣"])
    once = rules.organize_meld(cards)
    reps = [card.representation for card in once]
    twice = rules.organize_meld(once)
    assert [card.id for card in twice] == [card.id for card in once]
    assert [card.representation for card in twice] == reps


def test_organize_keeps_existing_representation_that_still_fits() -> None:
    cards = cards_from_codes(["4♥", "JK", "6♥", "JK"])
    cards[3].representation = Representation(Rank.FIVE, Suit.HEARTS)
    organized = rules.organize_meld(cards)
    assert _labels(organized) == ["4♥", "JK(5♥)", "6♥", "JK(7♥)"]
    assert organized[1].id == 3


def test_organize_clears_colliding_representation() -> None:
    cards = cards_from_codes(["4♥", "5♥", "JK", "6♥"])
    joker = cards[2]
    joker.representation = Representation(Rank.SIX, Suit.HEARTS)
    rules.organize_meld(cards)
    assert joker.representation == Representation(Rank.SEVEN, Suit.HEARTS)


def test_organize_leaves_invalid_input_in_place() -> None:
    cards = cards_from_codes(["2♥", "JK", "9♠"])
    cards[1].representation = Representation(Rank.TWO, Suit.HEARTS)
    organized = rules.organize_meld(cards)
    assert [card.id for card in organized] == [card.id for card in cards]
    assert cards[1].representation is None


def test_joker_assignments_do_not_touch_cards() -> None:
    cards = cards_from_codes(["7♥", "7♦", "7♠", "JK"])
    assignments = rules.joker_assignments(cards)
    assert assignments == {3: Representation(Rank.SEVEN, Suit.CLUBS)}
    assert cards[3].representation is None


def test_opening_requires_points_and_pure_run() -> None:
    pure = cards_from_codes(["Q♥", "K♥", "A♥"])
    fives = cards_from_codes(["5♣", "5♦", "5♠"], first_id=3)
    joker_run = cards_from_codes(["J♠", "Q♠", "JK"], first_id=6)

    assert rules.has_pure_run([pure, fives])
    assert not rules.has_pure_run([fives, joker_run])
    assert rules.meets_opening(45, [pure, fives])
    assert not rules.meets_opening(35, [pure, fives])
    assert not rules.meets_opening(60, [fives, joker_run])
    assert rules.melds_points([pure, fives]) == 45
