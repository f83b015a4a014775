from __future__ import annotations

from jolly.evaluation import evaluate_hand_progress
from jolly.rules import organize_meld


def test_winning_hand_before_opening(make_cards) -> None:
    hand = make_cards(
        "2♥", "3♥", "4♥",
        "5♣", "5♦", "5♠",
        "9♣", "9♦", "JK",
        "10♠", "J♠", "JK",
        "K♠",
    )
    assert evaluate_hand_progress(hand, False, []) == 0


def test_more_cards_beat_more_points(make_cards) -> None:
    hand = make_cards("2♥", "3♥", "4♥", "5♥", "5♦", "5♣")
    assert evaluate_hand_progress(hand, True, []) == 0


def test_table_lay_offs_count_once_opened(make_cards) -> None:
    table = [
        make_cards("5♣", "6♣", "7♣"),
        make_cards("9♦", "10♦", "J♦"),
        make_cards("2♠", "3♠", "4♠"),
    ]
    hand = make_cards("8♣", "8♥", "JK", "JK")
    assert evaluate_hand_progress(hand, True, table) == 0


def test_joker_swap_reduces_distance(make_cards) -> None:
    table = [organize_meld(make_cards("7♥", "7♦", "7♠", "JK"))]
    hand = make_cards("7♣", "8♣", "10♣")
    assert evaluate_hand_progress(hand, True, table) == 0


def test_swaps_are_not_explored_before_opening(make_cards) -> None:
    table = [organize_meld(make_cards("7♥", "7♦", "7♠", "JK"))]
    hand = make_cards("7♣", "8♣", "10♣")
    assert evaluate_hand_progress(hand, False, table) == 4


def test_single_card_after_opening_is_a_win(make_cards) -> None:
    assert evaluate_hand_progress(make_cards("4♦"), True, []) == 0
    assert evaluate_hand_progress(make_cards("2♥", "3♥", "4♥", "5♦"), True, []) == 0


def test_single_card_before_opening_is_penalised(make_cards) -> None:
    assert evaluate_hand_progress(make_cards("4♦"), False, []) == 3


def test_unconnected_cards_count_in_full(make_cards) -> None:
    assert evaluate_hand_progress(make_cards("2♥", "9♠", "K♦"), True, []) == 3


def test_holding_a_card_back_for_a_table_run(make_cards) -> None:
    table = [make_cards("5♥", "6♥", "7♥")]
    hand = make_cards("8♥", "8♦", "8♣", "8♠", "9♥", "2♠")
    assert evaluate_hand_progress(hand, True, table) == 0


def test_opening_gate_applies_to_every_selection(make_cards) -> None:
    table = [make_cards("5♥", "6♥", "7♥")]
    hand = make_cards("8♥", "8♦", "8♣", "8♠", "9♥", "2♠")
    assert evaluate_hand_progress(hand, False, table) == 4
