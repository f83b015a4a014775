from __future__ import annotations

import random

import pytest

from jolly import rules, solver
from jolly.rules import organize_meld
from jolly.state import Difficulty


class _FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


def _labels(cards) -> list[str]:
    return sorted(card.label() for card in cards)


def _id_sets(melds) -> set[frozenset[int]]:
    return {frozenset(card.id for card in meld) for meld in melds}


def test_enumerate_melds_finds_sets_and_runs(make_cards) -> None:
    hand = make_cards("A♥", "2♥", "3♥", "4♥", "JK", "9♣", "9♦", "9♠")
    candidates = solver.enumerate_melds(hand)
    assert all(rules.validate_meld(meld).valid for meld in candidates)

    labels = {tuple(_labels(meld)) for meld in candidates}
    assert ("2♥", "3♥", "A♥") in labels
    assert ("2♥", "3♥", "4♥", "A♥") in labels
    assert ("9♠", "9♣", "9♦") in labels
    assert ("9♣", "9♦", "JK") in labels
    assert len(_id_sets(candidates)) == len(candidates)


def test_select_best_melds_prefers_more_cards(make_cards) -> None:
    hand = make_cards("2♥", "3♥", "4♥", "5♥", "5♦", "5♣")
    chosen = solver.select_best_melds(solver.enumerate_melds(hand), has_opened=True)
    assert sum(len(meld) for meld in chosen) == 6
    assert {tuple(_labels(meld)) for meld in chosen} == {("2♥", "3♥", "4♥"), ("5♣", "5♥", "5♦")}


def test_select_best_melds_never_reuses_cards(make_cards) -> None:
    hand = make_cards("7♠", "8♠", "9♠", "10♠", "JK", "7♥", "7♦")
    chosen = solver.select_best_melds(solver.enumerate_melds(hand), has_opened=False)
    ids = [card.id for meld in chosen for card in meld]
    assert len(ids) == len(set(ids))


@pytest.mark.parametrize(("difficulty", "count"), [(Difficulty.EASY, 1), (Difficulty.MEDIUM, 2), (Difficulty.HARD, 2)])
def test_meld_count_by_difficulty(make_cards, difficulty: Difficulty, count: int) -> None:
    hand = make_cards("5♥", "5♦", "5♣", "8♥", "8♦", "8♣", "K♠")
    move = solver.calculate_cpu_move(hand, True, [], difficulty, rng=random.Random(3))
    assert len(move.melds_to_play) == count
    assert move.discard_card is not None


def _four_set_with_joker(make_cards):
    return [organize_meld(make_cards("4♥", "4♦", "4♣", "JK"))]


def test_easy_never_swaps_jokers(make_cards) -> None:
    table = _four_set_with_joker(make_cards)
    hand = make_cards("4♠", "K♦")
    move = solver.calculate_cpu_move(hand, True, table, Difficulty.EASY, rng=random.Random(1))
    assert move.joker_swaps == []


def test_hard_always_swaps_jokers(make_cards) -> None:
    table = _four_set_with_joker(make_cards)
    hand = make_cards("4♠", "K♦")
    move = solver.calculate_cpu_move(hand, True, table, Difficulty.HARD, rng=_FixedRandom(0.99))
    joker = next(card for card in table[0] if card.is_joker)
    assert move.joker_swaps == [solver.JokerSwap(meld_index=0, hand_card_id=hand[0].id, joker_id=joker.id)]
    assert move.discard_card is not None and move.discard_card.id != joker.id


@pytest.mark.parametrize(("roll", "swaps"), [(0.1, 1), (0.9, 0)])
def test_medium_swaps_half_the_time(make_cards, roll: float, swaps: int) -> None:
    table = _four_set_with_joker(make_cards)
    hand = make_cards("4♠", "K♦")
    move = solver.calculate_cpu_move(hand, True, table, Difficulty.MEDIUM, rng=_FixedRandom(roll))
    assert len(move.joker_swaps) == swaps


def test_swaps_need_an_opened_hand(make_cards) -> None:
    table = _four_set_with_joker(make_cards)
    hand = make_cards("4♠", "K♦")
    assert solver.find_joker_swaps(hand, table)
    move = solver.calculate_cpu_move(hand, False, table, Difficulty.HARD)
    assert move.joker_swaps == []


@pytest.mark.parametrize("difficulty", [Difficulty.MEDIUM, Difficulty.HARD])
def test_discard_keeps_pairs_and_drops_deadwood(make_cards, difficulty: Difficulty) -> None:
    hand = make_cards("K♥", "K♠", "2♣", "5♦")
    move = solver.calculate_cpu_move(hand, True, [], difficulty)
    assert move.discard_card is not None
    assert move.discard_card.label() == "5♦"


def test_hard_discard_avoids_feeding_the_table(make_cards) -> None:
    table = [make_cards("J♠", "Q♠", "K♠")]
    hand = make_cards("A♠", "3♦")

    medium = solver.choose_discard(hand, Difficulty.MEDIUM, table, opponent_hand_size=5)
    hard = solver.choose_discard(hand, Difficulty.HARD, table, opponent_hand_size=5)

    assert medium.label() == "A♠"
    assert hard.label() == "3♦"


def test_choose_discard_edge_cases(make_cards) -> None:
    joker, two, nine = make_cards("JK", "2♥", "9♠")
    easy = solver.choose_discard([joker, two, nine], Difficulty.EASY, rng=random.Random(5))
    assert easy is not None and not easy.is_joker

    assert solver.choose_discard([joker], Difficulty.HARD) is joker
    assert solver.choose_discard([two], Difficulty.MEDIUM, exclude=[two.id]) is None
    assert solver.choose_discard([], Difficulty.MEDIUM) is None


def test_unopened_plan_skips_melds_without_pure_run(make_cards) -> None:
    hand = make_cards("K♠", "K♦", "K♣", "Q♠", "Q♦", "Q♣", "2♥")
    move = solver.calculate_cpu_move(hand, False, [], Difficulty.HARD)
    assert move.melds_to_play == []


def test_unopened_plan_skips_melds_below_threshold(make_cards) -> None:
    hand = make_cards("2♥", "3♥", "4♥", "9♠")
    move = solver.calculate_cpu_move(hand, False, [], Difficulty.HARD)
    assert move.melds_to_play == []
    assert move.discard_card is not None


def test_unopened_plan_opens_with_pure_run_and_points(make_cards) -> None:
    hand = make_cards("Q♥", "K♥", "A♥", "5♣", "5♦", "5♠", "9♠")
    move = solver.calculate_cpu_move(hand, False, [], Difficulty.HARD)
    assert {tuple(_labels(meld)) for meld in move.melds_to_play} == {
        ("A♥", "K♥", "Q♥"),
        ("5♠", "5♣", "5♦"),
    }
    assert solver.meets_opening(move.melds_to_play)
    assert move.discard_card.label() == "9♠"


def test_plan_can_skip_melds(make_cards) -> None:
    hand = make_cards("5♥", "5♦", "5♣", "K♠")
    move = solver.calculate_cpu_move(hand, True, [], Difficulty.HARD, allow_melds=False)
    assert move.melds_to_play == []
    assert move.discard_card is not None
