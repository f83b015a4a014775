"""Core game state data structures for Jolly."""

from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List

from .cards import Card, format_cards, sort_hand
from .deck import Deck
from .rules import DEFAULT_DEAL_PATTERN, DealPattern

logger = logging.getLogger(__name__)


class Seat(str, Enum):
    """The two seats at the table."""

    HUMAN = "human"
    CPU = "cpu"

    @property
    def other(self) -> "Seat":
        return Seat.CPU if self is Seat.HUMAN else Seat.HUMAN

    @property
    def label(self) -> str:
        return "Human" if self is Seat.HUMAN else "CPU"


class TurnPhase(str, Enum):
    """Phases of a single turn."""

    DRAW = "draw"
    ACTION = "action"


class Difficulty(str, Enum):
    """CPU strength tiers."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(slots=True)
class PlayerState:
    """State tracked for each seat."""

    hand: List[Card] = field(default_factory=list)
    has_opened: bool = False
    has_pure_run: bool = False


@dataclass(slots=True)
class TurnAddition:
    """Cards added this turn to a meld that predates the turn."""

    meld_index: int
    cards: List[Card]


def _default_players() -> dict[Seat, PlayerState]:
    return {Seat.HUMAN: PlayerState(), Seat.CPU: PlayerState()}


@dataclass(slots=True)
class GameState:
    """Mutable game state shared by the action functions and the CPU."""

    deck: Deck = field(default_factory=Deck)
    players: dict[Seat, PlayerState] = field(default_factory=_default_players)
    melds: List[List[Card]] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    bottom_card: Card | None = None
    turn: Seat = Seat.HUMAN
    phase: TurnPhase = TurnPhase.DRAW
    round: int = 1
    difficulty: Difficulty = Difficulty.MEDIUM
    debug: bool = False
    winner: Seat | None = None

    turn_melds: List[int] = field(default_factory=list)
    turn_points: int = 0
    turn_additions: List[TurnAddition] = field(default_factory=list)
    drawn_from_discard_id: int | None = None
    discard_card_used: bool = False
    swapped_joker_ids: List[int] = field(default_factory=list)
    is_jolly_turn: bool = False
    jolly_card_id: int | None = None

    @property
    def human_hand(self) -> List[Card]:
        return self.players[Seat.HUMAN].hand

    @human_hand.setter
    def human_hand(self, cards: List[Card]) -> None:
        self.players[Seat.HUMAN].hand = cards

    @property
    def cpu_hand(self) -> List[Card]:
        return self.players[Seat.CPU].hand

    @cpu_hand.setter
    def cpu_hand(self, cards: List[Card]) -> None:
        self.players[Seat.CPU].hand = cards

    @property
    def active(self) -> PlayerState:
        """State of the seat whose turn it is."""

        return self.players[self.turn]

    @property
    def opponent(self) -> PlayerState:
        return self.players[self.turn.other]

    def reset_turn_state(self) -> None:
        """Clear every turn-scoped field."""

        self.turn_melds = []
        self.turn_points = 0
        self.turn_additions = []
        self.drawn_from_discard_id = None
        self.discard_card_used = False
        self.swapped_joker_ids = []
        self.is_jolly_turn = False
        self.jolly_card_id = None

    def iter_all_cards(self) -> Iterator[Card]:
        yield from self.deck
        for player in self.players.values():
            yield from player.hand
        for meld in self.melds:
            yield from meld
        yield from self.discard_pile
        if self.bottom_card is not None:
            yield self.bottom_card

    def card_count(self) -> int:
        """Total number of cards across every container."""

        return sum(1 for _ in self.iter_all_cards())

    def clone(self) -> "GameState":
        """Return an independent deep copy suitable for dry runs."""

        return copy.deepcopy(self)


def _cut_bottom(deck: Deck, depth: int) -> tuple[list[Card], Card | None]:
    """Apply the bottom Joker cut; return the cut Jokers and the bottom card."""

    cut = 0
    for card in deck.peek_bottom(depth):
        if not card.is_joker:
            break
        cut += 1
    cut_jokers = [deck.extract_bottom() for _ in range(cut)]
    return cut_jokers, deck.extract_bottom()


def init_game(
    debug: bool = False,
    *,
    difficulty: Difficulty = Difficulty.MEDIUM,
    seed: int | None = None,
    deal: DealPattern = DEFAULT_DEAL_PATTERN,
) -> GameState:
    """Deal a fresh game returning an initialised ``GameState``.

    Up to ``deal.cut_depth`` cards are inspected from the bottom of the shuffled
    deck: Jokers found there go straight to the human player, the first natural
    card is set aside as the bottom card used by the Jolly Hand. The human then
    receives cards up to ``deal.human_cards`` and the CPU ``deal.cpu_cards``.
    The first turn starts in the action phase: the human only discards.
    """

    rng = random.Random(seed)
    deck = Deck.full(rng)
    cut_jokers, bottom_card = _cut_bottom(deck, deal.cut_depth)

    human_hand = list(cut_jokers)
    cpu_hand: list[Card] = []
    while len(human_hand) < deal.human_cards or len(cpu_hand) < deal.cpu_cards:
        if len(human_hand) < deal.human_cards:
            card = deck.draw()
            if card is None:
                raise ValueError("insufficient cards in deck for requested hand size")
            human_hand.append(card)
        if len(cpu_hand) < deal.cpu_cards:
            card = deck.draw()
            if card is None:
                raise ValueError("insufficient cards in deck for requested hand size")
            cpu_hand.append(card)

    sort_hand(human_hand)
    sort_hand(cpu_hand)

    state = GameState(
        deck=deck,
        players={
            Seat.HUMAN: PlayerState(hand=human_hand),
            Seat.CPU: PlayerState(hand=cpu_hand),
        },
        bottom_card=bottom_card,
        turn=Seat.HUMAN,
        phase=TurnPhase.ACTION,
        round=1,
        difficulty=difficulty,
        debug=debug,
    )

    if debug:
        logger.info("Cut %d Joker(s) to the human hand", len(cut_jokers))
        logger.info("Human: %s", format_cards(human_hand))
        logger.info("CPU: %s", format_cards(cpu_hand))
        logger.info("Bottom card: %s", bottom_card.label() if bottom_card else "-")
    return state
