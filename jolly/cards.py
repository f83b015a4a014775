"""Card abstractions and helpers for Jolly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, MutableSequence, Sequence


class Suit(str, Enum):
    """Enumeration of the four suits plus the Joker pseudo-suit."""

    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"
    SPADES = "♠"
    JOKER = "JK"

    @classmethod
    def standard(cls) -> tuple["Suit", ...]:
        """Return the four real suits in canonical order."""

        return (cls.HEARTS, cls.DIAMONDS, cls.CLUBS, cls.SPADES)

    @property
    def index(self) -> int:
        """Position of the suit in canonical order (Jokers sort last)."""

        if self is Suit.JOKER:
            return len(Suit.standard())
        return Suit.standard().index(self)


class Rank(str, Enum):
    """Enumeration of ranks ordered from 2 up to Ace."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"
    JOKER = "Joker"

    @classmethod
    def ordered(cls) -> tuple["Rank", ...]:
        """Return the natural ranks in run order (Ace high)."""

        return (
            cls.TWO,
            cls.THREE,
            cls.FOUR,
            cls.FIVE,
            cls.SIX,
            cls.SEVEN,
            cls.EIGHT,
            cls.NINE,
            cls.TEN,
            cls.JACK,
            cls.QUEEN,
            cls.KING,
            cls.ACE,
        )

    @property
    def order(self) -> int:
        """Index of the rank in run order; Jokers sort after every rank."""

        if self is Rank.JOKER:
            return 99
        return Rank.ordered().index(self)


ACE_LOW_ORDER = -1
FACE_VALUE = 10


def rank_value(rank: Rank) -> int:
    """Return the point value of ``rank``: face number, 10 for J/Q/K/A."""

    if rank is Rank.JOKER:
        return 0
    if rank in (Rank.JACK, Rank.QUEEN, Rank.KING, Rank.ACE):
        return FACE_VALUE
    return int(rank.value)


def rank_at(order: int) -> Rank:
    """Return the rank sitting at run position ``order`` (``-1`` is a low Ace)."""

    if order == ACE_LOW_ORDER:
        return Rank.ACE
    return Rank.ordered()[order]


def position_value(order: int) -> int:
    """Return the points a run position is worth (low Ace counts 1)."""

    if order == ACE_LOW_ORDER:
        return 1
    return rank_value(rank_at(order))


@dataclass(frozen=True, slots=True)
class Representation:
    """Concrete identity a Joker impersonates inside a meld."""

    rank: Rank
    suit: Suit

    def label(self) -> str:
        return f"{self.rank.value}{self.suit.value}"


@dataclass(slots=True, eq=False)
class Card:
    """A physical card: immutable identity plus mutable table annotations."""

    rank: Rank
    suit: Suit
    id: int
    selected: bool = False
    representation: Representation | None = None

    @classmethod
    def from_code(cls, code: str, card_id: int) -> "Card":
        """Build a card from a label such as ``"10♥"`` or ``"JK"``."""

        code = code.strip()
        if code.upper() in ("JK", "JOKER"):
            return cls(Rank.JOKER, Suit.JOKER, card_id)
        suit = Suit(code[-1])
        rank = Rank(code[:-1].upper())
        if suit is Suit.JOKER or rank is Rank.JOKER:
            raise ValueError(f"invalid card code '{code}'")
        return cls(rank, suit, card_id)

    @property
    def is_joker(self) -> bool:
        """Return ``True`` when the card is a Joker."""

        return self.suit is Suit.JOKER

    def value(self) -> int:
        """Context-free point value (Aces count high, Jokers 0)."""

        return rank_value(self.rank)

    def order(self) -> int:
        return self.rank.order

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        if self.is_joker:
            if self.representation is not None:
                return f"JK({self.representation.label()})"
            return "JK"
        return f"{self.rank.value}{self.suit.value}"

    def __repr__(self) -> str:
        return f"Card({self.label()}#{self.id})"


DECK_COPIES = 2
JOKERS_PER_COPY = 2


def iter_full_deck() -> Iterator[Card]:
    """Yield every physical card of the two-deck Jolly pack with unique ids."""

    card_id = 0
    for _ in range(DECK_COPIES):
        for suit in Suit.standard():
            for rank in Rank.ordered():
                yield Card(rank, suit, card_id)
                card_id += 1
        for _ in range(JOKERS_PER_COPY):
            yield Card(Rank.JOKER, Suit.JOKER, card_id)
            card_id += 1


def sort_key(card: Card) -> tuple[int, int, int]:
    return (card.suit.index, card.order(), card.id)


def sort_hand(hand: MutableSequence[Card]) -> None:
    """Sort ``hand`` in place by suit, then rank order; Jokers go last."""

    hand[:] = sorted(hand, key=sort_key)


def cards_from_codes(codes: Iterable[str], first_id: int = 0) -> list[Card]:
    """Build cards from labels, numbering ids from ``first_id``."""

    return [Card.from_code(code, first_id + offset) for offset, code in enumerate(codes)]


def format_cards(cards: Sequence[Card]) -> str:
    return " ".join(card.label() for card in cards)
