from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
import random
import secrets


MIN_RANK = 2
MAX_RANK = 14
INVALID_RANK = 0  # во что превращается нераспознанный ввод

FACE_LABELS = {11: "J", 12: "Q", 13: "K", 14: "A"}
FACE_ALIASES = {
    "j": 11, "jack": 11,
    "q": 12, "queen": 12,
    "k": 13, "king": 13,
    "a": 14, "ace": 14,
}


class Suit(str, Enum):
    HEART = "♥"
    DIAMOND = "♦"
    SPADE = "♠"
    CLOVER = "♣"

    @staticmethod
    def all_suits() -> List["Suit"]:
        # Порядок показа: червы, бубны, пики, трефы
        return [Suit.HEART, Suit.DIAMOND, Suit.SPADE, Suit.CLOVER]

    @property
    def order(self) -> int:
        return Suit.all_suits().index(self)


def all_ranks() -> List[int]:
    return list(range(MIN_RANK, MAX_RANK + 1))


def is_valid_rank(rank: int) -> bool:
    return MIN_RANK <= rank <= MAX_RANK


def rank_label(rank: int) -> str:
    return FACE_LABELS.get(rank, str(rank))


def parse_rank(s: str) -> int:
    """Текст игрока → ранг. Всё нераспознанное превращается в INVALID_RANK."""
    s = s.strip().lower()
    if s.isdecimal():
        # диапазон проверяет GameState.resolve, здесь только разбор;
        # длинные числа рангом быть не могут
        return int(s) if len(s) <= 2 else INVALID_RANK
    return FACE_ALIASES.get(s, INVALID_RANK)


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: int

    @property
    def label(self) -> str:
        return f"{self.suit.value}{rank_label(self.rank)}"

    def sort_key(self):
        return (self.suit.order, self.rank)


@dataclass(frozen=True)
class Book:
    rank: int

    @property
    def label(self) -> str:
        return rank_label(self.rank)


@dataclass
class Player:
    name: str
    is_cpu: bool = False
    hand: List[Card] = field(default_factory=list)
    books: List[Book] = field(default_factory=list)

    def give(self, cards: List[Card]):
        self.hand.extend(cards)

    def count_of(self, rank: int) -> int:
        return sum(1 for c in self.hand if c.rank == rank)

    def has_rank(self, rank: int) -> bool:
        return any(c.rank == rank for c in self.hand)

    def take_rank(self, rank: int) -> List[Card]:
        # Отдаём все карты ранга и убираем их из руки
        taken = [c for c in self.hand if c.rank == rank]
        self.hand = [c for c in self.hand if c.rank != rank]
        return taken

    def check_for_books(self) -> List[Book]:
        """
        Каждый ранг, которого в руке ровно 4 карты, уходит в новую книгу.
        Возвращает книги, созданные этим вызовом (может быть пусто).
        """
        counts = Counter(c.rank for c in self.hand)
        new_books = [Book(rank=r) for r in sorted(counts) if counts[r] == 4]
        for book in new_books:
            self.books.append(book)
            self.take_rank(book.rank)
        return new_books

    def sorted_hand(self) -> List[Card]:
        return sorted(self.hand, key=Card.sort_key)

    def hand_labels(self) -> List[str]:
        return [c.label for c in self.sorted_hand()]

    @property
    def score(self) -> int:
        return len(self.books)


class DeckExhausted(ValueError):
    def __init__(self, wanted: int, remaining: int):
        self.wanted = wanted
        self.remaining = remaining
        super().__init__(f"Deck has {remaining} card(s), {wanted} requested.")


def make_rng(seed: Optional[int] = None) -> random.Random:
    # Без сида берём системный CSPRNG, с сидом игра воспроизводима
    if seed is None:
        return secrets.SystemRandom()
    return random.Random(seed)


class Deck:
    """Колода из 52 карт, карты достаются случайным выбором без возврата."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or make_rng()
        self.cards: List[Card] = [Card(suit=s, rank=r) for s in Suit.all_suits() for r in all_ranks()]

    def __len__(self) -> int:
        return len(self.cards)

    def draw_random(self, n: int = 1) -> List[Card]:
        if n <= 0:
            return []
        if n > len(self.cards):
            raise DeckExhausted(n, len(self.cards))
        return [self.cards.pop(self.rng.randrange(len(self.cards))) for _ in range(n)]
