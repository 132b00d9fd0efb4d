from __future__ import annotations
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Deque, Iterator, List, Optional, Tuple
import logging

from .models import (
    Book, Card, Deck, Player, all_ranks, is_valid_rank, make_rng, rank_label,
)

logger = logging.getLogger("gofish.game")

HAND_SIZE = 7
TOTAL_BOOKS = len(all_ranks())  # 13
CPU_NAME = "Computer"


@dataclass(frozen=True)
class Event:
    turn: int
    text: str

    def __str__(self) -> str:
        return f"[{self.turn}] {self.text}"


class EventLog:
    """События для экрана: очищается при смене хода, лишнее вытесняется само."""

    def __init__(self, size: int = 8):
        self._events: Deque[Event] = deque(maxlen=size)

    def add(self, turn: int, text: str):
        self._events.append(Event(turn, text))
        logger.debug("event [%s] %s", turn, text)

    def clear(self):
        self._events.clear()

    def recent(self, n: int) -> List[Event]:
        return list(self._events)[-n:] if n > 0 else []

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)


class Outcome(str, Enum):
    TRANSFER = "transfer"      # соперник отдал карты, ход остаётся
    GO_FISH = "go_fish"        # взял карту из колоды, ход переходит
    DECK_EMPTY = "deck_empty"  # колода пуста, ход переходит без добора
    INVALID = "invalid"        # запрос отклонён, ход остаётся


@dataclass
class TurnResult:
    player: str
    rank: int
    outcome: Outcome
    cards: List[Card] = field(default_factory=list)
    reason: str = ""

    @property
    def advanced(self) -> bool:
        return self.outcome in (Outcome.GO_FISH, Outcome.DECK_EMPTY)


def choose_cpu_rank(player: Player) -> Optional[int]:
    # Ранг с наименьшим числом карт в руке; при равенстве младший
    counts = Counter(c.rank for c in player.hand)
    if not counts:
        return None
    return min(counts, key=lambda r: (counts[r], r))


@dataclass
class GameState:
    players: List[Player] = field(default_factory=list)
    seed: Optional[int] = None
    log_size: int = 8
    started: bool = False
    current_idx: int = 0  # индекс в self.players
    turn: int = 1
    deck: Deck = field(init=False)
    log: EventLog = field(init=False)

    def __post_init__(self):
        self.deck = Deck(make_rng(self.seed))
        self.log = EventLog(self.log_size)

    # --- Игроки ---
    def add_player(self, name: str, is_cpu: bool = False) -> Player:
        if self.started:
            raise ValueError("Game already started.")
        if len(self.players) >= 2:
            raise ValueError("Go Fish here is played by exactly two players.")
        player = Player(name=name, is_cpu=is_cpu)
        self.players.append(player)
        return player

    def current_player(self) -> Player:
        return self.players[self.current_idx]

    def opponent(self) -> Player:
        return self.players[1 - self.current_idx]

    def human(self) -> Optional[Player]:
        return next((p for p in self.players if not p.is_cpu), None)

    # --- Раздача и старт ---
    def start(self):
        if self.started:
            raise ValueError("Game already started.")
        if len(self.players) != 2:
            raise ValueError("Need exactly 2 players.")
        for p in self.players:
            p.give(self.deck.draw_random(HAND_SIZE))
        self.current_idx = 0
        self.turn = 1
        self.started = True
        logger.info("Dealt %d cards to %s, %d left in deck",
                    HAND_SIZE, ", ".join(p.name for p in self.players), len(self.deck))
        self.log.add(self.turn, f"Dealt {HAND_SIZE} cards each. {self.current_player().name} starts.")

    # --- Книги и итоги ---
    def check_books(self) -> List[Tuple[Player, Book]]:
        found = []
        for p in self.players:
            for book in p.check_for_books():
                found.append((p, book))
                logger.info("%s completed a book of %s", p.name, book.label)
                self.log.add(self.turn, f"{p.name} completes a book of {book.label}s!")
        return found

    def total_books(self) -> int:
        return sum(p.score for p in self.players)

    def standings(self) -> List[Player]:
        return sorted(self.players, key=lambda p: (-p.score, p.name))

    def is_over(self) -> bool:
        return self.total_books() >= TOTAL_BOOKS

    def winner(self) -> Optional[Player]:
        if not self.is_over():
            return None
        return self.standings()[0]

    def cards_accounted(self) -> int:
        return len(self.deck) + sum(len(p.hand) + 4 * p.score for p in self.players)

    # --- Ход ---
    def _advance(self, text: str):
        # Ход перешёл: старые события стираются, остаётся только итог закончившегося хода
        ended = self.turn
        self.log.clear()
        self.log.add(ended, text)
        self.current_idx = 1 - self.current_idx
        self.turn += 1

    def _check_request(self, player: Player, rank: int):
        if not is_valid_rank(rank):
            raise ValueError("rank must be 2-10, J, Q, K or A")
        # Просить можно только ранг, который есть у себя (компьютеру это гарантировано)
        if not player.is_cpu and not player.has_rank(rank):
            raise ValueError(f"you hold no {rank_label(rank)}")

    def refill_empty_hand(self) -> bool:
        """
        Пустая рука в начале хода: берём карту из колоды и ходим дальше.
        Если и колода пуста, ход переходит сопернику. True, если карта взята.
        """
        player = self.current_player()
        if player.hand:
            return False
        if len(self.deck):
            player.give(self.deck.draw_random(1))
            self.log.add(self.turn, f"{player.name} has no cards and draws one.")
            return True
        self._advance(f"{player.name} has no cards, turn passes.")
        return False

    def resolve(self, rank: int) -> TurnResult:
        if not self.started:
            raise ValueError("Game not started.")
        player = self.current_player()
        opponent = self.opponent()

        try:
            self._check_request(player, rank)
        except ValueError as e:
            self.log.add(self.turn, f"{player.name} cannot ask: {e}.")
            return TurnResult(player.name, rank, Outcome.INVALID, reason=str(e))

        label = rank_label(rank)
        taken = opponent.take_rank(rank)
        if taken:
            player.give(taken)
            logger.info("%s took %d x %s from %s", player.name, len(taken), label, opponent.name)
            self.log.add(self.turn, f"{player.name} asks for {label}: {opponent.name} hands over "
                                    f"{', '.join(c.label for c in taken)}. Go again!")
            return TurnResult(player.name, rank, Outcome.TRANSFER, cards=taken)

        if len(self.deck):
            drawn = self.deck.draw_random(1)
            player.give(drawn)
            logger.info("%s asked for %s, go fish (%d left)", player.name, label, len(self.deck))
            # Карту компьютера человеку не показываем
            what = "a card" if player.is_cpu else drawn[0].label
            text = f"{player.name} asks for {label}: Go Fish! Draws {what}."
            result = TurnResult(player.name, rank, Outcome.GO_FISH, cards=drawn)
        else:
            logger.info("%s asked for %s, deck is empty", player.name, label)
            text = f"{player.name} asks for {label}: Go Fish! The deck is empty."
            result = TurnResult(player.name, rank, Outcome.DECK_EMPTY)

        self._advance(text)
        return result

    def play_cpu_turn(self) -> TurnResult:
        player = self.current_player()
        if not player.is_cpu:
            raise ValueError("Not the computer's turn.")
        rank = choose_cpu_rank(player)
        if rank is None:
            raise ValueError("Computer has no cards to ask with.")
        return self.resolve(rank)
