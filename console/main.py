from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional
import logging
import os
import time

from dotenv import load_dotenv

from gofish.game import CPU_NAME, GameState
from gofish.models import Player, parse_rank, rank_label
from console.screen import RESET, Screen

logger = logging.getLogger("console")

PROMPT = "Ask for a rank (2-10, J, Q, K, A; ?help): "
HELP_TEXT = "Type 2-10, J/Jack, Q/Queen, K/King or A/Ace. ?hand shows your hand, ?deck the deck size."


@dataclass
class Settings:
    log_level: str = "WARNING"
    log_file: Optional[str] = None
    seed: Optional[int] = None
    player_name: str = "Player"
    cpu_delay: float = 0.8
    log_size: int = 8


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise SystemExit(f"{name} must be a number, got {raw!r}. See .env.example")


def load_settings() -> Settings:
    settings = Settings(
        log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        log_file=os.getenv("GOFISH_LOG_FILE") or None,
        seed=_env_number("GOFISH_SEED", int, None),
        player_name=os.getenv("GOFISH_PLAYER_NAME") or "Player",
        cpu_delay=_env_number("GOFISH_CPU_DELAY", float, 0.8),
        log_size=_env_number("GOFISH_LOG_SIZE", int, 8),
    )
    if settings.cpu_delay < 0:
        raise SystemExit("GOFISH_CPU_DELAY must not be negative.")
    if settings.log_size < 1:
        raise SystemExit("GOFISH_LOG_SIZE must be at least 1.")
    return settings


def setup_logging(settings: Settings):
    # С файлом лога экран не засоряется записями
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        filename=settings.log_file,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def read_line(prompt: str = "") -> str:
    try:
        return input(prompt)
    except (EOFError, OSError) as e:
        # Без ввода игра продолжаться не может
        logger.error("Console input failed: %r", e)
        raise SystemExit(f"{RESET}\nUnable to read input, exiting.")


def handle_command(text: str, state: GameState) -> bool:
    """?-команды не тратят ход. True, если текст был командой."""
    cmd = text.strip().lower()
    if not cmd.startswith("?"):
        return False
    human = state.human()
    if cmd == "?hand":
        labels = human.hand_labels() if human else []
        state.log.add(state.turn, "Your hand: " + (", ".join(labels) or "(empty)"))
    elif cmd in ("?deck", "?deck_len"):
        state.log.add(state.turn, f"Deck length: {len(state.deck)}")
    elif cmd == "?help":
        state.log.add(state.turn, HELP_TEXT)
    else:
        state.log.add(state.turn, f"Unknown command {cmd}. {HELP_TEXT}")
    return True


def read_player_request(state: GameState, read: Callable[[str], str] = read_line) -> Optional[int]:
    """Ранг от человека; INVALID_RANK для мусора, None если была ?-команда."""
    text = read(PROMPT)
    if handle_command(text, state):
        return None
    rank = parse_rank(text)
    logger.debug("human typed %r -> %s", text, rank_label(rank))
    return rank


def run_game(state: GameState, screen: Screen, read: Callable[[str], str] = read_line,
             cpu_delay: float = 0.0) -> Player:
    human = state.human()
    while True:
        state.check_books()
        standings = state.standings()
        if state.is_over():
            winner = state.winner()
            logger.info("Game over after %d turns, winner %s with %d books",
                        state.turn, winner.name, winner.score)
            screen.game_over(winner, standings)
            return winner

        if not state.current_player().hand:
            state.refill_empty_hand()
            continue

        screen.render(
            deck_size=len(state.deck),
            standings=standings,
            hand_labels=human.hand_labels() if human else [],
            events=list(state.log),
        )

        if state.current_player().is_cpu:
            if cpu_delay:
                time.sleep(cpu_delay)
            state.play_cpu_turn()
            continue

        rank = read_player_request(state, read)
        if rank is None:
            continue
        state.resolve(rank)


def main():
    load_dotenv()
    settings = load_settings()
    setup_logging(settings)

    screen = Screen()
    state = None
    try:
        print("Welcome to Go Fish")
        name = read_line("Please enter your name: ").strip() or settings.player_name

        state = GameState(seed=settings.seed, log_size=settings.log_size)
        state.add_player(name)
        state.add_player(CPU_NAME, is_cpu=True)
        state.start()
        logger.info("Starting Go Fish: %s vs %s (seed=%s)", name, CPU_NAME, settings.seed)

        run_game(state, screen, cpu_delay=settings.cpu_delay)
    except KeyboardInterrupt:
        screen.out.write(RESET + "\nBye!\n")
        logger.info("Interrupted at turn %s", state.turn if state else "-")


if __name__ == "__main__":
    main()
