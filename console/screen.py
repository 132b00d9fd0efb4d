from __future__ import annotations
from typing import List, Optional, Sequence, TextIO, Tuple
import shutil
import sys

from gofish.game import Event
from gofish.models import Player, Suit

VERSION = "0.1.0"
TITLE = f"Go Fish v{VERSION}"

CSI = "\033["
RED = CSI + "31m" + CSI + "1m"  # червы и бубны
RESET = CSI + "0m"


def _fit(line: str, width: int) -> str:
    return line if len(line) <= width else line[: max(width - 1, 0)] + "…"


def wrap_labels(labels: Sequence[str], width: int) -> List[str]:
    # Раскладываем карты по строкам так, чтобы влезть в ширину терминала
    rows: List[str] = []
    row = ""
    for label in labels:
        piece = label if not row else " " + label
        if row and len(row) + len(piece) > width:
            rows.append(row)
            row = label
        else:
            row += piece
    if row:
        rows.append(row)
    return rows


class Screen:
    """Полноэкранная отрисовка партии ANSI-последовательностями."""

    def __init__(self, out: Optional[TextIO] = None, *, color: bool = True):
        self.out = out or sys.stdout
        self.color = color

    def clear(self):
        # home + clear
        self.out.write(CSI + "H" + CSI + "2J")

    def move(self, row_1: int, col_1: int):
        self.out.write(f"{CSI}{row_1};{col_1}H")

    def flush(self):
        self.out.flush()

    def get_size(self) -> Tuple[int, int]:
        s = shutil.get_terminal_size(fallback=(80, 24))
        return s.columns, s.lines

    def _paint(self, text: str) -> str:
        if not self.color:
            return text
        for suit in (Suit.HEART, Suit.DIAMOND):
            text = text.replace(suit.value, RED + suit.value + RESET)
        return text

    def _put(self, row_1: int, text: str, width: int):
        self.move(row_1, 1)
        self.out.write(self._paint(_fit(text, width)))

    def render(self, deck_size: int, standings: Sequence[Player],
               hand_labels: Sequence[str], events: Sequence[Event]):
        width, height = self.get_size()
        self.out.write(RESET)
        self.clear()

        top = [TITLE, "", f"Cards left in deck: {deck_size}", "", "Books:"]
        for place, p in enumerate(standings, start=1):
            books = " ".join(b.label for b in p.books)
            top.append(f"  {place}. {p.name}: {p.score}" + (f"  ({books})" if books else ""))
        top += ["", "Your hand:"]
        top += ["  " + r for r in wrap_labels(hand_labels, width - 2)] or ["  (empty)"]

        for row, line in enumerate(top, start=1):
            if row >= height:
                break
            self._put(row, line, width)

        # Лог прижат к низу, последняя строка остаётся под ввод
        room = max(height - len(top) - 2, 0)
        shown = list(events)[-room:] if room else []
        first_row = height - len(shown)
        for offset, event in enumerate(shown):
            self._put(first_row + offset, str(event), width)

        self.move(height, 1)
        self.flush()

    def game_over(self, winner: Player, standings: Sequence[Player]):
        self.out.write(RESET)
        self.clear()
        self.move(1, 1)
        lines = [
            "=" * 32,
            "           GAME OVER",
            "=" * 32,
            f"{winner.name} wins with {winner.score} books!",
            "",
        ]
        lines += [f"  {p.name}: {p.score}" for p in standings]
        self.out.write("\n".join(lines) + "\n")
        self.flush()
