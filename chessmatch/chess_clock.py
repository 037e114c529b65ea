"""Chess clock driven by the match loop's ticks."""
import time
from typing import Dict, Optional

import chess


def format_time(seconds: float) -> str:
    """Format remaining seconds as MM:SS, clamping negatives to zero."""
    if seconds < 0:
        seconds = 0
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"


class ChessClock:
    """Per-side remaining time. Only the side to move is charged.

    The clock has no timer of its own: the owner calls ``tick`` once per
    frame with the color to move. The first tick after a turn change only
    moves the reference timestamp, so the new side is never charged for
    time that passed before it was its turn.
    """

    def __init__(self, initial_seconds: float = 600, enabled: bool = False):
        self.initial_seconds = float(initial_seconds)
        self.enabled = enabled
        self.paused = False
        self._remaining: Dict[bool, float] = {}
        self.last_tick: Optional[float] = None
        self.last_turn: Optional[bool] = None
        self.start(initial_seconds, enabled)

    def start(self, initial_seconds: float, enabled: bool) -> None:
        """Give both sides the same allotment and forget any previous tick."""
        self.initial_seconds = float(initial_seconds)
        self.enabled = enabled
        self.paused = False
        self._remaining = {chess.WHITE: self.initial_seconds, chess.BLACK: self.initial_seconds}
        self.last_tick = None
        self.last_turn = None

    def tick(self, side_to_move: bool, now: Optional[float] = None) -> None:
        if not self.enabled or self.paused:
            return
        if now is None:
            now = time.monotonic()

        if self.last_tick is None or self.last_turn != side_to_move:
            self.last_tick = now
            self.last_turn = side_to_move
            return

        delta = max(0.0, now - self.last_tick)
        self.last_tick = now
        self._remaining[side_to_move] = max(0.0, self._remaining[side_to_move] - delta)

    def pause(self) -> None:
        self.paused = True
        self.last_tick = None

    def resume(self) -> None:
        # last_tick stays None so the next tick resynchronizes
        self.paused = False

    def remaining(self, color: bool) -> float:
        return max(0.0, self._remaining[color])

    def is_flag_fallen(self, color: bool) -> bool:
        return self.enabled and self.remaining(color) <= 0.0

    def get_time_string(self, color: bool) -> str:
        """Get formatted time string for display."""
        return format_time(self.remaining(color))
