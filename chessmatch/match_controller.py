"""
Match Controller
================

Drives one game between a local human and an engine-driven opponent (or two
local humans). Three things happen at different speeds:

- square clicks and key presses arrive from the presentation loop,
- the engine searches on a background thread,
- the clock advances with wall time.

All of them meet in ``update()``, which the presentation loop calls once per
frame: tick the clock, absorb any finished engine result from the mailbox,
then start a new engine query if the engine is to move. The background
thread never touches match state; it only posts an ``EngineResult`` tagged
with the epoch it was dispatched under, and results from an older epoch
(a reset happened meanwhile) are thrown away.
"""
import logging
import queue
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple, Union

import chess

from chessmatch.chess_clock import ChessClock
from chessmatch.constants import (DEFAULT_ELO, DEFAULT_THINK_TIME_MS, MAX_ELO, MAX_ENGINE_FAILURES,
                                  MIN_ELO)
from chessmatch.engine_adapter import EngineError
from chessmatch.move_resolver import NO_MOVE, decode_token, is_promotion, legal_targets, resolve

logger = logging.getLogger(__name__)


class TurnState(Enum):
    AWAITING_INPUT = 'awaiting_input'
    PENDING_PROMOTION = 'pending_promotion'
    ENGINE_THINKING = 'engine_thinking'
    GAME_OVER = 'game_over'


@dataclass(frozen=True)
class PendingPromotion:
    from_square: int
    to_square: int


@dataclass(frozen=True)
class EngineResult:
    """What the engine worker hands back to the control loop."""
    epoch: int
    token: Optional[str] = None
    error: Optional[str] = None


@dataclass
class MatchSettings:
    """Options chosen before a match starts.

    clock_seconds of None disables the clock. With play_with_ai off both
    sides are human and no engine is needed.
    """
    play_with_ai: bool = True
    player_color: bool = chess.WHITE
    elo: int = DEFAULT_ELO
    think_time_ms: int = DEFAULT_THINK_TIME_MS
    clock_seconds: Optional[int] = None
    fen: Optional[str] = None

    @property
    def ai_color(self) -> Optional[bool]:
        if not self.play_with_ai:
            return None
        return not self.player_color

    def clamped_elo(self) -> int:
        return max(MIN_ELO, min(MAX_ELO, int(self.elo)))

    @classmethod
    def from_config(cls, config) -> 'MatchSettings':
        """Build settings from a ConfigManager (or anything with ``get``)."""
        color = str(config.get('player_color', 'white')).lower()
        clock_seconds = None
        if config.get('clock_enabled', False):
            clock_seconds = int(config.get('clock_time', 300))
        return cls(
            play_with_ai=bool(config.get('play_with_ai', True)),
            player_color=chess.BLACK if color == 'black' else chess.WHITE,
            elo=int(config.get('ai_elo', DEFAULT_ELO)),
            think_time_ms=int(config.get('think_time_ms', DEFAULT_THINK_TIME_MS)),
            clock_seconds=clock_seconds,
        )


@dataclass(frozen=True)
class MatchSnapshot:
    """Read-only view of the match for the presentation layer."""
    board: chess.Board
    fen: str
    history: Tuple[str, ...]
    history_lines: Tuple[str, ...]
    last_move: Optional[chess.Move]
    side_to_move: bool
    turn_state: TurnState
    selected_square: Optional[int]
    legal_targets: FrozenSet[int]
    pending_promotion: Optional[PendingPromotion]
    clock_enabled: bool
    white_time: float
    black_time: float
    white_time_text: str
    black_time_text: str
    check_square: Optional[int]
    game_over_reason: Optional[str]
    engine_color: Optional[bool]
    engine_identity: str = ''
    engine_error: Optional[str] = None
    flags_fallen: Tuple[bool, ...] = field(default=(False, False))


def format_moves(moves: Sequence[chess.Move]) -> List[str]:
    """Pair moves into numbered lines: ["1. e2e4 e7e5", "2. g1f3"]."""
    lines = []
    for i in range(0, len(moves), 2):
        line = f"{i // 2 + 1}. {moves[i].uci()}"
        if i + 1 < len(moves):
            line += f" {moves[i + 1].uci()}"
        lines.append(line)
    return lines


def game_result(board: chess.Board) -> Tuple[Optional[str], Optional[str]]:
    """Return (reason text, 'white'|'black'|'draw') for a finished position."""
    if board.is_checkmate():
        if board.turn == chess.WHITE:
            return 'Black wins by checkmate', 'black'
        return 'White wins by checkmate', 'white'
    if board.is_stalemate():
        return 'Draw by stalemate', 'draw'
    if board.is_insufficient_material():
        return 'Draw by insufficient material', 'draw'
    return None, None


def _color_name(color: bool) -> str:
    return 'White' if color == chess.WHITE else 'Black'


class MatchController:
    """Top-level state machine for a match.

    Every public method must be called from the control loop's thread.
    """

    def __init__(self, engine=None, settings: Optional[MatchSettings] = None,
                 clock: Optional[ChessClock] = None, config=None):
        self.engine = engine
        self.config = config
        self.clock = clock or ChessClock()
        self.settings = settings or MatchSettings(play_with_ai=engine is not None)
        self._check_engine(self.settings)

        self._mailbox: 'queue.Queue[EngineResult]' = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._in_flight = False
        self._epoch = 0
        self._pending_elo: Optional[int] = self.settings.clamped_elo() if self.settings.play_with_ai else None
        self.queries_dispatched = 0

        self.board = chess.Board()
        self.move_record: List[chess.Move] = []
        self.last_engine_error: Optional[str] = None
        self._state = TurnState.AWAITING_INPUT
        self._selected: Optional[int] = None
        self._targets: FrozenSet[int] = frozenset()
        self._pending: Optional[PendingPromotion] = None
        self._game_over_reason: Optional[str] = None
        self._engine_failures = 0
        self.reset()

    # -- read-only state ---------------------------------------------------

    @property
    def turn_state(self) -> TurnState:
        return self._state

    @property
    def pending_promotion(self) -> Optional[PendingPromotion]:
        return self._pending

    @property
    def selected_square(self) -> Optional[int]:
        return self._selected

    @property
    def game_over_reason(self) -> Optional[str]:
        return self._game_over_reason

    @property
    def query_in_flight(self) -> bool:
        return self._in_flight

    @property
    def epoch(self) -> int:
        return self._epoch

    def is_engine_turn(self) -> bool:
        ai_color = self.settings.ai_color
        return ai_color is not None and self.board.turn == ai_color

    # -- lifecycle ----------------------------------------------------------

    def new_match(self, settings: MatchSettings) -> None:
        """Replace the match settings and start a fresh match."""
        self._check_engine(settings)
        if settings.play_with_ai:
            self._pending_elo = settings.clamped_elo()
        self.settings = settings
        self.reset()

    def reset(self) -> None:
        """Discard the current match and start over with the same settings.

        Valid from any state. An engine query still running keeps the
        single-flight slot until its (now stale) result is drained.
        """
        self._epoch += 1
        fen = self.settings.fen
        self.board = chess.Board(fen) if fen else chess.Board()
        self.move_record = []
        self._selected = None
        self._targets = frozenset()
        self._pending = None
        self._game_over_reason = None
        self._engine_failures = 0
        self.last_engine_error = None
        seconds = self.settings.clock_seconds
        self.clock.start(seconds or 0, enabled=bool(seconds))
        logger.info('Match reset (epoch %d)', self._epoch)
        self._enter_next_turn()

    def shutdown(self) -> None:
        if self.engine is not None:
            self.engine.shutdown()

    # -- control loop -------------------------------------------------------

    def update(self, now: Optional[float] = None) -> None:
        """One frame: tick the clock, absorb engine results, re-trigger the engine."""
        if self._state is not TurnState.GAME_OVER:
            self.clock.tick(self.board.turn, now)
        self._drain_mailbox()
        if self._state is TurnState.AWAITING_INPUT and self.is_engine_turn():
            self._dispatch_engine_query()

    def join_engine_query(self, timeout: Optional[float] = None) -> bool:
        """Block until the running engine worker (if any) has posted its result."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    # -- inbound events -----------------------------------------------------

    def on_square_click(self, square: int) -> None:
        if self._state is not TurnState.AWAITING_INPUT or self.is_engine_turn():
            return
        piece = self.board.piece_at(square)
        own = piece is not None and piece.color == self.board.turn

        if self._selected is None:
            if own:
                self._select(square)
            return
        if square == self._selected:
            self._deselect()
            return
        if own:
            self._select(square)
            return

        from_square = self._selected
        if square in self._targets and is_promotion(self.board, from_square, square):
            self._deselect()
            self._pending = PendingPromotion(from_square, square)
            self._state = TurnState.PENDING_PROMOTION
            return

        move = resolve(self.board, from_square, square)
        self._deselect()
        if move is not NO_MOVE:
            self._apply(move)

    def on_promotion_pick(self, piece: Union[str, int]) -> bool:
        """Complete a pending promotion with ``piece`` ('q', chess.QUEEN, ...)."""
        if self._state is not TurnState.PENDING_PROMOTION or self._pending is None:
            return False
        pending = self._pending
        self._pending = None
        self._state = TurnState.AWAITING_INPUT
        move = resolve(self.board, pending.from_square, pending.to_square, piece)
        if move is NO_MOVE:
            return False
        self._apply(move)
        return True

    def on_cancel(self) -> None:
        if self._state is TurnState.PENDING_PROMOTION:
            self._pending = None
            self._state = TurnState.AWAITING_INPUT
        elif self._state is TurnState.AWAITING_INPUT:
            self._deselect()

    # -- snapshot -----------------------------------------------------------

    def snapshot(self) -> MatchSnapshot:
        board = self.board
        check_square = None
        if board.is_check() and not board.is_checkmate():
            check_square = board.king(board.turn)
        return MatchSnapshot(
            board=board.copy(),
            fen=board.fen(),
            history=tuple(mv.uci() for mv in self.move_record),
            history_lines=tuple(format_moves(self.move_record)),
            last_move=self.move_record[-1] if self.move_record else None,
            side_to_move=board.turn,
            turn_state=self._state,
            selected_square=self._selected,
            legal_targets=self._targets,
            pending_promotion=self._pending,
            clock_enabled=self.clock.enabled,
            white_time=self.clock.remaining(chess.WHITE),
            black_time=self.clock.remaining(chess.BLACK),
            white_time_text=self.clock.get_time_string(chess.WHITE),
            black_time_text=self.clock.get_time_string(chess.BLACK),
            check_square=check_square,
            game_over_reason=self._game_over_reason,
            engine_color=self.settings.ai_color,
            engine_identity=getattr(self.engine, 'identity', '') or '',
            engine_error=self.last_engine_error,
            flags_fallen=(self.clock.is_flag_fallen(chess.WHITE), self.clock.is_flag_fallen(chess.BLACK)),
        )

    # -- internals ----------------------------------------------------------

    def _check_engine(self, settings: MatchSettings) -> None:
        if settings.play_with_ai and self.engine is None:
            raise ValueError('An engine adapter is required to play against the engine')

    def _select(self, square: int) -> None:
        self._selected = square
        self._targets = frozenset(legal_targets(self.board, square))

    def _deselect(self) -> None:
        self._selected = None
        self._targets = frozenset()

    def _apply(self, move: chess.Move) -> None:
        self.board.push(move)
        self.move_record.append(move)
        self._deselect()
        self._pending = None
        self._enter_next_turn(after_move=True)

    def _enter_next_turn(self, after_move: bool = False) -> None:
        reason, result = game_result(self.board)
        if reason is not None:
            # a start position that is already decided is not a played game
            self._finish(reason, result if after_move else None)
            return
        self._state = TurnState.AWAITING_INPUT
        if self.is_engine_turn():
            self._dispatch_engine_query()

    def _finish(self, reason: str, result: Optional[str]) -> None:
        """End the match; ``result`` ('white'|'black'|'draw') is recorded in the statistics."""
        self._state = TurnState.GAME_OVER
        self._game_over_reason = reason
        self._deselect()
        self._pending = None
        logger.info('Game over: %s', reason)
        if self.config is not None and result is not None:
            self.config.update_statistics(result)

    def _dispatch_engine_query(self) -> bool:
        """Start a background best-move query unless one is already running."""
        if self._in_flight or self._state is not TurnState.AWAITING_INPUT or not self.is_engine_turn():
            return False
        if self._pending_elo is not None:
            try:
                self.engine.configure_strength(self._pending_elo)
            except EngineError as e:
                self._record_engine_failure(f'Could not configure engine strength: {e}')
                return False
            self._pending_elo = None

        self._in_flight = True
        self._state = TurnState.ENGINE_THINKING
        self.queries_dispatched += 1
        self._worker = threading.Thread(
            target=self._run_query,
            args=(self._epoch, self.board.fen(), self.settings.think_time_ms),
            name='engine-query',
            daemon=True,
        )
        self._worker.start()
        return True

    def _run_query(self, epoch: int, fen: str, think_time_ms: int) -> None:
        # Runs on the worker thread: talk to the engine, post the outcome, nothing else.
        result = EngineResult(epoch, error='engine query did not complete')
        try:
            token = self.engine.best_move(fen, think_time_ms)
            result = EngineResult(epoch, token=token)
        except EngineError as e:
            result = EngineResult(epoch, error=str(e))
        except Exception as e:
            logger.exception('Unexpected error in engine query')
            result = EngineResult(epoch, error=repr(e))
        finally:
            self._mailbox.put(result)

    def _drain_mailbox(self) -> None:
        while True:
            try:
                result = self._mailbox.get_nowait()
            except queue.Empty:
                return
            self._in_flight = False
            if result.epoch != self._epoch or self._state is not TurnState.ENGINE_THINKING:
                logger.debug('Discarding stale engine result from epoch %d', result.epoch)
                continue
            self._absorb(result)

    def _absorb(self, result: EngineResult) -> None:
        self._state = TurnState.AWAITING_INPUT
        if result.error is None and result.token is not None:
            move = decode_token(self.board, result.token)
            if move is not NO_MOVE:
                self._engine_failures = 0
                self.last_engine_error = None
                self._apply(move)
                return
            error = f'Engine returned an unusable move {result.token!r}'
        else:
            error = result.error or 'engine returned no move'
        self._record_engine_failure(error)

    def _record_engine_failure(self, error: str) -> None:
        self._engine_failures += 1
        self.last_engine_error = error
        logger.warning('Engine failure %d/%d: %s', self._engine_failures, MAX_ENGINE_FAILURES, error)
        if self._engine_failures >= MAX_ENGINE_FAILURES:
            loser = self.board.turn
            winner = not loser
            self._finish(f'{_color_name(winner)} wins: engine failed to move',
                         'white' if winner == chess.WHITE else 'black')
