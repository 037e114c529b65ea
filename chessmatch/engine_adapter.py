"""Adapter around one external UCI engine process.

python-chess runs the UCI conversation (``chess.engine.SimpleEngine``); this
module adds the handshake check, bounded waits, a single-flight guard and
maps python-chess failures onto the adapter's own exception types.
"""
import asyncio
import concurrent.futures
import logging
import os
import platform
import shutil
import threading
from typing import Optional, Sequence

import chess
import chess.engine

from chessmatch.constants import HANDSHAKE_TIMEOUT, SEARCH_GRACE

logger = logging.getLogger(__name__)

# What SimpleEngine raises when the process dies, misbehaves or is too slow.
_ENGINE_FAILURES = (chess.engine.EngineError, asyncio.TimeoutError, concurrent.futures.TimeoutError)


class EngineError(Exception):
    """Base class for engine adapter failures."""


class EngineStartError(EngineError):
    """The engine could not be launched or did not complete the handshake."""


class EngineProtocolError(EngineError):
    """The engine stopped answering, closed its output or sent nonsense."""


class EngineBusyError(EngineError):
    """A best-move query was issued while another one is outstanding."""


def _describe(exc: BaseException) -> str:
    if isinstance(exc, (asyncio.TimeoutError, concurrent.futures.TimeoutError)):
        return 'timed out'
    if isinstance(exc, chess.engine.EngineTerminatedError):
        return f'engine process terminated ({exc})'
    return str(exc) or type(exc).__name__


def detect_engine(base_dir: str) -> Optional[str]:
    """Find a Stockfish binary in <base_dir>/engines, falling back to PATH."""
    engines_dir = os.path.join(base_dir, 'engines')
    exe_name = 'stockfish'
    if platform.system().lower().startswith('windows'):
        exe_name = 'stockfish.exe'
    if os.path.isdir(engines_dir):
        path = os.path.join(engines_dir, exe_name)
        if os.path.exists(path):
            return path
        for f in sorted(os.listdir(engines_dir)):
            if f.lower().startswith('stockfish'):
                return os.path.join(engines_dir, f)
    return shutil.which('stockfish')


class EngineAdapter:
    """Owns the lifecycle of a single engine process."""

    def __init__(self, handshake_timeout: float = HANDSHAKE_TIMEOUT, search_grace: float = SEARCH_GRACE):
        self.handshake_timeout = handshake_timeout
        self.search_grace = search_grace
        self.engine: Optional[chess.engine.SimpleEngine] = None
        self.path: Optional[str] = None
        self.identity = ''
        self._query_lock = threading.Lock()

    def __enter__(self) -> 'EngineAdapter':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    @property
    def is_running(self) -> bool:
        return self.engine is not None and not self.engine.returncode.done()

    def start(self, path: str, args: Sequence[str] = ()) -> None:
        """Launch the engine and perform the uci/isready handshake.

        Raises EngineStartError when the process cannot be spawned or a
        handshake marker does not arrive within ``handshake_timeout``.
        """
        self.shutdown()
        command = [path, *args] if args else path
        try:
            engine = chess.engine.SimpleEngine.popen_uci(command, timeout=self.handshake_timeout)
        except OSError as e:
            raise EngineStartError(f'Failed to launch engine {path!r}: {e}') from e
        except _ENGINE_FAILURES as e:
            raise EngineStartError(f'Engine handshake failed waiting for uciok: {_describe(e)}') from e

        self.engine = engine
        self.path = path
        try:
            engine.ping()
        except _ENGINE_FAILURES as e:
            self.shutdown()
            raise EngineStartError(f'Engine handshake failed waiting for readyok: {_describe(e)}') from e

        # every later call is bounded by its own budget plus this grace
        engine.timeout = self.search_grace
        self.identity = engine.id.get('name', '')
        logger.info('Engine started: %s%s', path, f' ({self.identity})' if self.identity else '')

    def configure_strength(self, elo: int) -> None:
        """Limit playing strength, clamped to the range the engine declares."""
        engine = self._require_engine()
        option = engine.options.get('UCI_Elo')
        if option is None or 'UCI_LimitStrength' not in engine.options:
            logger.warning('Engine %s does not support UCI_Elo; playing at full strength', self.identity or self.path)
            return
        elo = int(elo)
        if option.min is not None:
            elo = max(option.min, elo)
        if option.max is not None:
            elo = min(option.max, elo)
        try:
            engine.configure({'UCI_LimitStrength': True, 'UCI_Elo': elo})
        except _ENGINE_FAILURES as e:
            raise EngineProtocolError(f'Could not set strength: {_describe(e)}') from e

    def best_move(self, fen: str, think_time_ms: int) -> str:
        """Ask for the best move in ``fen`` and block until it arrives.

        Returns the move token in coordinate notation (``e2e4``, ``e7e8q``).
        No answer within ``think_time_ms / 1000 + search_grace`` seconds, a
        dead process or an unparsable reply raise EngineProtocolError.
        """
        if not self._query_lock.acquire(blocking=False):
            raise EngineBusyError('A best-move query is already in flight')
        try:
            engine = self._require_engine()
            try:
                board = chess.Board(fen)
            except ValueError as e:
                raise EngineProtocolError(f'Invalid position {fen!r}: {e}') from e
            limit = chess.engine.Limit(time=think_time_ms / 1000.0)
            try:
                result = engine.play(board, limit)
            except _ENGINE_FAILURES as e:
                raise EngineProtocolError(f'No best move: {_describe(e)}') from e
            if result.move is None:
                raise EngineProtocolError('Engine answered without a move')
            return result.move.uci()
        finally:
            self._query_lock.release()

    def shutdown(self) -> None:
        """Stop the engine process. Safe to call more than once."""
        engine = self.engine
        self.engine = None
        if engine is None:
            return
        try:
            engine.quit()
        except _ENGINE_FAILURES as e:
            logger.debug('Engine quit failed (%s); closing transport', _describe(e))
        finally:
            engine.close()
            logger.info('Engine stopped: %s', self.path)

    def _require_engine(self) -> chess.engine.SimpleEngine:
        if self.engine is None:
            raise EngineProtocolError('Engine not started')
        return self.engine
