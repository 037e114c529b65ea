"""chessmatch: play chess against a UCI engine.

The match controller reconciles clicks, a background engine search and the
clock into one game state; python-chess is the rules engine.
"""

from chessmatch.chess_clock import ChessClock
from chessmatch.engine_adapter import (EngineAdapter, EngineBusyError, EngineError, EngineProtocolError,
                                       EngineStartError)
from chessmatch.match_controller import (MatchController, MatchSettings, MatchSnapshot, PendingPromotion,
                                         TurnState)

__all__ = [
    "ChessClock",
    "EngineAdapter",
    "EngineBusyError",
    "EngineError",
    "EngineProtocolError",
    "EngineStartError",
    "MatchController",
    "MatchSettings",
    "MatchSnapshot",
    "PendingPromotion",
    "TurnState",
]

__version__ = "0.1.0"
