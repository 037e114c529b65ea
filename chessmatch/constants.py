"""Shared constants for the chessmatch project."""
from typing import Dict, Tuple

PIECE_UNICODE = {
    'P': '♙', 'N': '♘', 'B': '♗', 'R': '♖', 'Q': '♕', 'K': '♔',
    'p': '♟', 'n': '♞', 'b': '♝', 'r': '♜', 'q': '♛', 'k': '♚',
}

# Board colors
LIGHT_COLOR = '#F0D9B5'
DARK_COLOR = '#B58863'
SELECTED_COLOR = '#AAFF88'
LEGAL_MOVE_COLOR = '#88FFDD'
CAPTURE_COLOR = '#FF8888'
LAST_MOVE_COLOR = '#FFEB99'
CHECK_COLOR = '#C83232'
PANEL_BG = '#1E1E1E'
PANEL_FG = '#FFFFFF'

# RGB variants for Pillow rendering
LIGHT_RGB: Tuple[int, int, int] = (237, 214, 176)
DARK_RGB: Tuple[int, int, int] = (184, 135, 98)

# Board dimensions
SQUARE_SIZE = 60
EXPORT_SQUARE_SIZE = 120

# Engine defaults
DEFAULT_ELO = 1200
MIN_ELO = 800
MAX_ELO = 2000
DEFAULT_THINK_TIME_MS = 300
HANDSHAKE_TIMEOUT = 10.0
SEARCH_GRACE = 10.0
MAX_ENGINE_FAILURES = 3

# Timer presets (label -> seconds, None = no timer)
TIMER_PRESETS: Dict[str, object] = {
    'No Timer': None,
    '3 min': 180,
    '5 min': 300,
}

# UI loop
FRAME_INTERVAL_MS = 50

PROMOTION_LETTERS = ('q', 'r', 'b', 'n')
