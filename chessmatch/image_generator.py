"""Static board images rendered with Pillow.

Used for PNG export of an empty board or of a position given as FEN.
"""
import logging
from typing import Optional

import chess
from PIL import Image, ImageDraw, ImageFont

from chessmatch.constants import DARK_RGB, EXPORT_SQUARE_SIZE, LIGHT_RGB, PIECE_UNICODE

logger = logging.getLogger(__name__)

_FONT_CANDIDATES = ('DejaVuSans.ttf', 'seguisym.ttf', 'arial.ttf')


def _load_font(size: int):
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.debug('No TrueType font with chess glyphs found, using default font')
    return ImageFont.load_default()


def create_piece_image(piece_symbol: str, size: int = 48) -> Image.Image:
    """Create a simple disc with the piece glyph drawn in the center."""
    white_fill = (255, 255, 255)
    black_fill = (30, 30, 30)
    is_white = piece_symbol.isupper()
    fill_color = white_fill if is_white else black_fill
    outline_color = black_fill if is_white else white_fill

    img = Image.new('RGBA', (size, size), (255, 255, 255, 0))
    draw = ImageDraw.Draw(img)
    margin = max(2, size // 24)
    draw.ellipse([margin, margin, size - margin, size - margin], fill=fill_color,
                 outline=outline_color, width=max(1, size // 16))

    font = _load_font(int(size * 0.7))
    glyph = PIECE_UNICODE.get(piece_symbol, piece_symbol)
    if not isinstance(font, ImageFont.FreeTypeFont):
        # bitmap fallback fonts only cover latin-1
        glyph = piece_symbol.upper()
    bbox = draw.textbbox((0, 0), glyph, font=font)
    x = (size - (bbox[2] - bbox[0])) // 2 - bbox[0]
    y = (size - (bbox[3] - bbox[1])) // 2 - bbox[1]
    draw.text((x, y), glyph, fill=outline_color, font=font)
    return img


def render_board(square_size: int = EXPORT_SQUARE_SIZE, board: Optional[chess.Board] = None) -> Image.Image:
    """Render an 8x8 board, a1 at the bottom left, with pieces if ``board`` is given."""
    side = square_size * 8
    img = Image.new('RGB', (side, side), LIGHT_RGB)
    draw = ImageDraw.Draw(img)
    for rank in range(8):
        for file in range(8):
            if (rank + file) % 2 == 0:
                color = DARK_RGB
            else:
                color = LIGHT_RGB
            x0 = file * square_size
            y0 = (7 - rank) * square_size
            draw.rectangle([x0, y0, x0 + square_size - 1, y0 + square_size - 1], fill=color)

    if board is not None:
        cache = {}
        inset = square_size // 10
        piece_size = square_size - 2 * inset
        for sq, piece in board.piece_map().items():
            sym = piece.symbol()
            if sym not in cache:
                cache[sym] = create_piece_image(sym, piece_size)
            x0 = chess.square_file(sq) * square_size + inset
            y0 = (7 - chess.square_rank(sq)) * square_size + inset
            img.paste(cache[sym], (x0, y0), cache[sym])
    return img


def export_board_png(path: str, fen: Optional[str] = None, square_size: int = EXPORT_SQUARE_SIZE) -> str:
    """Write the board (optionally a FEN position) to ``path`` as PNG."""
    board = chess.Board(fen) if fen else None
    img = render_board(square_size, board)
    img.save(path, format='PNG')
    logger.info('Board image written to %s', path)
    return path
