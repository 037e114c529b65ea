import tkinter as tk
from typing import Callable, Dict, Optional

import chess

from chessmatch.constants import (CAPTURE_COLOR, CHECK_COLOR, DARK_COLOR, LAST_MOVE_COLOR, LEGAL_MOVE_COLOR,
                                  LIGHT_COLOR, PIECE_UNICODE, SELECTED_COLOR, SQUARE_SIZE)


class BoardView:
    """The 8x8 grid of canvases that shows a match snapshot.

    Responsibilities:
    - Create the canvas grid inside a provided container
    - Paint pieces and the selection / target / last-move / check highlights
    - Forward clicks as square indices through a provided callback
    """

    def __init__(self, parent: tk.Widget, on_click: Callable[[int], None]):
        self.parent = parent
        self.on_click = on_click
        self.canvases: Dict[int, tk.Canvas] = {}
        self.piece_items: Dict[int, Optional[int]] = {}
        self._build_grid()

    def _build_grid(self):
        for r in range(8):
            for c in range(8):
                sq = chess.square(c, 7 - r)
                canvas = tk.Canvas(self.parent, width=SQUARE_SIZE, height=SQUARE_SIZE,
                                   bg=self.base_color(sq), highlightthickness=0)
                canvas.grid(row=r, column=c)
                canvas.bind('<Button-1>', lambda e, s=sq: self.on_click(s))
                canvas.configure(cursor='hand2')
                self.canvases[sq] = canvas
                self.piece_items[sq] = None

    @staticmethod
    def base_color(square: int) -> str:
        r = 7 - chess.square_rank(square)
        c = chess.square_file(square)
        return LIGHT_COLOR if (r + c) % 2 == 0 else DARK_COLOR

    def square_color(self, snapshot, square: int) -> str:
        """Pick the background for one square; later rules win."""
        color = self.base_color(square)
        last = snapshot.last_move
        if last is not None and square in (last.from_square, last.to_square):
            color = LAST_MOVE_COLOR
        if square in snapshot.legal_targets:
            color = CAPTURE_COLOR if snapshot.board.piece_at(square) is not None else LEGAL_MOVE_COLOR
        if square == snapshot.selected_square:
            color = SELECTED_COLOR
        pending = snapshot.pending_promotion
        if pending is not None and square in (pending.from_square, pending.to_square):
            color = SELECTED_COLOR
        if square == snapshot.check_square:
            color = CHECK_COLOR
        return color

    def update(self, snapshot):
        """Render pieces and highlights for the snapshot."""
        half = SQUARE_SIZE // 2
        for sq, canvas in self.canvases.items():
            canvas.configure(bg=self.square_color(snapshot, sq))
            item_id = self.piece_items[sq]
            if item_id is not None:
                canvas.delete(item_id)
                self.piece_items[sq] = None
            piece = snapshot.board.piece_at(sq)
            if piece is not None:
                self.piece_items[sq] = canvas.create_text(half, half, text=PIECE_UNICODE[piece.symbol()],
                                                          font=('Arial', 36, 'bold'), fill='black')
