"""
Desktop front-end for a match.

The window owns nothing but widgets: every frame it calls
``MatchController.update()`` and paints the resulting snapshot. Clicks,
the promotion picker and the settings panel are forwarded to the
controller's event sinks.

Keys: R starts the match over, Escape cancels a promotion or selection.
"""
import logging
import tkinter as tk
from typing import Optional

import chess

from chessmatch.board_view import BoardView
from chessmatch.constants import (FRAME_INTERVAL_MS, MAX_ELO, MIN_ELO, PANEL_BG, PANEL_FG, PIECE_UNICODE,
                                  PROMOTION_LETTERS, TIMER_PRESETS)
from chessmatch.match_controller import MatchController, MatchSettings, TurnState

logger = logging.getLogger(__name__)


class ChessMatchApp:
    """Tk window driving a MatchController from its event loop."""

    def __init__(self, master: tk.Tk, controller: MatchController, config=None):
        self.master = master
        self.controller = controller
        self.config = config
        self._after_id: Optional[str] = None
        self._last_lines = ()

        self.master.title('chessmatch')
        self.master.resizable(False, False)

        settings = controller.settings
        self.mode_var = tk.StringVar(value='ai' if settings.play_with_ai else 'local')
        self.color_var = tk.StringVar(value='white' if settings.player_color == chess.WHITE else 'black')
        self.elo_var = tk.IntVar(value=settings.clamped_elo())
        self.timer_var = tk.StringVar(value=self._preset_label(settings.clock_seconds))

        # build UI
        self.status = tk.Label(master, text='White to move', font=('Arial', 12))
        self.status.grid(row=0, column=0, columnspan=8)

        board_frame = tk.Frame(master)
        board_frame.grid(row=1, column=0, rowspan=8, columnspan=8)
        self.board_view = BoardView(board_frame, on_click=self.on_click)

        panel = tk.Frame(master, bg=PANEL_BG)
        panel.grid(row=1, column=8, rowspan=8, sticky='ns', padx=6)

        self.white_clock_label = tk.Label(panel, text='', font=('Courier', 14), bg=PANEL_BG, fg=PANEL_FG)
        self.white_clock_label.pack(anchor='w')
        self.black_clock_label = tk.Label(panel, text='', font=('Courier', 14), bg=PANEL_BG, fg=PANEL_FG)
        self.black_clock_label.pack(anchor='w')

        self.move_list = tk.Listbox(panel, height=16, width=24)
        self.move_list.pack(fill='both', expand=True, pady=4)

        self.promotion_frame = tk.Frame(panel, bg=PANEL_BG)
        self.promotion_frame.pack(fill='x')
        self._build_promotion_picker()

        settings_frame = tk.Frame(panel, bg=PANEL_BG)
        settings_frame.pack(fill='x', pady=6)
        self._build_settings(settings_frame)

        self.master.bind('<KeyPress-r>', lambda e: self.restart())
        self.master.bind('<KeyPress-R>', lambda e: self.restart())
        self.master.bind('<Escape>', lambda e: self.controller.on_cancel())
        self.master.protocol('WM_DELETE_WINDOW', self.on_close)

    @staticmethod
    def _preset_label(seconds: Optional[int]) -> str:
        for label, value in TIMER_PRESETS.items():
            if value == seconds:
                return label
        return 'No Timer'

    def _build_promotion_picker(self):
        self.promotion_buttons = []
        for letter in PROMOTION_LETTERS:
            b = tk.Button(self.promotion_frame, text=letter.upper(), width=3,
                          command=lambda l=letter: self.controller.on_promotion_pick(l))
            b.pack(side='left', padx=1)
            self.promotion_buttons.append(b)
        cancel = tk.Button(self.promotion_frame, text='Cancel', command=self.controller.on_cancel)
        cancel.pack(side='left', padx=4)
        self.promotion_buttons.append(cancel)

    def _build_settings(self, frame: tk.Frame):
        tk.Radiobutton(frame, text='Play vs AI', variable=self.mode_var, value='ai').pack(anchor='w')
        tk.Radiobutton(frame, text='Local Multiplayer', variable=self.mode_var, value='local').pack(anchor='w')
        tk.Radiobutton(frame, text='Play White', variable=self.color_var, value='white').pack(anchor='w')
        tk.Radiobutton(frame, text='Play Black', variable=self.color_var, value='black').pack(anchor='w')
        tk.Scale(frame, from_=MIN_ELO, to=MAX_ELO, orient='horizontal', label='AI Elo',
                 resolution=50, variable=self.elo_var).pack(fill='x')
        for label in TIMER_PRESETS:
            tk.Radiobutton(frame, text=label, variable=self.timer_var, value=label).pack(anchor='w')
        tk.Button(frame, text='Start', command=self.start_match).pack(fill='x', pady=4)

    # -- event handlers ------------------------------------------------------

    def on_click(self, square: int):
        self.controller.on_square_click(square)
        self.render()

    def settings_from_ui(self) -> MatchSettings:
        return MatchSettings(
            play_with_ai=self.mode_var.get() == 'ai',
            player_color=chess.BLACK if self.color_var.get() == 'black' else chess.WHITE,
            elo=int(self.elo_var.get()),
            think_time_ms=self.controller.settings.think_time_ms,
            clock_seconds=TIMER_PRESETS.get(self.timer_var.get()),
            fen=self.controller.settings.fen,
        )

    def start_match(self):
        settings = self.settings_from_ui()
        try:
            self.controller.new_match(settings)
        except ValueError as e:
            self.status.configure(text=str(e))
            return
        if self.config:
            self.config.set('play_with_ai', settings.play_with_ai)
            self.config.set('player_color', self.color_var.get())
            self.config.set('ai_elo', settings.clamped_elo())
            self.config.set('clock_enabled', settings.clock_seconds is not None)
            if settings.clock_seconds is not None:
                self.config.set('clock_time', settings.clock_seconds)
        self.render()

    def restart(self):
        self.controller.reset()
        self.render()

    # -- loop ----------------------------------------------------------------

    def run(self):
        self.tick()
        self.master.mainloop()

    def tick(self):
        self.controller.update()
        self.render()
        self._after_id = self.master.after(FRAME_INTERVAL_MS, self.tick)

    def render(self):
        snap = self.controller.snapshot()
        self.board_view.update(snap)
        self.status.configure(text=self.status_text(snap))
        if snap.clock_enabled:
            self.white_clock_label.configure(text=f'White {snap.white_time_text}')
            self.black_clock_label.configure(text=f'Black {snap.black_time_text}')
        else:
            self.white_clock_label.configure(text='')
            self.black_clock_label.configure(text='')
        if snap.history_lines != self._last_lines:
            self._last_lines = snap.history_lines
            self.move_list.delete(0, tk.END)
            for line in snap.history_lines:
                self.move_list.insert(tk.END, line)
            self.move_list.see(tk.END)
        self._render_promotion_picker(snap)

    def _render_promotion_picker(self, snap):
        pending = snap.turn_state is TurnState.PENDING_PROMOTION
        for b, letter in zip(self.promotion_buttons, PROMOTION_LETTERS):
            sym = letter.upper() if snap.side_to_move == chess.WHITE else letter
            b.configure(text=PIECE_UNICODE[sym])
        for b in self.promotion_buttons:
            b.configure(state='normal' if pending else 'disabled')

    @staticmethod
    def status_text(snap) -> str:
        if snap.game_over_reason:
            return f'{snap.game_over_reason} (press R to restart)'
        turn = 'White' if snap.side_to_move == chess.WHITE else 'Black'
        if snap.turn_state is TurnState.ENGINE_THINKING:
            return 'AI is thinking...'
        if snap.turn_state is TurnState.PENDING_PROMOTION:
            return f'{turn}: choose a promotion piece'
        text = f'{turn} to move'
        if snap.check_square is not None:
            text += ' - CHECK!'
        if snap.engine_error:
            text += f' [engine: {snap.engine_error}]'
        return text

    def on_close(self):
        try:
            if self._after_id is not None:
                self.master.after_cancel(self._after_id)
            self.controller.shutdown()
        finally:
            self.master.destroy()
