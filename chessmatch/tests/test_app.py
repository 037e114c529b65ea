"""Unit tests for ChessMatchApp with mocked tkinter widgets."""

import unittest
from unittest.mock import MagicMock, Mock, patch

import chess

from chessmatch.app import ChessMatchApp
from chessmatch.match_controller import MatchController, MatchSettings, TurnState


class TestChessMatchApp(unittest.TestCase):

    def setUp(self):
        self.mock_root = MagicMock()

        self.patcher_tk = patch('chessmatch.app.tk')
        self.mock_tk = self.patcher_tk.start()
        self.mock_tk.END = 'end'
        self.mock_tk.StringVar = MagicMock(side_effect=lambda value=None: Mock(get=Mock(return_value=value)))
        self.mock_tk.IntVar = MagicMock(side_effect=lambda value=None: Mock(get=Mock(return_value=value)))

        self.patcher_boardview = patch('chessmatch.app.BoardView')
        self.mock_boardview_class = self.patcher_boardview.start()
        self.mock_boardview = MagicMock()
        self.mock_boardview_class.return_value = self.mock_boardview

        self.controller = MatchController(None, MatchSettings(play_with_ai=False))

    def tearDown(self):
        self.patcher_tk.stop()
        self.patcher_boardview.stop()

    def make_app(self, config=None):
        return ChessMatchApp(self.mock_root, self.controller, config=config)

    def test_initial_vars_follow_settings(self):
        app = self.make_app()
        self.assertEqual(app.mode_var.get(), 'local')
        self.assertEqual(app.color_var.get(), 'white')
        self.assertEqual(app.timer_var.get(), 'No Timer')

    def test_click_forwards_and_renders(self):
        app = self.make_app()
        app.on_click(chess.E2)
        app.on_click(chess.E4)
        self.assertEqual([m.uci() for m in self.controller.move_record], ['e2e4'])
        snap = self.mock_boardview.update.call_args[0][0]
        self.assertEqual(snap.history, ('e2e4',))
        app.move_list.insert.assert_called_with('end', '1. e2e4')

    def test_settings_from_ui(self):
        app = self.make_app()
        app.mode_var = Mock(get=Mock(return_value='ai'))
        app.color_var = Mock(get=Mock(return_value='black'))
        app.elo_var = Mock(get=Mock(return_value=1650))
        app.timer_var = Mock(get=Mock(return_value='3 min'))
        settings = app.settings_from_ui()
        self.assertTrue(settings.play_with_ai)
        self.assertEqual(settings.player_color, chess.BLACK)
        self.assertEqual(settings.elo, 1650)
        self.assertEqual(settings.clock_seconds, 180)

    def test_start_keeps_starting_position(self):
        fen = '8/4P3/8/8/8/8/k7/7K w - - 0 1'
        self.controller = MatchController(None, MatchSettings(play_with_ai=False, fen=fen))
        app = self.make_app()
        self.assertEqual(app.settings_from_ui().fen, fen)
        app.start_match()
        self.assertEqual(self.controller.board.fen(), fen)

    def test_start_match_saves_config(self):
        config = MagicMock()
        app = self.make_app(config)
        app.timer_var = Mock(get=Mock(return_value='5 min'))
        app.start_match()
        self.assertEqual(self.controller.settings.clock_seconds, 300)
        config.set.assert_any_call('play_with_ai', False)
        config.set.assert_any_call('clock_time', 300)

    def test_start_match_without_engine_reports_error(self):
        app = self.make_app()
        app.mode_var = Mock(get=Mock(return_value='ai'))
        app.start_match()
        self.assertFalse(self.controller.settings.play_with_ai)
        text = app.status.configure.call_args[1]['text']
        self.assertIn('engine', text)

    def test_restart(self):
        app = self.make_app()
        app.on_click(chess.E2)
        app.on_click(chess.E4)
        app.restart()
        self.assertEqual(self.controller.move_record, [])

    def test_tick_schedules_next_frame(self):
        app = self.make_app()
        app.tick()
        self.mock_root.after.assert_called_once()

    def test_close_shuts_down(self):
        self.controller.shutdown = Mock()
        app = self.make_app()
        app.on_close()
        self.controller.shutdown.assert_called_once()
        self.mock_root.destroy.assert_called_once()


class TestStatusText(unittest.TestCase):

    def snap(self, **kwargs):
        values = dict(game_over_reason=None, side_to_move=chess.WHITE, turn_state=TurnState.AWAITING_INPUT,
                      check_square=None, engine_error=None)
        values.update(kwargs)
        return Mock(**values)

    def test_to_move(self):
        self.assertEqual(ChessMatchApp.status_text(self.snap()), 'White to move')

    def test_check(self):
        text = ChessMatchApp.status_text(self.snap(side_to_move=chess.BLACK, check_square=chess.E8))
        self.assertEqual(text, 'Black to move - CHECK!')

    def test_thinking(self):
        self.assertEqual(ChessMatchApp.status_text(self.snap(turn_state=TurnState.ENGINE_THINKING)),
                         'AI is thinking...')

    def test_game_over(self):
        text = ChessMatchApp.status_text(self.snap(game_over_reason='Draw by stalemate'))
        self.assertTrue(text.startswith('Draw by stalemate'))


if __name__ == '__main__':
    unittest.main()
