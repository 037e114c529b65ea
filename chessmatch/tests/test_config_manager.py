import json
import os
import shutil
import tempfile
import unittest

import chess

from chessmatch.config_manager import ConfigManager
from chessmatch.match_controller import MatchSettings


class TestConfigManager(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'config.json')

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_missing_file_gives_defaults(self):
        config = ConfigManager(self.path)
        self.assertEqual(config.config, ConfigManager.defaults())
        self.assertFalse(os.path.exists(self.path))

    def test_saved_values_merge_with_defaults(self):
        with open(self.path, 'w') as f:
            json.dump({'ai_elo': 1700}, f)
        config = ConfigManager(self.path)
        self.assertEqual(config.get('ai_elo'), 1700)
        self.assertEqual(config.get('think_time_ms'), 300)

    def test_set_persists(self):
        config = ConfigManager(self.path)
        config.set('player_color', 'black')
        self.assertEqual(ConfigManager(self.path).get('player_color'), 'black')

    def test_statistics(self):
        config = ConfigManager(self.path)
        config.update_statistics('white')
        config.update_statistics('draw')
        config.update_statistics('draw')
        stats = ConfigManager(self.path).get('statistics')
        self.assertEqual(stats['games_played'], 3)
        self.assertEqual(stats['white_wins'], 1)
        self.assertEqual(stats['black_wins'], 0)
        self.assertEqual(stats['draws'], 2)

    def test_corrupt_file_falls_back(self):
        with open(self.path, 'w') as f:
            f.write('{not json')
        with self.assertLogs('chessmatch.config_manager', level='WARNING'):
            config = ConfigManager(self.path)
        self.assertEqual(config.config, ConfigManager.defaults())

    def test_non_object_is_ignored(self):
        with open(self.path, 'w') as f:
            json.dump([1, 2, 3], f)
        self.assertEqual(ConfigManager(self.path).config, ConfigManager.defaults())

    def test_match_settings_from_config(self):
        config = ConfigManager(self.path)
        config.set('player_color', 'black')
        config.set('clock_enabled', True)
        config.set('clock_time', 180)
        settings = MatchSettings.from_config(config)
        self.assertTrue(settings.play_with_ai)
        self.assertEqual(settings.player_color, chess.BLACK)
        self.assertEqual(settings.elo, 1200)
        self.assertEqual(settings.clock_seconds, 180)

    def test_clock_off_in_config(self):
        settings = MatchSettings.from_config(ConfigManager(self.path))
        self.assertIsNone(settings.clock_seconds)


if __name__ == '__main__':
    unittest.main()
