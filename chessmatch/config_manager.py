"""Configuration manager for persisting user preferences."""
import json
import logging
import os
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = 'chessmatch_config.json'


class ConfigManager:
    """Handles loading and saving application configuration to JSON file."""

    def __init__(self, config_file: str = DEFAULT_CONFIG_FILE):
        self.config_file = config_file
        self.config: Dict[str, Any] = self._load_config()

    @staticmethod
    def defaults() -> Dict[str, Any]:
        return {
            'engine_path': '',
            'play_with_ai': True,
            'player_color': 'white',
            'ai_elo': 1200,
            'think_time_ms': 300,
            'clock_enabled': False,
            'clock_time': 300,
            'statistics': {
                'games_played': 0,
                'white_wins': 0,
                'black_wins': 0,
                'draws': 0,
            }
        }

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or return defaults."""
        default_config = self.defaults()
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r') as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning('Error loading config %s: %s', self.config_file, e)
                return default_config
            if isinstance(loaded, dict):
                # Merge with defaults to handle new keys
                default_config.update(loaded)
            else:
                logger.warning('Ignoring config %s: top level is not an object', self.config_file)
        return default_config

    def save_config(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.warning('Error saving config %s: %s', self.config_file, e)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value and save."""
        self.config[key] = value
        self.save_config()

    def update_statistics(self, result: str) -> None:
        """Update game statistics. result: 'white', 'black', 'draw'"""
        stats = self.config.get('statistics', {})
        stats['games_played'] = stats.get('games_played', 0) + 1
        if result == 'white':
            stats['white_wins'] = stats.get('white_wins', 0) + 1
        elif result == 'black':
            stats['black_wins'] = stats.get('black_wins', 0) + 1
        elif result == 'draw':
            stats['draws'] = stats.get('draws', 0) + 1
        self.config['statistics'] = stats
        self.save_config()
