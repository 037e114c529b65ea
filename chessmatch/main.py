"""Launcher for the chessmatch application.

Default behavior opens the match window against a UCI engine. Use
``--local`` for two players on one board, or ``--export-board`` to write a
PNG of the board without opening a window.
"""

import argparse
import logging
import os
import sys

logger = logging.getLogger('chessmatch')


def run_gui(args, config) -> int:
    import tkinter as tk

    import chess

    from chessmatch.app import ChessMatchApp
    from chessmatch.engine_adapter import EngineAdapter, EngineStartError, detect_engine
    from chessmatch.match_controller import MatchController, MatchSettings

    settings = MatchSettings.from_config(config)
    if args.local:
        settings.play_with_ai = False
    if args.color:
        settings.player_color = args.color == 'white'
    if args.elo is not None:
        settings.elo = args.elo
    if args.think_ms is not None:
        settings.think_time_ms = max(1, args.think_ms)
    if args.timer is not None:
        settings.clock_seconds = args.timer if args.timer > 0 else None
    if args.fen:
        try:
            chess.Board(args.fen)
        except ValueError as e:
            logger.error('Invalid --fen %r: %s', args.fen, e)
            return 1
    settings.fen = args.fen

    engine = None
    if settings.play_with_ai:
        path = args.engine or config.get('engine_path') or detect_engine(os.path.dirname(__file__))
        if not path:
            logger.error('No engine found (checked --engine, config, engines/ and PATH)')
            return 2
        engine = EngineAdapter()
        try:
            engine.start(path)
        except EngineStartError as e:
            logger.error('%s', e)
            return 1

    try:
        controller = MatchController(engine, settings, config=config)
    except ValueError as e:
        if engine is not None:
            engine.shutdown()
        logger.error('Could not start match: %s', e)
        return 1
    try:
        root = tk.Tk()
        app = ChessMatchApp(root, controller, config=config)
        app.run()
    finally:
        controller.shutdown()
    return 0


def run_export(args) -> int:
    from chessmatch.image_generator import export_board_png

    try:
        export_board_png(args.export_board, fen=args.fen, square_size=args.square_size)
    except (OSError, ValueError) as e:
        logger.error('Board export failed: %s', e)
        return 1
    print(f'Wrote {args.export_board}')
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play chess against a UCI engine")
    p.add_argument("--engine", help="Path to the engine binary (default: config, engines/ folder, then PATH)")
    p.add_argument("--local", action="store_true", help="Two local players, no engine")
    p.add_argument("--color", choices=["white", "black"], help="Color played by the human")
    p.add_argument("--elo", type=int, help="Engine strength (800-2000)")
    p.add_argument("--think-ms", type=int, help="Engine think time per move in ms (default: 300)")
    p.add_argument("--timer", type=int, help="Seconds per side, 0 disables the clock")
    p.add_argument("--fen", help="Start from this position instead of the initial one")
    p.add_argument("--config", default="chessmatch_config.json", help="Path to the JSON settings file")
    p.add_argument("--export-board", metavar="PNG", help="Write a board image and exit")
    p.add_argument("--square-size", type=int, default=120, help="Export: pixels per square (default: 120)")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    return p


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.export_board:
        return run_export(args)

    from chessmatch.config_manager import ConfigManager
    return run_gui(args, ConfigManager(args.config))


if __name__ == '__main__':
    sys.exit(main())
