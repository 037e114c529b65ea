#!/usr/bin/env python3
"""CLI tool to verify a UCI engine binary (Stockfish).

Usage:
  python -m chessmatch.tools.check_engine --path path/to/stockfish

If no path is supplied the script will try chessmatch/engines/ and then PATH.
"""
import argparse
import os
import sys
import time

import chess

from chessmatch.engine_adapter import EngineAdapter, EngineError, detect_engine
from chessmatch.move_resolver import decode_token


def verify_engine(path: str, think_ms: int, handshake_timeout: float) -> bool:
    adapter = EngineAdapter(handshake_timeout=handshake_timeout)
    try:
        adapter.start(path)
        board = chess.Board()
        token = adapter.best_move(board.fen(), think_ms)
    except EngineError as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return False
    finally:
        adapter.shutdown()
    if decode_token(board, token) is None:
        print(f'ERROR: engine answered with an illegal move: {token!r}', file=sys.stderr)
        return False
    if adapter.identity:
        print('OK: engine responded with move', token, '-', adapter.identity)
    else:
        print('OK: engine responded with move', token)
    return True


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument('--path', '-p', help='Path to engine binary (Stockfish)')
    p.add_argument('--retries', '-r', type=int, default=2, help='Number of verification attempts')
    p.add_argument('--think-ms', '-t', type=int, default=50, help='Engine think time in milliseconds')
    p.add_argument('--handshake-timeout', type=float, default=10.0, help='Seconds to wait for uciok/readyok')
    args = p.parse_args(argv)
    path = args.path or detect_engine(os.path.dirname(os.path.dirname(__file__)))
    if not path:
        print('No engine found (checked engines/ and PATH).', file=sys.stderr)
        return 2
    print('Using engine:', path)
    retries = max(1, args.retries)
    for attempt in range(1, retries + 1):
        print(f'Attempt {attempt}/{retries}...')
        if verify_engine(path, max(1, args.think_ms), args.handshake_timeout):
            return 0
        if attempt < retries:
            time.sleep(0.5 * attempt)
    print(f'Verification failed after {retries} attempts.', file=sys.stderr)
    return 1


if __name__ == '__main__':
    sys.exit(main())
