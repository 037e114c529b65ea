"""Turn clicked squares into validated moves, using python-chess as the oracle."""
from typing import Optional, Set, Union

import chess

# Returned by resolve() when no legal move matches the input.
NO_MOVE = None

_PROMOTION_LETTERS = {
    chess.QUEEN: 'q',
    chess.ROOK: 'r',
    chess.BISHOP: 'b',
    chess.KNIGHT: 'n',
}


def legal_targets(board: chess.Board, from_square: int) -> Set[int]:
    """Destinations of every legal move starting on ``from_square``."""
    piece = board.piece_at(from_square)
    if piece is None or piece.color != board.turn:
        return set()
    return {mv.to_square for mv in board.generate_legal_moves(from_mask=chess.BB_SQUARES[from_square])}


def is_promotion(board: chess.Board, from_square: int, to_square: int) -> bool:
    piece = board.piece_at(from_square)
    if piece is None or piece.piece_type != chess.PAWN or piece.color != board.turn:
        return False
    last_rank = 7 if piece.color == chess.WHITE else 0
    return chess.square_rank(to_square) == last_rank


def promotion_letter(piece: Union[str, int]) -> str:
    """Normalize a promotion choice ('q', 'Q', chess.QUEEN, ...) to its letter."""
    if isinstance(piece, str):
        letter = piece.strip().lower()
        if letter in _PROMOTION_LETTERS.values():
            return letter
    elif piece in _PROMOTION_LETTERS:
        return _PROMOTION_LETTERS[piece]
    raise ValueError(f'Not a promotion piece: {piece!r}')


def decode_token(board: chess.Board, token: str) -> Optional[chess.Move]:
    """Decode a coordinate-notation token and check it is legal in ``board``."""
    try:
        move = chess.Move.from_uci(token.strip())
    except ValueError:
        return NO_MOVE
    if move not in board.legal_moves:
        return NO_MOVE
    return move


def resolve(board: chess.Board, from_square: int, to_square: int,
            promotion: Optional[Union[str, int]] = None) -> Optional[chess.Move]:
    """Build the move from_square -> to_square (+ promotion) if it is legal.

    Illegal input yields NO_MOVE rather than an exception; callers treat it
    as "deselect, do not move".
    """
    token = chess.square_name(from_square) + chess.square_name(to_square)
    if promotion is not None:
        try:
            token += promotion_letter(promotion)
        except ValueError:
            return NO_MOVE
    return decode_token(board, token)
