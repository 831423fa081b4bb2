"""Move-legality oracle backed by python-chess.

Positions travel through the package as FEN strings.  Every call builds its
own :class:`chess.Board`, so independent computations never share a mutable
board.
"""

from __future__ import annotations

import logging

import chess

_LOGGER = logging.getLogger(__name__)

STARTING_FEN = chess.STARTING_FEN


def new_position(fen: str | None = None) -> str:
    """Return the canonical FEN for *fen*, or the initial position if invalid."""
    if not fen:
        return STARTING_FEN
    try:
        board = chess.Board(fen)
    except ValueError:
        board = None
    if board is None or not board.is_valid():
        _LOGGER.warning("Invalid start FEN %r, using the initial position", fen)
        return STARTING_FEN
    return board.fen()


def _board(fen: str) -> chess.Board | None:
    try:
        return chess.Board(fen)
    except ValueError:
        return None


def _parse_descriptor(board: chess.Board, descriptor: str) -> chess.Move | None:
    """Parse SAN, falling back to UCI coordinates (``e2e4``)."""
    try:
        move = board.parse_san(descriptor)
    except ValueError:
        move = None
    if move is None:
        try:
            move = chess.Move.from_uci(descriptor)
        except ValueError:
            return None
        if not board.is_legal(move):
            return None
    # Null moves ("--") are not real plies.
    if not move:
        return None
    return move


def apply_move(fen: str, descriptor: str) -> str | None:
    """Apply a SAN/UCI move descriptor and return the resulting FEN.

    Returns ``None`` for illegal, ambiguous or unparseable moves.
    """
    board = _board(fen)
    if board is None:
        return None
    move = _parse_descriptor(board, descriptor)
    if move is None:
        return None
    board.push(move)
    return board.fen()


def parse_move(fen: str, descriptor: str) -> chess.Move | None:
    """The legal move *descriptor* denotes in *fen*, or ``None``."""
    board = _board(fen)
    if board is None:
        return None
    return _parse_descriptor(board, descriptor)


def parse_uci(fen: str, uci: str) -> chess.Move | None:
    """Parse a legal coordinate move; a pawn reaching the last rank without a
    promotion piece promotes to a queen.
    """
    board = _board(fen)
    if board is None:
        return None
    try:
        move = chess.Move.from_uci(uci.strip())
    except ValueError:
        return None
    if (
        move.promotion is None
        and board.piece_type_at(move.from_square) == chess.PAWN
        and chess.square_rank(move.to_square) in (0, 7)
    ):
        move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
    if not move or not board.is_legal(move):
        return None
    return move


def apply_uci(fen: str, uci: str) -> tuple[str, str] | None:
    """Apply a UCI move and return ``(san, fen_after)``, or ``None``."""
    board = _board(fen)
    if board is None:
        return None
    try:
        move = chess.Move.from_uci(uci.strip())
    except ValueError:
        return None
    if not move or not board.is_legal(move):
        return None
    san = board.san(move)
    board.push(move)
    return san, board.fen()


def legal_moves(fen: str, square: str | None = None) -> list[chess.Move]:
    """Return the legal moves of *fen*, optionally only those from *square*."""
    board = _board(fen)
    if board is None:
        return []
    moves = list(board.legal_moves)
    if square is None:
        return moves
    try:
        from_square = chess.parse_square(square)
    except ValueError:
        return []
    return [move for move in moves if move.from_square == from_square]


def white_to_move(fen: str) -> bool:
    """True when the first side (White) is to move in *fen*."""
    parts = fen.split()
    return len(parts) < 2 or parts[1] != "b"


def fullmove_number(fen: str) -> int:
    """Full-move counter of *fen* (``1`` when missing or malformed)."""
    parts = fen.split()
    if len(parts) < 6:
        return 1
    try:
        return max(1, int(parts[5]))
    except ValueError:
        return 1


def position_key(fen: str) -> str:
    """Position identity without the move clocks."""
    return " ".join(fen.split()[:4])


def connecting_move(fen_before: str, fen_after: str) -> chess.Move | None:
    """Find the legal move leading from *fen_before* to *fen_after*.

    Every legal move is trial-applied and the resulting position compared
    with *fen_after*, ignoring the move clocks.
    """
    board = _board(fen_before)
    if board is None:
        return None
    target = position_key(fen_after)
    for move in board.legal_moves:
        board.push(move)
        matched = position_key(board.fen()) == target
        board.pop()
        if matched:
            return move
    return None
