"""Notation package: movetext tokens, variation tree and PGN documents."""

from branchboard.core.notation.models import GameTree, Line, Ply, line_preview, nag_symbol
from branchboard.core.notation.pgn import (
    ParsedGame,
    extract_movetext,
    parse_headers,
    parse_pgn_game,
    preprocess_external_markers,
    split_games,
    start_fen_from_headers,
)
from branchboard.core.notation.tokens import (
    Comment,
    MoveNumber,
    MoveText,
    Nag,
    Result,
    Token,
    VariationEnd,
    VariationStart,
    tokenize,
)
from branchboard.core.notation.tree import build_tree, parse_movetext, sanitize_san

__all__ = [
    "Comment",
    "GameTree",
    "Line",
    "MoveNumber",
    "MoveText",
    "Nag",
    "ParsedGame",
    "Ply",
    "Result",
    "Token",
    "VariationEnd",
    "VariationStart",
    "build_tree",
    "extract_movetext",
    "line_preview",
    "nag_symbol",
    "parse_headers",
    "parse_movetext",
    "parse_pgn_game",
    "preprocess_external_markers",
    "sanitize_san",
    "split_games",
    "start_fen_from_headers",
    "tokenize",
]
