"""Tests for the python-chess backed legality oracle."""

import chess

from branchboard.core import oracle
from branchboard.core.oracle import STARTING_FEN

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


class TestNewPosition:
    def test_default_is_starting_position(self) -> None:
        assert oracle.new_position() == STARTING_FEN
        assert oracle.new_position("") == STARTING_FEN

    def test_invalid_fen_falls_back(self) -> None:
        assert oracle.new_position("invalid") == STARTING_FEN

    def test_position_without_kings_falls_back(self) -> None:
        assert oracle.new_position("8/8/8/8/8/8/8/8 w - - 0 1") == STARTING_FEN

    def test_valid_fen_is_kept(self) -> None:
        assert oracle.new_position(AFTER_E4) == AFTER_E4


class TestApplyMove:
    def test_san(self) -> None:
        assert oracle.apply_move(STARTING_FEN, "e4") == AFTER_E4

    def test_san_with_check_suffix(self) -> None:
        fen = oracle.apply_move(STARTING_FEN, "f3")
        fen = oracle.apply_move(fen, "e5")
        fen = oracle.apply_move(fen, "g4")
        assert fen is not None
        after = oracle.apply_move(fen, "Qh4#")
        assert after is not None
        assert chess.Board(after).is_checkmate()

    def test_uci_fallback(self) -> None:
        assert oracle.apply_move(STARTING_FEN, "e2e4") == AFTER_E4

    def test_illegal_move(self) -> None:
        assert oracle.apply_move(STARTING_FEN, "e5") is None
        assert oracle.apply_move(STARTING_FEN, "e2e5") is None

    def test_garbage(self) -> None:
        assert oracle.apply_move(STARTING_FEN, "hello") is None
        assert oracle.apply_move("bad fen", "e4") is None

    def test_null_move_rejected(self) -> None:
        assert oracle.apply_move(STARTING_FEN, "--") is None

    def test_apply_uci_returns_san(self) -> None:
        assert oracle.apply_uci(STARTING_FEN, "g1f3") == (
            "Nf3",
            "rnbqkbnr/pppppppp/8/8/8/5N2/PPPPPPPP/RNBQKB1R b KQkq - 1 1",
        )
        assert oracle.apply_uci(STARTING_FEN, "g1g3") is None
        assert oracle.apply_uci(STARTING_FEN, "xyz") is None


class TestQueries:
    def test_legal_moves(self) -> None:
        assert len(oracle.legal_moves(STARTING_FEN)) == 20

    def test_legal_moves_from_square(self) -> None:
        moves = oracle.legal_moves(STARTING_FEN, "g1")
        assert sorted(move.uci() for move in moves) == ["g1f3", "g1h3"]
        assert oracle.legal_moves(STARTING_FEN, "z9") == []

    def test_side_and_move_number(self) -> None:
        assert oracle.white_to_move(STARTING_FEN)
        assert not oracle.white_to_move(AFTER_E4)
        assert oracle.fullmove_number(AFTER_E4) == 1
        assert oracle.fullmove_number("8/8/8/8/8/8/8/8 w - -") == 1

    def test_connecting_move(self) -> None:
        move = oracle.connecting_move(STARTING_FEN, AFTER_E4)
        assert move == chess.Move.from_uci("e2e4")

    def test_connecting_move_ignores_clocks(self) -> None:
        clocks_differ = AFTER_E4.replace(" 0 1", " 7 30")
        assert oracle.connecting_move(STARTING_FEN, clocks_differ) is not None

    def test_no_connecting_move(self) -> None:
        assert oracle.connecting_move(STARTING_FEN, STARTING_FEN) is None


class TestParseMoves:
    PROMOTION_FEN = "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"

    def test_parse_move_from_san(self) -> None:
        assert oracle.parse_move(STARTING_FEN, "Nf3") == chess.Move.from_uci("g1f3")
        assert oracle.parse_move(STARTING_FEN, "Nf6") is None
        assert oracle.parse_move("bad fen", "Nf3") is None

    def test_parse_uci_defaults_to_queen(self) -> None:
        assert oracle.parse_uci(self.PROMOTION_FEN, "a7a8") == chess.Move.from_uci("a7a8q")
        assert oracle.parse_uci(self.PROMOTION_FEN, "a7a8n") == chess.Move.from_uci("a7a8n")

    def test_parse_uci_rejects_illegal_and_garbage(self) -> None:
        assert oracle.parse_uci(STARTING_FEN, "e2e4") == chess.Move.from_uci("e2e4")
        assert oracle.parse_uci(STARTING_FEN, "e2e5") is None
        assert oracle.parse_uci(STARTING_FEN, "0000") is None
        assert oracle.parse_uci(STARTING_FEN, "zz") is None
