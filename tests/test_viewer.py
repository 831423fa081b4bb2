"""Tests for the GameViewer view model."""

from __future__ import annotations

import logging

import pytest

from branchboard.core.oracle import STARTING_FEN
from branchboard.core.paths import replay_moves
from branchboard.engine.models import EngineLine
from branchboard.engine.session import EngineSession
from branchboard.engine.transport import ErrorCallback, LineCallback
from branchboard.logging_setup import configure_logging
from branchboard.settings import AppSettings
from branchboard.viewer import GameViewer

TWO_GAMES = """[Event "Casual"]
[White "Alice"]
[Black "Bob"]

1. e4 e5 (1... c5 2. Nf3) 2. Nf3 Nc6 *

[Event "Casual"]
[White "Carol"]
[Black "Dave"]

1. d4 d5 *
"""


class _StubEngine:
    def __init__(self) -> None:
        self.started = 0
        self.stopped = 0
        self.shut_down = 0
        self.analyzed: list[str] = []
        self.lines: list[EngineLine] = []
        self.is_thinking = False

    def start(self) -> None:
        self.started += 1

    def analyze(self, fen: str, **_kwargs: object) -> None:
        self.analyzed.append(fen)

    def stop(self) -> None:
        self.stopped += 1

    def shutdown(self) -> None:
        self.shut_down += 1


class _StubTransport:
    def __init__(self, on_line: LineCallback, on_error: ErrorCallback) -> None:
        self.written: list[str] = []

    def start(self) -> None:
        pass

    def write_line(self, line: str) -> None:
        self.written.append(line)

    def close(self) -> None:
        pass


def _engine_line(rank: int, fen: str, sans: list[str]) -> EngineLine:
    return EngineLine(
        rank=rank,
        depth=10,
        pv_uci=(),
        pv_san=tuple(sans),
        pv_fens=tuple(replay_moves(fen, sans)),
        score_cp=20,
    )


def _make_viewer(
    feedback: list[tuple[bool, str]] | None = None,
) -> tuple[GameViewer, _StubEngine, list[str]]:
    engine = _StubEngine()
    shown: list[str] = []
    viewer = GameViewer(
        engine_session=engine,  # type: ignore[arg-type]
        on_position_changed=shown.append,
        on_feedback=(
            (lambda ok, text: feedback.append((ok, text))) if feedback is not None else None
        ),
    )
    return viewer, engine, shown


class TestLoading:
    def test_load_selects_first_game(self) -> None:
        viewer, _, shown = _make_viewer()
        assert viewer.load_text(TWO_GAMES) == 2
        assert viewer.game_index == 0
        assert viewer.game is not None
        assert viewer.game.headers["White"] == "Alice"
        assert viewer.timeline.cursor == 0
        assert len(viewer.timeline.positions) == 5
        assert shown == [STARTING_FEN]

    def test_select_second_game(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        game = viewer.select_game(1)
        assert game.headers["White"] == "Carol"
        assert [ply.san for ply in game.tree.mainline] == ["d4", "d5"]
        assert len(viewer.timeline.positions) == 3

    def test_select_out_of_range(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        with pytest.raises(IndexError):
            viewer.select_game(2)

    def test_load_empty_document(self) -> None:
        viewer, _, _ = _make_viewer()
        assert viewer.load_text("   ") == 0
        assert viewer.game is None
        assert viewer.tree is None
        assert viewer.timeline.positions == (STARTING_FEN,)


class TestNodeNavigation:
    def test_go_to_variation_node(self) -> None:
        viewer, _, shown = _make_viewer()
        viewer.load_text(TWO_GAMES)
        tree = viewer.tree
        assert tree is not None
        (sicilian,) = tree.mainline[1].variations
        c5 = sicilian.plies[0]

        viewer.go_to_node(c5.id)

        assert viewer.active_ply_id == c5.id
        assert viewer.timeline.cursor == 1
        assert viewer.timeline.live_position == c5.fen_after
        assert viewer.timeline.positions[-1] == sicilian.plies[-1].fen_after
        assert shown[-1] == c5.fen_after
        assert viewer.is_node_active(c5.id)

    def test_node_active_by_position(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        tree = viewer.tree
        assert tree is not None
        e4, e5 = tree.mainline[:2]
        assert not viewer.is_node_active(e4.id)
        viewer.timeline.jump_to(2)
        assert viewer.is_node_active(e5.id)
        assert not viewer.is_node_active(e4.id)

    def test_go_to_node_without_game(self) -> None:
        viewer, _, _ = _make_viewer()
        with pytest.raises(ValueError):
            viewer.go_to_node(1)

    def test_go_to_unknown_node(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        with pytest.raises(KeyError):
            viewer.go_to_node(999)


class TestEngineIntegration:
    def test_enable_analysis_follows_cursor(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        viewer.set_analysis_enabled(True)
        assert engine.started == 1
        assert engine.analyzed == [STARTING_FEN]

        viewer.timeline.jump_to(1)
        assert engine.analyzed[-1] == viewer.timeline.positions[1]

        viewer.set_analysis_enabled(False)
        assert engine.stopped == 1
        viewer.timeline.jump_to(2)
        assert len(engine.analyzed) == 2

    def test_play_engine_line_extends_timeline(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        viewer.timeline.jump_to(2)
        live = viewer.timeline.live_position
        engine.lines = [_engine_line(1, live, ["Bc4", "Bc5", "c3"])]

        assert viewer.play_engine_line(1)

        positions = viewer.timeline.positions
        assert len(positions) == 6
        assert positions[2] == live
        assert viewer.timeline.cursor == 2
        assert viewer.active_ply_id is None

    def test_play_missing_or_unplayable_line(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        assert not viewer.play_engine_line(1)
        engine.lines = [_engine_line(1, STARTING_FEN, ["Nf6"])]
        assert not viewer.play_engine_line(1)

    def test_invalid_rank(self) -> None:
        viewer, _, _ = _make_viewer()
        with pytest.raises(ValueError):
            viewer.play_engine_line(0)

    def test_shutdown_stops_engine(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.shutdown()
        assert engine.shut_down == 1

    def test_line_for_another_position_is_refused(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        after_e4 = viewer.timeline.positions[1]
        engine.lines = [_engine_line(1, after_e4, ["e5", "Nf3"])]
        assert viewer.timeline.cursor == 0
        assert not viewer.play_engine_line(1)
        assert len(viewer.timeline.positions) == 5

    def test_play_engine_line_leaves_training(self) -> None:
        viewer, engine, _ = _make_viewer()
        viewer.load_text(TWO_GAMES)
        viewer.set_training(True)
        engine.lines = [_engine_line(1, STARTING_FEN, ["d4", "d5"])]
        assert viewer.play_engine_line(1)
        assert not viewer.training


class TestStaleEngineLines:
    def test_lines_for_previous_position_are_not_offered(self) -> None:
        now = [0.0]
        session = EngineSession(
            transport_factory=_StubTransport,
            clock=lambda: now[0],
        )
        viewer = GameViewer(engine_session=session)
        viewer.load_text("1. e4 e5 *")
        viewer.timeline.jump_to(2)
        viewer.set_analysis_enabled(True)
        session.handle_line("uciok")
        session.handle_line("readyok")
        info = "info depth 10 multipv 1 score cp 20 pv g1f3 b8c6"
        session.handle_line(info)
        assert [line.pv_san for line in session.lines] == [("Nf3", "Nc6")]

        now[0] = 0.05
        viewer.timeline.jump_to(0)
        session.handle_line(info)

        assert viewer.timeline.live_position == STARTING_FEN
        assert session.lines == []
        assert not viewer.play_engine_line(1)
        assert len(viewer.timeline.positions) == 3
        viewer.shutdown()


TRAINING_GAME = """[Event "Training"]

1. e4 e5 2. Nf3 Nc6 *
"""

PROMOTION_GAME = """[Event "Promotion"]
[SetUp "1"]
[FEN "4k3/P7/8/8/8/8/8/4K3 w - - 0 1"]

1. a8=Q+ Kd7 *
"""


class TestPlayMove:
    def test_free_play_truncates_and_advances(self) -> None:
        viewer, _, shown = _make_viewer()
        viewer.load_text(TRAINING_GAME)
        viewer.timeline.jump_to(1)
        assert viewer.play_move("d7d5")
        assert viewer.timeline.cursor == 2
        assert len(viewer.timeline.positions) == 3
        assert viewer.timeline.positions[1] == viewer.tree.mainline[0].fen_after
        assert shown[-1] == viewer.timeline.live_position

    def test_illegal_move_is_rejected(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(TRAINING_GAME)
        assert not viewer.play_move("e2e5")
        assert not viewer.play_move("nonsense")
        assert viewer.timeline.cursor == 0
        assert len(viewer.timeline.positions) == 5

    def test_training_accepts_main_line_move(self) -> None:
        feedback: list[tuple[bool, str]] = []
        viewer, _, _ = _make_viewer(feedback)
        viewer.load_text(TRAINING_GAME)
        viewer.set_training(True)
        assert viewer.training
        assert viewer.play_move("e2e4")
        assert viewer.timeline.cursor == 1
        assert viewer.timeline.live_position == viewer.tree.mainline[0].fen_after
        assert [ok for ok, _ in feedback] == [True]

    def test_training_rejects_other_move(self) -> None:
        feedback: list[tuple[bool, str]] = []
        viewer, engine, _ = _make_viewer(feedback)
        viewer.load_text(TRAINING_GAME)
        viewer.set_analysis_enabled(True)
        viewer.set_training(True)
        assert not viewer.play_move("d2d4")
        assert viewer.timeline.cursor == 0
        assert len(viewer.timeline.positions) == 5
        assert [ok for ok, _ in feedback] == [False]
        assert engine.analyzed == [STARTING_FEN, STARTING_FEN]

    def test_training_past_main_line_allows_free_play(self) -> None:
        feedback: list[tuple[bool, str]] = []
        viewer, _, _ = _make_viewer(feedback)
        viewer.load_text(TRAINING_GAME)
        viewer.set_training(True)
        viewer.timeline.jump_to(4)
        assert viewer.play_move("f1b5")
        assert feedback == []

    def test_missing_promotion_piece_means_queen(self) -> None:
        feedback: list[tuple[bool, str]] = []
        viewer, _, _ = _make_viewer(feedback)
        viewer.load_text(PROMOTION_GAME)
        viewer.set_training(True)
        assert viewer.play_move("a7a8")
        assert viewer.timeline.live_position == viewer.tree.mainline[0].fen_after
        assert feedback[-1][0] is True

    def test_training_rejects_under_promotion(self) -> None:
        viewer, _, _ = _make_viewer()
        viewer.load_text(PROMOTION_GAME)
        viewer.set_training(True)
        assert not viewer.play_move("a7a8n")


class TestViewerSettings:
    def test_log_level_is_applied(self) -> None:
        GameViewer(
            settings=AppSettings(log_level="DEBUG"),
            engine_session=_StubEngine(),  # type: ignore[arg-type]
        )
        try:
            assert logging.getLogger("branchboard").level == logging.DEBUG
        finally:
            configure_logging("WARNING")
