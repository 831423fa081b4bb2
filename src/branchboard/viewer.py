"""GameViewer: wires the variation tree, the timeline and engine analysis."""

from __future__ import annotations

import logging
from collections.abc import Callable

import chess
from PyQt6.QtCore import QObject

from branchboard.core import oracle
from branchboard.core.notation import (
    GameTree,
    ParsedGame,
    parse_pgn_game,
    preprocess_external_markers,
    split_games,
)
from branchboard.core.oracle import STARTING_FEN
from branchboard.core.paths import replay_moves, resolve
from branchboard.engine.session import EngineSession
from branchboard.game.timeline import TimelineController
from branchboard.logging_setup import configure_logging
from branchboard.settings import AppSettings

_LOGGER = logging.getLogger(__name__)

PositionCallback = Callable[[str], None]
FeedbackCallback = Callable[[bool, str], None]


class GameViewer:
    """Headless view model behind a PGN viewer window.

    Holds the loaded game records, the variation tree of the selected game,
    the displayed timeline and the engine session following the live
    position.
    """

    __slots__ = (
        "__weakref__",
        "_settings",
        "_games",
        "_game_index",
        "_game",
        "_engine",
        "_timeline",
        "_active_ply_id",
        "_analysis_enabled",
        "_training",
        "_on_position_changed",
        "_on_feedback",
    )

    def __init__(
        self,
        *,
        settings: AppSettings | None = None,
        engine_session: EngineSession | None = None,
        on_position_changed: PositionCallback | None = None,
        on_feedback: FeedbackCallback | None = None,
        parent: QObject | None = None,
    ) -> None:
        self._settings = settings if settings is not None else AppSettings()
        configure_logging(self._settings.log_level)
        self._games: list[str] = []
        self._game_index = 0
        self._game: ParsedGame | None = None
        self._active_ply_id: int | None = None
        self._analysis_enabled = False
        self._training = False
        self._on_position_changed = on_position_changed
        self._on_feedback = on_feedback

        if engine_session is None:
            engine_session = EngineSession(settings=self._settings, parent=parent)
        self._engine = engine_session
        self._timeline = TimelineController(
            frame_interval_ms=self._settings.frame_interval_ms,
            on_cursor_changed=self._on_cursor_changed,
            parent=parent,
        )

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def games(self) -> list[str]:
        return list(self._games)

    @property
    def game_index(self) -> int:
        return self._game_index

    @property
    def game(self) -> ParsedGame | None:
        return self._game

    @property
    def tree(self) -> GameTree | None:
        return self._game.tree if self._game is not None else None

    @property
    def timeline(self) -> TimelineController:
        return self._timeline

    @property
    def engine(self) -> EngineSession:
        return self._engine

    @property
    def active_ply_id(self) -> int | None:
        return self._active_ply_id

    @property
    def analysis_enabled(self) -> bool:
        return self._analysis_enabled

    @property
    def training(self) -> bool:
        return self._training

    # ── Loading ──────────────────────────────────────────────────────────

    def load_text(self, pgn_text: str) -> int:
        """Load a (multi-game) PGN document and select its first game.

        Returns the number of game records found.
        """
        self._games = split_games(preprocess_external_markers(pgn_text))
        if not self._games:
            self._game = None
            self._game_index = 0
            self._active_ply_id = None
            self._timeline.replace_sequence([STARTING_FEN])
            return 0
        self.select_game(0)
        return len(self._games)

    def select_game(self, index: int) -> ParsedGame:
        """Parse game *index* and show its main line from the start."""
        if not 0 <= index < len(self._games):
            raise IndexError(f"Game index out of range: {index}")

        game = parse_pgn_game(self._games[index])
        _LOGGER.debug(
            "Loaded game %d: %d main-line plies", index, len(game.tree.main.plies)
        )
        self._game_index = index
        self._game = game
        self._active_ply_id = None
        self._timeline.replace_sequence(game.tree.mainline_positions(), 0)
        return game

    # ── Navigation ───────────────────────────────────────────────────────

    def go_to_node(self, ply_id: int) -> None:
        """Show the path to *ply_id* plus the rest of its branch."""
        tree = self.tree
        if tree is None:
            raise ValueError("No game loaded")
        path = resolve(tree, ply_id)
        self._active_ply_id = ply_id
        self._timeline.replace_sequence(path.positions, path.cursor)

    def is_node_active(self, ply_id: int) -> bool:
        """True for the selected node or a node whose position is displayed."""
        if self._active_ply_id == ply_id:
            return True
        tree = self.tree
        ply = tree.ply(ply_id) if tree is not None else None
        if ply is None or self._timeline.cursor == 0:
            return False
        return self._timeline.live_position == ply.fen_after

    def play_engine_line(self, rank: int) -> bool:
        """Append engine line *rank* to the timeline after the cursor.

        The line is replayed from the live position and leaves training mode.
        Returns ``False`` when there is no such line, when the line was
        computed for another position or when none of its moves applies.
        """
        if rank < 1:
            raise ValueError(f"Engine line rank must be >= 1, got {rank}")
        line = next((item for item in self._engine.lines if item.rank == rank), None)
        if line is None:
            return False
        live = self._timeline.live_position
        analysed = line.pv_fens[0] if line.pv_fens else live
        if oracle.position_key(analysed) != oracle.position_key(live):
            _LOGGER.debug("Ignoring engine line %d computed for another position", rank)
            return False
        positions = replay_moves(live, line.pv_san)
        if len(positions) < 2:
            return False
        self._active_ply_id = None
        self._training = False
        self._timeline.extend_from_cursor(positions)
        return True

    # ── Moves and training ───────────────────────────────────────────────

    def set_training(self, enabled: bool) -> None:
        """In training mode played moves must match the main line."""
        self._training = enabled

    def play_move(self, uci: str) -> bool:
        """Play *uci* from the live position.

        The timeline is cut after the cursor, the new position appended and
        the cursor advanced.  In training mode the move must match the next
        main-line ply (a missing promotion piece counts as a queen); a wrong
        move leaves the timeline untouched.
        """
        base = self._timeline.live_position
        move = oracle.parse_uci(base, uci)
        if move is None:
            return False

        expected = self._expected_training_move(base)
        if expected is not None and not _same_move(expected, move):
            self._feedback(False, "Wrong move, try again.")
            if self._analysis_enabled and not self._engine.is_thinking:
                self._engine.analyze(base)
            return False

        applied = oracle.apply_uci(base, move.uci())
        if applied is None:
            return False
        _, fen_after = applied
        self._timeline.extend_from_cursor([fen_after])
        self._timeline.jump_to(self._timeline.cursor + 1)
        if expected is not None:
            self._feedback(True, "Correct!")
        return True

    def _expected_training_move(self, base: str) -> chess.Move | None:
        tree = self.tree
        if not self._training or tree is None:
            return None
        cursor = self._timeline.cursor
        mainline = tree.mainline
        if cursor >= len(mainline):
            return None
        return oracle.parse_move(base, mainline[cursor].san_clean)

    def _feedback(self, correct: bool, message: str) -> None:
        if self._on_feedback is not None:
            self._on_feedback(correct, message)

    # ── Engine ───────────────────────────────────────────────────────────

    def set_analysis_enabled(self, enabled: bool) -> None:
        """Start following the live position with the engine, or stop."""
        if enabled == self._analysis_enabled:
            return
        self._analysis_enabled = enabled
        if enabled:
            self._engine.start()
            self._engine.analyze(self._timeline.live_position)
        else:
            self._engine.stop()

    def shutdown(self) -> None:
        self._timeline.cancel_animation()
        self._engine.shutdown()

    def _on_cursor_changed(self, _index: int) -> None:
        live = self._timeline.live_position
        if self._analysis_enabled:
            self._engine.analyze(live)
        if self._on_position_changed is not None:
            self._on_position_changed(live)


def _same_move(expected: chess.Move, played: chess.Move) -> bool:
    return (
        expected.from_square == played.from_square
        and expected.to_square == played.to_square
        and (expected.promotion or chess.QUEEN) == (played.promotion or chess.QUEEN)
    )
