"""Timeline controller: displayed position sequence plus a navigable cursor."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Sequence

import chess
from PyQt6.QtCore import QObject, QTimer

from branchboard.core import oracle

CursorCallback = Callable[[int], None]


class TimelineController:
    """Owns the displayed positions and the cursor, including animated steps.

    Animated stepping emits one intermediate cursor value per frame through a
    single-shot timer.  Any navigation call cancels the frames still pending;
    the cursor keeps whatever value was set last.
    """

    DEFAULT_FRAME_INTERVAL_MS = 340

    __slots__ = (
        "__weakref__",
        "_positions",
        "_cursor",
        "_frames",
        "_frame_timer",
        "_frame_interval_ms",
        "_on_cursor_changed",
    )

    def __init__(
        self,
        *,
        positions: Sequence[str] | None = None,
        frame_interval_ms: int = DEFAULT_FRAME_INTERVAL_MS,
        on_cursor_changed: CursorCallback | None = None,
        parent: QObject | None = None,
    ) -> None:
        self._positions: tuple[str, ...] = tuple(positions or (oracle.STARTING_FEN,))
        self._cursor = 0
        self._frames: deque[int] = deque()
        self._frame_interval_ms = frame_interval_ms
        self._on_cursor_changed = on_cursor_changed

        self._frame_timer = QTimer(parent)
        self._frame_timer.setSingleShot(True)
        self._frame_timer.timeout.connect(self._play_next_frame)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def positions(self) -> tuple[str, ...]:
        return self._positions

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def last_index(self) -> int:
        return len(self._positions) - 1

    @property
    def live_position(self) -> str:
        return self._positions[self._cursor]

    @property
    def is_animating(self) -> bool:
        return bool(self._frames) or self._frame_timer.isActive()

    # ── Navigation ───────────────────────────────────────────────────────

    def jump_to(self, index: int) -> None:
        """Move the cursor directly to *index* (clamped)."""
        self.cancel_animation()
        self._set_cursor(self._clamp(index))

    def step_animated(self, target: int) -> None:
        """Walk the cursor one position per frame towards *target*."""
        self.cancel_animation()
        goal = self._clamp(target)
        if goal == self._cursor:
            return
        direction = 1 if goal > self._cursor else -1
        self._frames.extend(range(self._cursor + direction, goal + direction, direction))
        self._play_next_frame()

    def go_start(self) -> None:
        self.step_animated(0)

    def go_end(self) -> None:
        self.step_animated(self.last_index)

    def go_prev(self) -> None:
        self.step_animated(self._cursor - 1)

    def go_next(self) -> None:
        self.step_animated(self._cursor + 1)

    def cancel_animation(self) -> None:
        """Drop pending frames; the current cursor stays authoritative."""
        self._frame_timer.stop()
        self._frames.clear()

    # ── Sequence replacement ─────────────────────────────────────────────

    def replace_sequence(self, positions: Sequence[str], cursor: int = 0) -> None:
        """Atomically swap in a new position sequence and cursor."""
        self.cancel_animation()
        self._positions = tuple(positions) or (oracle.STARTING_FEN,)
        self._cursor = -1
        self._set_cursor(self._clamp(cursor))

    def extend_from_cursor(self, positions: Sequence[str]) -> None:
        """Keep everything up to the cursor and append *positions*.

        A leading element equal to the live position is not duplicated.
        """
        tail = list(positions)
        if tail and tail[0] == self.live_position:
            tail = tail[1:]
        self.cancel_animation()
        self._positions = self._positions[: self._cursor + 1] + tuple(tail)

    # ── Derived view ─────────────────────────────────────────────────────

    def last_move(self) -> tuple[str, str] | None:
        """Squares of the last move played up to the cursor, if any.

        Found by diffing consecutive positions against the legal move list,
        so sequences without stored move descriptors (engine lines) work too.
        """
        for idx in range(self._cursor, 0, -1):
            move = oracle.connecting_move(self._positions[idx - 1], self._positions[idx])
            if move is not None:
                return chess.square_name(move.from_square), chess.square_name(
                    move.to_square
                )
        return None

    # ── Internals ────────────────────────────────────────────────────────

    def _clamp(self, index: int) -> int:
        return max(0, min(self.last_index, index))

    def _set_cursor(self, index: int) -> None:
        if index == self._cursor:
            return
        self._cursor = index
        if self._on_cursor_changed is not None:
            self._on_cursor_changed(index)

    def _play_next_frame(self) -> None:
        if not self._frames:
            return
        self._set_cursor(self._frames.popleft())
        if self._frames:
            self._frame_timer.start(self._frame_interval_ms)
