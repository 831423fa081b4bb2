"""Engine analysis data models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum, auto

_CP_CLAMP = 900
_CP_SCALE = 150.0


# ── Session FSM states ───────────────────────────────────────────────────────


class SessionState(IntEnum):
    """Finite-state-machine states of an engine session."""

    UNSTARTED = auto()
    HANDSHAKING = auto()
    READY = auto()
    ANALYZING = auto()
    FAULTED = auto()
    RESTARTING = auto()
    STOPPED = auto()


# ── Requests and results ─────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class AnalysisRequest:
    """A single ``position``/``go`` request for the engine."""

    fen: str
    depth: int
    multipv: int


@dataclass(slots=True, frozen=True)
class InfoLine:
    """Fields extracted from one UCI ``info`` line."""

    depth: int
    multipv: int
    pv: tuple[str, ...]
    score_cp: int | None = None
    mate: int | None = None


@dataclass(slots=True, frozen=True)
class EngineLine:
    """One ranked candidate line for the analysed position.

    ``pv_fens`` starts with the analysed position and has one more element
    than ``pv_san``.
    """

    rank: int
    depth: int
    pv_uci: tuple[str, ...]
    pv_san: tuple[str, ...]
    pv_fens: tuple[str, ...]
    score_cp: int | None = None
    mate: int | None = None

    @property
    def score_label(self) -> str:
        if self.mate is not None:
            return f"M{abs(self.mate)}"
        if self.score_cp is not None:
            return f"{self.score_cp / 100:.2f}"
        return "-"

    @property
    def win_ratio(self) -> float:
        """Evaluation mapped to ``[0, 1]`` for an evaluation bar."""
        if self.mate is not None:
            return 1.0 if self.mate > 0 else 0.0
        cp = max(-_CP_CLAMP, min(_CP_CLAMP, self.score_cp or 0))
        return 1.0 / (1.0 + math.exp(-cp / _CP_SCALE))

    @property
    def first_move(self) -> str | None:
        return self.pv_uci[0] if self.pv_uci else None
