"""Variation tree data models.

The tree is a strict forest: a :class:`Line` owns its plies and its
pre-variations, a :class:`Ply` owns the variations branching after it.
Upward and sideways links (previous ply, owning line) are integer ids that
are resolved through the :class:`GameTree` arena.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

# Standard glyphs for the move and position NAGs people actually write.
_NAG_SYMBOLS: dict[int, str] = {
    1: "!",
    2: "?",
    3: "!!",
    4: "??",
    5: "!?",
    6: "?!",
    7: "□",
    10: "=",
    13: "∞",
    14: "⩲",
    15: "⩱",
    16: "±",
    17: "∓",
    18: "+-",
    19: "-+",
    22: "⨀",
    23: "⨀",
    32: "⟳",
    33: "⟳",
    36: "→",
    37: "→",
    40: "↑",
    41: "↑",
    132: "⇆",
    133: "⇆",
    138: "⊕",
    139: "⊕",
    146: "N",
}


def nag_symbol(code: int) -> str:
    """Display glyph for a NAG code, ``$n`` when there is no common glyph."""
    return _NAG_SYMBOLS.get(code, f"${code}")


@dataclass(slots=True)
class Ply:
    """One half-move in a line of play."""

    id: int
    san: str
    san_clean: str
    fen_before: str
    fen_after: str
    move_number: int
    is_white: bool
    comments_before: list[str] = field(default_factory=list)
    comments_after: list[str] = field(default_factory=list)
    nags: list[int] = field(default_factory=list)
    previous_id: int | None = None
    line_id: int | None = None
    index_in_line: int = 0
    variations: list[Line] = field(default_factory=list)

    @property
    def move_label(self) -> str:
        """Move number prefix: ``"12."`` for White, ``"12..."`` for Black."""
        if self.is_white:
            return f"{self.move_number}."
        return f"{self.move_number}..."

    @property
    def nag_symbols(self) -> list[str]:
        return [nag_symbol(code) for code in self.nags]


@dataclass(slots=True)
class Line:
    """A contiguous sequence of plies sharing one position lineage."""

    id: int
    start_fen: str
    plies: list[Ply] = field(default_factory=list)
    pre_variations: list[Line] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.plies)

    @property
    def end_fen(self) -> str:
        if self.plies:
            return self.plies[-1].fen_after
        return self.start_fen


@dataclass(slots=True)
class GameTree:
    """Arena holding the parsed variation tree of one game."""

    main: Line
    plies: dict[int, Ply] = field(default_factory=dict)
    lines: dict[int, Line] = field(default_factory=dict)

    @property
    def mainline(self) -> list[Ply]:
        return list(self.main.plies)

    @property
    def start_fen(self) -> str:
        return self.main.start_fen

    def ply(self, ply_id: int) -> Ply | None:
        return self.plies.get(ply_id)

    def owning_line(self, ply: Ply) -> Line | None:
        if ply.line_id is None:
            return None
        return self.lines.get(ply.line_id)

    def previous(self, ply: Ply) -> Ply | None:
        if ply.previous_id is None:
            return None
        return self.plies.get(ply.previous_id)

    def mainline_positions(self) -> list[str]:
        """Start position followed by every main-line position."""
        return [self.main.start_fen, *(ply.fen_after for ply in self.main.plies)]

    def iter_lines(self) -> Iterator[Line]:
        """Yield every line, depth first, the main line first."""
        stack = [self.main]
        while stack:
            line = stack.pop()
            yield line
            children: list[Line] = list(line.pre_variations)
            for ply in line.plies:
                children.extend(ply.variations)
            stack.extend(reversed(children))

    def has_variations(self) -> bool:
        return any(line is not self.main for line in self.iter_lines())

    def variation_ply_ids(self) -> list[int]:
        """Ids of plies that own at least one variation."""
        return [
            ply.id
            for line in self.iter_lines()
            for ply in line.plies
            if ply.variations
        ]


def line_preview(line: Line, max_plies: int = 6) -> str:
    """Short one-line summary of *line*, e.g. ``"1... c5 Nf3 d6 …"``."""
    parts: list[str] = []
    for idx, ply in enumerate(line.plies[:max_plies]):
        parts.append(f"{ply.move_label} {ply.san}" if idx == 0 else ply.san)
    if len(line.plies) > max_plies:
        parts.append("…")
    return " ".join(parts)
