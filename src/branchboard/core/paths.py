"""Reconstruct board position sequences from variation tree nodes."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from branchboard.core import oracle
from branchboard.core.notation.models import GameTree, Ply

_LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResolvedPath:
    """Positions from a line start through a node and its continuation.

    ``positions[cursor]`` is the position after the selected node.
    """

    positions: tuple[str, ...]
    plies: tuple[Ply, ...]
    cursor: int

    @property
    def live_position(self) -> str:
        return self.positions[self.cursor]


def path_to(tree: GameTree, ply_id: int) -> list[Ply]:
    """Plies from the start of the owning line up to *ply_id*, in order."""
    path: list[Ply] = []
    seen: set[int] = set()
    node = tree.ply(ply_id)
    while node is not None and node.id not in seen:
        seen.add(node.id)
        path.append(node)
        node = tree.previous(node)
    path.reverse()
    return path


def resolve(
    tree: GameTree,
    ply_id: int,
    *,
    with_continuation: bool = True,
) -> ResolvedPath:
    """Replay the path to *ply_id* through the oracle.

    Positions are regenerated from the owning line's start position rather
    than read from the cached FENs.  With *with_continuation* the remaining
    plies of the same line are appended so that stepping forward stays on
    the selected branch.  A move that no longer applies truncates the
    sequence at the last good position.
    """
    node = tree.ply(ply_id)
    if node is None:
        raise KeyError(f"Unknown ply id: {ply_id}")

    line = tree.owning_line(node)
    start_fen = line.start_fen if line is not None else tree.start_fen

    positions = [start_fen]
    replayed: list[Ply] = []
    current = start_fen
    for ply in path_to(tree, ply_id):
        after = oracle.apply_move(current, ply.san_clean)
        if after is None:
            _LOGGER.warning("Path replay stopped at %r (ply %d)", ply.san, ply.id)
            return ResolvedPath(tuple(positions), tuple(replayed), len(positions) - 1)
        positions.append(after)
        replayed.append(ply)
        current = after

    cursor = len(positions) - 1
    if with_continuation and line is not None:
        for ply in line.plies[node.index_in_line + 1 :]:
            after = oracle.apply_move(current, ply.san_clean)
            if after is None:
                break
            positions.append(after)
            replayed.append(ply)
            current = after

    return ResolvedPath(tuple(positions), tuple(replayed), cursor)


def replay_moves(start_fen: str, descriptors: Iterable[str]) -> list[str]:
    """Positions reached by applying *descriptors* from *start_fen*.

    The first element is *start_fen*; replay stops at the first move the
    oracle rejects.
    """
    positions = [start_fen]
    current = start_fen
    for descriptor in descriptors:
        after = oracle.apply_move(current, descriptor)
        if after is None:
            break
        positions.append(after)
        current = after
    return positions
