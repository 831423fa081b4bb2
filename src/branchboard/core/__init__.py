"""Core layer: legality oracle, variation tree and path reconstruction."""

from branchboard.core.oracle import STARTING_FEN
from branchboard.core.paths import ResolvedPath, path_to, replay_moves, resolve

__all__ = [
    "STARTING_FEN",
    "ResolvedPath",
    "path_to",
    "replay_moves",
    "resolve",
]
