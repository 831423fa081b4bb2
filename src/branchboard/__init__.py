"""branchboard: PGN variation trees, position timelines and UCI analysis."""

from branchboard.core.notation import GameTree, Line, ParsedGame, Ply, parse_movetext
from branchboard.core.paths import ResolvedPath, resolve
from branchboard.engine import EngineLine, EngineSession, SessionState
from branchboard.game import TimelineController
from branchboard.logging_setup import configure_logging
from branchboard.settings import AppSettings, EngineProfile
from branchboard.viewer import GameViewer

__all__ = [
    "AppSettings",
    "EngineLine",
    "EngineProfile",
    "EngineSession",
    "GameTree",
    "GameViewer",
    "Line",
    "ParsedGame",
    "Ply",
    "ResolvedPath",
    "SessionState",
    "TimelineController",
    "configure_logging",
    "parse_movetext",
    "resolve",
]

__version__ = "0.1.0"
