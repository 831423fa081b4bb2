"""Game layer: position timeline and navigation."""

from branchboard.game.timeline import TimelineController

__all__ = ["TimelineController"]
