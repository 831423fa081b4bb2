"""User-configurable settings."""

from __future__ import annotations

from dataclasses import dataclass, field

# ── Engine profiles ──────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class EngineProfile:
    """How to launch one UCI engine and what it supports."""

    id: str
    label: str
    program: str
    arguments: tuple[str, ...] = ()
    supports_multipv: bool = True
    max_multipv: int = 1
    threads: int = 1
    hash_mb: int = 16


DEFAULT_ENGINE_PROFILES: tuple[EngineProfile, ...] = (
    EngineProfile(
        id="stockfish",
        label="Stockfish",
        program="stockfish",
        supports_multipv=True,
        max_multipv=10,
        threads=1,
        hash_mb=64,
    ),
    EngineProfile(
        id="stockfish-lite",
        label="Stockfish (light)",
        program="stockfish",
        supports_multipv=True,
        max_multipv=6,
        threads=1,
        hash_mb=32,
    ),
    EngineProfile(
        id="stockfish-single",
        label="Stockfish (single PV)",
        program="stockfish",
        supports_multipv=False,
        max_multipv=1,
        threads=1,
        hash_mb=16,
    ),
)


def find_profile(profile_id: str) -> EngineProfile:
    """Look up a built-in profile, falling back to the first one."""
    for profile in DEFAULT_ENGINE_PROFILES:
        if profile.id == profile_id:
            return profile
    return DEFAULT_ENGINE_PROFILES[0]


# ── Settings data class ──────────────────────────────────────────────────────


@dataclass
class AppSettings:
    """All user-configurable settings."""

    # Engine
    engine_profile: EngineProfile = field(
        default_factory=lambda: DEFAULT_ENGINE_PROFILES[0]
    )
    engine_depth: int = 18
    engine_multipv: int = 3

    # Engine request scheduling
    min_dispatch_interval_ms: int = 120
    debounce_ms: int = 150
    restart_delay_ms: int = 150

    # Timeline
    frame_interval_ms: int = 340  # piece animation (300 ms) plus slack

    # Diagnostics
    log_level: str = "WARNING"

    def clamped_multipv(self, value: int | None = None) -> int:
        """Clamp a MultiPV request to what the engine profile allows."""
        requested = self.engine_multipv if value is None else value
        if not self.engine_profile.supports_multipv:
            return 1
        upper = max(1, self.engine_profile.max_multipv)
        return min(max(1, requested), upper)
