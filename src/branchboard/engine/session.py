"""Engine analysis session orchestration for the UI thread."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable

from PyQt6.QtCore import QObject, QTimer

from branchboard.engine.models import AnalysisRequest, EngineLine, SessionState
from branchboard.engine.transport import (
    EngineTransport,
    TransportFactory,
    qprocess_transport_factory,
)
from branchboard.engine.uci import (
    engine_line_from_info,
    go_command,
    is_bestmove,
    is_readyok,
    is_uciok,
    parse_info,
    position_command,
    setoption_command,
)
from branchboard.settings import AppSettings

_LOGGER = logging.getLogger(__name__)

# Transport errors after which the process cannot be used any more.
_FATAL_ERROR_RE = re.compile(r"unreachable|RuntimeError|crash", re.IGNORECASE)

LinesCallback = Callable[[list[EngineLine]], None]
StateCallback = Callable[[SessionState], None]
ErrorCallback = Callable[[str], None]


def is_fatal_transport_error(message: str) -> bool:
    return _FATAL_ERROR_RE.search(message) is not None


class EngineSession:
    """Owns the engine process lifecycle and the ranked analysis results.

    All methods run on the thread owning the session (the UI thread); the
    transport delivers engine output on that same thread, so results need no
    locking.  Only the most recent analysis request is ever dispatched and
    output from superseded searches is discarded.
    """

    __slots__ = (
        "__weakref__",
        "_settings",
        "_transport_factory",
        "_transport",
        "_clock",
        "_on_lines_changed",
        "_on_state_changed",
        "_on_error",
        "_dispatch_timer",
        "_restart_timer",
        "_state",
        "_lines",
        "_last_error",
        "_depth",
        "_multipv",
        "_pending_request",
        "_active_request",
        "_last_dispatch_at",
        "_superseded_searches",
        "_is_restarting",
    )

    def __init__(
        self,
        *,
        settings: AppSettings | None = None,
        transport_factory: TransportFactory | None = None,
        on_lines_changed: LinesCallback | None = None,
        on_state_changed: StateCallback | None = None,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
        parent: QObject | None = None,
    ) -> None:
        self._settings = settings if settings is not None else AppSettings()
        if transport_factory is None:
            transport_factory = qprocess_transport_factory(
                self._settings.engine_profile, parent
            )
        self._transport_factory = transport_factory
        self._transport: EngineTransport | None = None
        self._clock = clock
        self._on_lines_changed = on_lines_changed
        self._on_state_changed = on_state_changed
        self._on_error = on_error

        self._dispatch_timer = QTimer(parent)
        self._dispatch_timer.setSingleShot(True)
        self._dispatch_timer.timeout.connect(self._dispatch_pending)

        self._restart_timer = QTimer(parent)
        self._restart_timer.setSingleShot(True)
        self._restart_timer.timeout.connect(self._restart)

        self._state = SessionState.UNSTARTED
        self._lines: dict[int, EngineLine] = {}
        self._last_error: str | None = None
        self._depth = max(1, self._settings.engine_depth)
        self._multipv = self._settings.clamped_multipv()
        self._pending_request: AnalysisRequest | None = None
        self._active_request: AnalysisRequest | None = None
        self._last_dispatch_at: float | None = None
        self._superseded_searches = 0
        self._is_restarting = False

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state in (SessionState.READY, SessionState.ANALYZING)

    @property
    def is_thinking(self) -> bool:
        return self._state == SessionState.ANALYZING

    @property
    def lines(self) -> list[EngineLine]:
        """Current results sorted by rank (best first)."""
        return [self._lines[rank] for rank in sorted(self._lines)]

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def analyzed_fen(self) -> str | None:
        if self._active_request is None:
            return None
        return self._active_request.fen

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def multipv(self) -> int:
        return self._multipv

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Launch the engine process and begin the UCI handshake."""
        if self._state not in (SessionState.UNSTARTED, SessionState.STOPPED):
            return
        self._spawn()

    def shutdown(self) -> None:
        """Stop any search and terminate the engine process."""
        if self._state in (SessionState.UNSTARTED, SessionState.STOPPED):
            return
        self._restart_timer.stop()
        self._is_restarting = False
        if self.is_thinking:
            self._send("stop")
        self._teardown()
        self._pending_request = None
        self._set_state(SessionState.STOPPED)

    # ── Requests ─────────────────────────────────────────────────────────

    def set_options(self, *, depth: int | None = None, multipv: int | None = None) -> None:
        """Update depth/MultiPV for subsequent requests."""
        if depth is not None:
            self._depth = max(1, depth)
        if multipv is not None:
            self._multipv = self._settings.clamped_multipv(multipv)

    def analyze(
        self,
        fen: str,
        *,
        depth: int | None = None,
        multipv: int | None = None,
    ) -> None:
        """Request analysis of *fen*, replacing any request not yet sent.

        Dispatches right away unless the previous dispatch was very recent,
        in which case the request waits for the debounce window.  Requests
        made before the handshake completes are sent once the engine is ready.
        """
        if self._state == SessionState.STOPPED:
            return
        if fen != self.analyzed_fen:
            # Results for the previous position must not outlive the debounce.
            self._clear_lines()
        self._pending_request = AnalysisRequest(
            fen=fen,
            depth=max(1, depth if depth is not None else self._depth),
            multipv=self._settings.clamped_multipv(
                multipv if multipv is not None else self._multipv
            ),
        )
        if self.is_ready:
            self._schedule_dispatch()

    def stop(self) -> None:
        """Stop the running search and drop any request waiting to be sent."""
        self._dispatch_timer.stop()
        self._pending_request = None
        if self._state != SessionState.ANALYZING:
            return
        self._send("stop")
        self._superseded_searches += 1
        self._set_state(SessionState.READY)

    # ── Inbound ──────────────────────────────────────────────────────────

    def handle_line(self, line: str) -> None:
        """Process one line of engine output."""
        if is_uciok(line):
            if self._state == SessionState.HANDSHAKING:
                self._send("isready")
            return

        if is_readyok(line):
            if self._state == SessionState.HANDSHAKING:
                self._on_ready()
            return

        if is_bestmove(line):
            if self._superseded_searches > 0:
                self._superseded_searches -= 1
                return
            if self._state == SessionState.ANALYZING:
                self._set_state(SessionState.READY)
            return

        if self._state != SessionState.ANALYZING or self._superseded_searches > 0:
            return
        request = self._active_request
        if request is None:
            return
        pending = self._pending_request
        if pending is not None and pending.fen != request.fen:
            return
        info = parse_info(line)
        if info is None or info.multipv > request.multipv:
            return

        self._lines[info.multipv] = engine_line_from_info(info, request.fen)
        self._notify_lines()

    def handle_transport_error(self, message: str) -> None:
        """Record a transport error and restart the engine if it crashed."""
        self._last_error = message
        if self._on_error is not None:
            self._on_error(message)

        if not is_fatal_transport_error(message):
            _LOGGER.warning("Engine error: %s", message)
            return
        if self._is_restarting or self._state == SessionState.STOPPED:
            return

        _LOGGER.warning("Engine crashed, restarting: %s", message)
        self._is_restarting = True
        if self._pending_request is None and self._state == SessionState.ANALYZING:
            # Resume the interrupted analysis once the new process is ready.
            self._pending_request = self._active_request
        self._teardown()
        self._set_state(SessionState.FAULTED)
        self._restart_timer.start(self._settings.restart_delay_ms)

    # ── Internals ────────────────────────────────────────────────────────

    def _spawn(self) -> None:
        self._transport = self._transport_factory(
            self.handle_line, self.handle_transport_error
        )
        self._set_state(SessionState.HANDSHAKING)
        self._transport.start()
        self._send("uci")

    def _restart(self) -> None:
        self._is_restarting = False
        if self._state != SessionState.FAULTED:
            return
        self._last_error = None
        self._set_state(SessionState.RESTARTING)
        self._spawn()

    def _teardown(self) -> None:
        self._dispatch_timer.stop()
        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.close()
        self._active_request = None
        self._last_dispatch_at = None
        self._superseded_searches = 0
        self._clear_lines()

    def _on_ready(self) -> None:
        profile = self._settings.engine_profile
        self._set_state(SessionState.READY)
        self._send(setoption_command("Threads", profile.threads))
        self._send(setoption_command("Hash", profile.hash_mb))
        if self._pending_request is not None:
            self._schedule_dispatch()

    def _schedule_dispatch(self) -> None:
        self._dispatch_timer.stop()
        last = self._last_dispatch_at
        if last is not None:
            elapsed_ms = (self._clock() - last) * 1000.0
            if elapsed_ms < self._settings.min_dispatch_interval_ms:
                self._dispatch_timer.start(self._settings.debounce_ms)
                return
        self._dispatch_pending()

    def _dispatch_pending(self) -> None:
        request = self._pending_request
        if request is None or not self.is_ready or self._transport is None:
            return
        self._pending_request = None
        self._last_dispatch_at = self._clock()

        if self._state == SessionState.ANALYZING:
            self._superseded_searches += 1

        previous = self._active_request
        self._active_request = request
        if previous is None or previous.fen != request.fen:
            self._clear_lines()
        elif any(rank > request.multipv for rank in self._lines):
            self._lines = {
                rank: line for rank, line in self._lines.items() if rank <= request.multipv
            }
            self._notify_lines()

        self._send("stop")
        if self._settings.engine_profile.supports_multipv:
            self._send(setoption_command("MultiPV", request.multipv))
        self._send(position_command(request.fen))
        self._send(go_command(request.depth))
        self._set_state(SessionState.ANALYZING)

    def _send(self, line: str) -> None:
        if self._transport is not None:
            self._transport.write_line(line)

    def _clear_lines(self) -> None:
        if not self._lines:
            return
        self._lines = {}
        self._notify_lines()

    def _notify_lines(self) -> None:
        if self._on_lines_changed is not None:
            self._on_lines_changed(self.lines)

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        _LOGGER.debug("Engine session %s -> %s", self._state.name, state.name)
        self._state = state
        if self._on_state_changed is not None:
            self._on_state_changed(state)
