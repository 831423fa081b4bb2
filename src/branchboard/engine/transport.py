"""Line-oriented transport to an external UCI engine process."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from PyQt6.QtCore import QObject, QProcess

from branchboard.settings import EngineProfile

_LOGGER = logging.getLogger(__name__)

LineCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]


class EngineTransport(Protocol):
    """Minimal transport interface used by :class:`EngineSession`."""

    def start(self) -> None: ...

    def write_line(self, line: str) -> None: ...

    def close(self) -> None: ...


TransportFactory = Callable[[LineCallback, ErrorCallback], EngineTransport]


class QProcessTransport:
    """Runs the engine in a :class:`QProcess` and reports whole stdout lines.

    Output and errors are delivered on the thread owning the process (the
    UI thread).  After :meth:`close` no callback fires any more.
    """

    __slots__ = (
        "__weakref__",
        "_program",
        "_arguments",
        "_on_line",
        "_on_error",
        "_parent",
        "_process",
        "_buffer",
        "_closed",
    )

    def __init__(
        self,
        program: str,
        arguments: Sequence[str] = (),
        *,
        on_line: LineCallback,
        on_error: ErrorCallback,
        parent: QObject | None = None,
    ) -> None:
        self._program = program
        self._arguments = list(arguments)
        self._on_line = on_line
        self._on_error = on_error
        self._parent = parent
        self._process: QProcess | None = None
        self._buffer = ""
        self._closed = False

    def start(self) -> None:
        process = QProcess(self._parent)
        process.setProgram(self._program)
        process.setArguments(self._arguments)
        process.readyReadStandardOutput.connect(self._read_output)
        process.errorOccurred.connect(self._on_process_error)
        process.finished.connect(self._on_process_finished)
        self._process = process
        _LOGGER.debug("Starting engine %s %s", self._program, self._arguments)
        process.start()

    def write_line(self, line: str) -> None:
        if self._closed or self._process is None:
            return
        _LOGGER.debug(">> %s", line)
        self._process.write(f"{line}\n".encode())

    def close(self) -> None:
        """Stop the process; pending output and errors are discarded."""
        if self._closed:
            return
        self._closed = True
        process = self._process
        self._process = None
        if process is None:
            return
        if process.state() != QProcess.ProcessState.NotRunning:
            process.write(b"quit\n")
            if not process.waitForFinished(500):
                process.kill()
                process.waitForFinished(500)
        process.deleteLater()

    def _read_output(self) -> None:
        if self._closed or self._process is None:
            return
        chunk = bytes(self._process.readAllStandardOutput().data())
        self._buffer += chunk.decode("utf-8", errors="replace")
        *lines, self._buffer = self._buffer.split("\n")
        for raw in lines:
            line = raw.rstrip("\r")
            if line:
                _LOGGER.debug("<< %s", line)
                self._on_line(line)

    def _on_process_error(self, error: QProcess.ProcessError) -> None:
        if self._closed or self._process is None:
            return
        self._on_error(f"{error.name}: {self._process.errorString()}")

    def _on_process_finished(
        self, exit_code: int, exit_status: QProcess.ExitStatus
    ) -> None:
        if self._closed:
            return
        # A crash has already been reported through errorOccurred.
        if exit_status == QProcess.ExitStatus.CrashExit:
            return
        self._on_error(f"Engine process unreachable (exited with code {exit_code})")


def qprocess_transport_factory(
    profile: EngineProfile,
    parent: QObject | None = None,
) -> TransportFactory:
    """Build a factory launching *profile*'s program."""

    def _factory(on_line: LineCallback, on_error: ErrorCallback) -> EngineTransport:
        return QProcessTransport(
            profile.program,
            profile.arguments,
            on_line=on_line,
            on_error=on_error,
            parent=parent,
        )

    return _factory
