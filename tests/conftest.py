"""Shared pytest fixtures used across the test suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest


@pytest.fixture(scope="session", autouse=True)
def qapp() -> Iterator[object]:
    """Provide a singleton QCoreApplication so Qt timers have an event loop."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture
def sample_movetext() -> str:
    return (
        "1. e4 {King pawn} e5 (1... c5 {Sicilian} 2. Nf3 (2. c3 d5) 2... d6) "
        "2. Nf3 $1 Nc6 3. Bb5 a6 1-0"
    )
