"""UCI protocol helpers: outbound commands and inbound ``info`` parsing."""

from __future__ import annotations

import re
from collections.abc import Iterable

from branchboard.core import oracle
from branchboard.engine.models import EngineLine, InfoLine

_DEPTH_RE = re.compile(r"\bdepth (\d+)")
_MULTIPV_RE = re.compile(r"\bmultipv (\d+)")
_MATE_RE = re.compile(r"\bscore mate (-?\d+)")
_CP_RE = re.compile(r"\bscore cp (-?\d+)")
_PV_RE = re.compile(r"\bpv (.+)$")


# ── Outbound ─────────────────────────────────────────────────────────────────


def setoption_command(name: str, value: object) -> str:
    return f"setoption name {name} value {value}"


def position_command(fen: str) -> str:
    return f"position fen {fen}"


def go_command(depth: int) -> str:
    return f"go depth {depth}"


# ── Inbound ──────────────────────────────────────────────────────────────────


def is_uciok(line: str) -> bool:
    return line.strip() == "uciok"


def is_readyok(line: str) -> bool:
    return line.strip() == "readyok"


def is_bestmove(line: str) -> bool:
    return line.startswith("bestmove")


def parse_info(line: str) -> InfoLine | None:
    """Parse an ``info`` line carrying a principal variation.

    Lines without ``depth`` or ``pv`` (``info string``, ``currmove`` updates)
    yield ``None``.  A missing ``multipv`` means rank 1.
    """
    text = line.strip()
    if not text.startswith("info "):
        return None

    depth_match = _DEPTH_RE.search(text)
    pv_match = _PV_RE.search(text)
    if depth_match is None or pv_match is None:
        return None
    pv = tuple(pv_match.group(1).split())
    if not pv:
        return None

    multipv_match = _MULTIPV_RE.search(text)
    multipv = int(multipv_match.group(1)) if multipv_match is not None else 1

    mate_match = _MATE_RE.search(text)
    cp_match = _CP_RE.search(text)
    mate = int(mate_match.group(1)) if mate_match is not None else None
    score_cp = int(cp_match.group(1)) if cp_match is not None and mate is None else None

    return InfoLine(
        depth=int(depth_match.group(1)),
        multipv=multipv,
        pv=pv,
        score_cp=score_cp,
        mate=mate,
    )


def pv_to_san(fen: str, uci_moves: Iterable[str]) -> tuple[list[str], list[str]]:
    """Replay a UCI move list from *fen*.

    Returns the SAN moves and the position frames (starting with *fen*);
    replay stops at the first move that is malformed or illegal.
    """
    sans: list[str] = []
    fens = [fen]
    current = fen
    for uci in uci_moves:
        if len(uci) < 4:
            break
        applied = oracle.apply_uci(current, uci)
        if applied is None:
            break
        san, current = applied
        sans.append(san)
        fens.append(current)
    return sans, fens


def engine_line_from_info(info: InfoLine, fen: str) -> EngineLine:
    """Build the display record for *info* analysed from *fen*."""
    sans, fens = pv_to_san(fen, info.pv)
    return EngineLine(
        rank=info.multipv,
        depth=info.depth,
        pv_uci=info.pv,
        pv_san=tuple(sans),
        pv_fens=tuple(fens),
        score_cp=info.score_cp,
        mate=info.mate,
    )
