"""PGN document helpers: game splitting, tag pairs and movetext extraction."""

from __future__ import annotations

import re
from dataclasses import dataclass

from branchboard.core.notation.models import GameTree
from branchboard.core.notation.tree import parse_movetext

_PGN_HEADER_RE = re.compile(r'^\s*\[([^\s"]+)\s+"((?:[^"\\]|\\.)*)"\]\s*$', re.MULTILINE)
_TAG_LINE_RE = re.compile(r"^\s*\[[^\n]*\]\s*$", re.MULTILINE)
_EVENT_TAG_RE = re.compile(r"^\s*\[Event\b.*$", re.MULTILINE | re.IGNORECASE)

_BRACKET_MARKER_RE = re.compile(r"@@StartBracket@@(.*?)@@EndBracket@@", re.DOTALL)
_FEN_MARKER_RE = re.compile(r"@@StartFEN@@(.*?)@@EndFEN@@", re.DOTALL)
_OTHER_MARKER_RE = re.compile(r"@@(?:Start|End)[A-Za-z]+@@")
_COMMAND_RE = re.compile(r"\[%[^\]]*\]")


@dataclass(slots=True)
class ParsedGame:
    """One game record: tag pairs plus its variation tree."""

    headers: dict[str, str]
    tree: GameTree
    result_token: str = "*"

    @property
    def title(self) -> str:
        white = self.headers.get("White", "?")
        black = self.headers.get("Black", "?")
        event = self.headers.get("Event")
        if event and event != "?":
            return f"{white} – {black} ({event})"
        return f"{white} – {black}"


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def preprocess_external_markers(pgn_text: str) -> str:
    """Rewrite third-party export markers and drop engine debris."""

    def _bracket(match: re.Match[str]) -> str:
        inner = match.group(1).strip()
        return f"{{ {inner} }}" if inner else ""

    def _fen(match: re.Match[str]) -> str:
        inner = match.group(1).strip()
        return f"{{FEN: {inner}}}" if inner else ""

    text = normalize_newlines(pgn_text)
    text = _BRACKET_MARKER_RE.sub(_bracket, text)
    text = _FEN_MARKER_RE.sub(_fen, text)
    text = _OTHER_MARKER_RE.sub("", text)
    text = _COMMAND_RE.sub("", text)
    text = text.replace("(RR)", "")
    return re.sub(r"\(\s*\)", "", text)


def split_games(pgn_text: str) -> list[str]:
    """Split a multi-game document on the ``[Event`` tag opening each record."""
    text = normalize_newlines(pgn_text)
    starts = [match.start() for match in _EVENT_TAG_RE.finditer(text)]
    if not starts:
        stripped = text.strip()
        return [stripped] if stripped else []

    games: list[str] = []
    for begin, end in zip(starts, [*starts[1:], len(text)]):
        chunk = text[begin:end].strip()
        if chunk:
            games.append(chunk)
    return games


def parse_headers(pgn_game: str) -> dict[str, str]:
    """Parse tag pairs; later duplicates override earlier ones."""
    headers: dict[str, str] = {}
    for match in _PGN_HEADER_RE.finditer(normalize_newlines(pgn_game)):
        key, raw_value = match.groups()
        headers[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
    return headers


def extract_movetext(pgn_game: str) -> str:
    """Return the movetext after the last tag line (or first blank line)."""
    text = normalize_newlines(pgn_game)
    last_tag = None
    for last_tag in _TAG_LINE_RE.finditer(text):
        pass
    if last_tag is not None:
        return text[last_tag.end() :].strip()
    gap = text.find("\n\n")
    if gap >= 0:
        return text[gap + 2 :].strip()
    return text.strip()


def start_fen_from_headers(headers: dict[str, str]) -> str | None:
    """The ``FEN`` tag when ``SetUp`` is ``"1"``, otherwise ``None``."""
    if headers.get("SetUp") == "1" and headers.get("FEN"):
        return headers["FEN"]
    return None


def parse_pgn_game(pgn_game: str) -> ParsedGame:
    """Parse a single game record into headers and a variation tree."""
    headers = parse_headers(pgn_game)
    tree = parse_movetext(extract_movetext(pgn_game), start_fen_from_headers(headers))
    return ParsedGame(
        headers=headers,
        tree=tree,
        result_token=headers.get("Result", "*"),
    )
