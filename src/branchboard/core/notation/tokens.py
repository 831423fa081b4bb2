"""Lexical scan of PGN movetext into a flat token stream."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

_LINE_COMMENT_RE = re.compile(r";[^\n]*")
_TOKEN_RE = re.compile(
    r"\{[^}]*(?:\}|$)"  # brace comment, unterminated runs to the end
    r"|\$\d+"
    r"|\d+(?:\.(?:\.\.|…)?|…)"
    r"|1-0|0-1|1/2-1/2|½-½|\*"
    r"|[()]"
    r"|[^\s(){]+"
)
_MOVE_NUMBER_RE = re.compile(r"^(\d+)(\.\.\.|\.…|…|\.)$")

RESULT_CODES = frozenset({"1-0", "0-1", "1/2-1/2", "½-½", "*"})


@dataclass(slots=True, frozen=True)
class Comment:
    text: str


@dataclass(slots=True, frozen=True)
class Nag:
    code: int


@dataclass(slots=True, frozen=True)
class MoveNumber:
    number: int
    is_continuation: bool = False


@dataclass(slots=True, frozen=True)
class VariationStart:
    pass


@dataclass(slots=True, frozen=True)
class VariationEnd:
    pass


@dataclass(slots=True, frozen=True)
class Result:
    code: str


@dataclass(slots=True, frozen=True)
class MoveText:
    raw: str


Token = Comment | Nag | MoveNumber | VariationStart | VariationEnd | Result | MoveText


def strip_line_comments(raw: str) -> str:
    """Drop ``;`` comments up to the end of their line."""
    return _LINE_COMMENT_RE.sub("", raw)


def _classify(fragment: str) -> Token:
    if fragment.startswith("{"):
        body = fragment[1:-1] if fragment.endswith("}") else fragment[1:]
        return Comment(body.strip())
    if fragment.startswith("$") and fragment[1:].isdigit():
        return Nag(int(fragment[1:]))
    match = _MOVE_NUMBER_RE.match(fragment)
    if match is not None:
        number, dots = match.groups()
        return MoveNumber(int(number), dots != ".")
    if fragment == "(":
        return VariationStart()
    if fragment == ")":
        return VariationEnd()
    if fragment in RESULT_CODES:
        return Result(fragment)
    return MoveText(fragment)


def tokenize(raw: str) -> Iterator[Token]:
    """Yield the tokens of *raw* movetext from left to right.

    Tokenization never fails: any fragment that is not a comment, glyph,
    move number, parenthesis or result is emitted as :class:`MoveText`.
    """
    text = strip_line_comments(raw)
    for match in _TOKEN_RE.finditer(text):
        yield _classify(match.group(0))
