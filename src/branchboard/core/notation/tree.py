"""Recursive-descent builder turning movetext tokens into a variation tree."""

from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterable

from branchboard.core import oracle
from branchboard.core.notation.models import GameTree, Line, Ply
from branchboard.core.notation.tokens import (
    Comment,
    MoveNumber,
    MoveText,
    Nag,
    Result,
    Token,
    VariationEnd,
    VariationStart,
    tokenize,
)

_LOGGER = logging.getLogger(__name__)

_MINUS_SIGNS = str.maketrans({"−": "-", "–": "-", "‒": "-", "‐": "-"})
_CHECK_THEN_GLYPH_RE = re.compile(r"([+#])[!?]+")
_GLYPH_RE = re.compile(r"[!?]+")


def sanitize_san(san: str) -> str:
    """Strip ``!``/``?`` glyphs and normalise minus signs, keeping ``+``/``#``."""
    clean = san.translate(_MINUS_SIGNS)
    clean = _CHECK_THEN_GLYPH_RE.sub(r"\1", clean)
    return _GLYPH_RE.sub("", clean)


class _TreeBuilder:
    """Single-use parser state; ids are scoped to one builder."""

    __slots__ = ("_tokens", "_ply_ids", "_line_ids", "_tree_plies", "_tree_lines")

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._ply_ids = itertools.count(1)
        self._line_ids = itertools.count(1)
        self._tree_plies: dict[int, Ply] = {}
        self._tree_lines: dict[int, Line] = {}

    def build(self, start_fen: str) -> GameTree:
        main, _ = self._parse_line(0, start_fen)
        return GameTree(main=main, plies=self._tree_plies, lines=self._tree_lines)

    def _variation_anchor(self, idx: int, line: Line) -> str:
        """Pick the position a variation opening at ``tokens[idx]`` starts from.

        Defaults to the position after the last ply.  When the first
        substantive token inside the variation is a move number whose side
        disagrees with that position, the variation replaces the last ply
        and starts from the position before it instead.
        """
        last = line.plies[-1] if line.plies else None
        anchor = last.fen_after if last is not None else line.start_fen

        j = idx + 1
        while j < len(self._tokens) and isinstance(self._tokens[j], (Comment, Nag)):
            j += 1

        if last is None or j >= len(self._tokens):
            return anchor
        token = self._tokens[j]
        if not isinstance(token, MoveNumber):
            return anchor

        wants_white = not token.is_continuation
        if oracle.white_to_move(anchor) != wants_white:
            anchor = last.fen_before
        return anchor

    def _parse_line(self, idx: int, start_fen: str) -> tuple[Line, int]:
        line = Line(id=next(self._line_ids), start_fen=start_fen)
        self._tree_lines[line.id] = line

        current = start_fen
        pending_before: list[str] = []
        last_was_move = False
        tokens = self._tokens

        while idx < len(tokens):
            token = tokens[idx]

            if isinstance(token, Result):
                idx += 1
                break

            if isinstance(token, VariationEnd):
                idx += 1
                break

            if isinstance(token, VariationStart):
                anchor = self._variation_anchor(idx, line)
                variation, idx = self._parse_line(idx + 1, anchor)
                if line.plies:
                    line.plies[-1].variations.append(variation)
                else:
                    line.pre_variations.append(variation)
                last_was_move = False
                continue

            if isinstance(token, Comment):
                if last_was_move and line.plies:
                    line.plies[-1].comments_after.append(token.text)
                else:
                    pending_before.append(token.text)
                idx += 1
                continue

            if isinstance(token, Nag):
                if line.plies:
                    line.plies[-1].nags.append(token.code)
                idx += 1
                continue

            if isinstance(token, MoveNumber):
                last_was_move = False
                idx += 1
                continue

            if isinstance(token, MoveText):
                ply = self._apply(token.raw, current, line, pending_before)
                idx += 1
                if ply is None:
                    continue
                line.plies.append(ply)
                current = ply.fen_after
                pending_before = []
                last_was_move = True
                continue

            idx += 1

        for index, ply in enumerate(line.plies):
            ply.line_id = line.id
            ply.index_in_line = index

        return line, idx

    def _apply(
        self,
        san: str,
        fen_before: str,
        line: Line,
        comments_before: list[str],
    ) -> Ply | None:
        san_clean = sanitize_san(san)
        if not san_clean:
            return None
        fen_after = oracle.apply_move(fen_before, san_clean)
        if fen_after is None:
            _LOGGER.debug("Skipping unplayable move %r", san)
            return None

        ply = Ply(
            id=next(self._ply_ids),
            san=san,
            san_clean=san_clean,
            fen_before=fen_before,
            fen_after=fen_after,
            move_number=oracle.fullmove_number(fen_before),
            is_white=oracle.white_to_move(fen_before),
            comments_before=list(comments_before),
            previous_id=line.plies[-1].id if line.plies else None,
        )
        self._tree_plies[ply.id] = ply
        return ply


def build_tree(tokens: Iterable[Token], start_fen: str | None = None) -> GameTree:
    """Build the variation tree for *tokens* starting at *start_fen*.

    Never raises: unplayable moves are skipped, an invalid start FEN falls
    back to the initial position.  ``tree.main`` and ``tree.mainline`` give
    the main line and its flat ply list.
    """
    builder = _TreeBuilder(list(tokens))
    return builder.build(oracle.new_position(start_fen))


def parse_movetext(movetext: str, start_fen: str | None = None) -> GameTree:
    """Tokenize and build the tree for raw *movetext*."""
    return build_tree(tokenize(movetext), start_fen)
