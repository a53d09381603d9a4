"""Recursive separator-driven splitting, the default chunking strategy.

The text is cut on the coarsest separator that occurs in it.  Pieces that
fit the budget are merged left to right into chunks; pieces that do not fit
are split again with the next separator down the list.  When a chunk is
closed, trailing pieces up to ``chunk_overlap`` are carried into the next
chunk.

Pieces remember the separator text that preceded them (their *gap*), so a
merged chunk is always an exact substring of the source unless
``keep_separator`` moved the separator onto the following piece, which is
also a substring.
"""

from __future__ import annotations

import re

import structlog

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.separators import DEFAULT_SEPARATORS
from chunkwise.services.chunking.splitters.base import BaseSplitter

logger = structlog.get_logger(logger_name=__name__)

# (separator text that preceded the piece, piece text)
_Piece = tuple[str, str]


class RecursiveSplitter(BaseSplitter):
    """Splits on a priority-ordered list of regex separators."""

    strategy = SplitterType.RECURSIVE
    default_keep_separator = True

    @property
    def separators(self) -> tuple[str, ...]:
        return self._config.separators or DEFAULT_SEPARATORS

    @property
    def keep_separator(self) -> bool:
        if self._config.keep_separator is None:
            return self.default_keep_separator
        return self._config.keep_separator

    def _split(self, text: str) -> list[str]:
        return self._split_recursive(text, self.separators, self.content_budget)

    # ------------------------------------------------------------------
    # Recursion
    # ------------------------------------------------------------------

    def _split_recursive(self, text: str, separators: tuple[str, ...], budget: int) -> list[str]:
        chunks: list[str] = []

        separator = separators[-1] if separators else ""
        remaining: tuple[str, ...] = ()
        for i, candidate in enumerate(separators):
            if candidate == "":
                separator = ""
                break
            if re.search(candidate, text):
                separator = candidate
                remaining = separators[i + 1 :]
                break

        good: list[_Piece] = []
        for gap, piece in self._split_on(text, separator):
            if self.length(piece) <= budget:
                good.append((gap, piece))
                continue
            if good:
                chunks.extend(self._merge(good, budget))
                good = []
            if remaining:
                chunks.extend(self._split_recursive(piece, remaining, budget))
            else:
                stripped = piece.strip()
                if stripped:
                    logger.debug("atomic_piece_exceeds_budget", length=self.length(piece), budget=budget)
                    chunks.append(stripped)
        if good:
            chunks.extend(self._merge(good, budget))
        return chunks

    def _split_on(self, text: str, separator: str) -> list[_Piece]:
        """Cut *text* on *separator*, returning ``(gap, piece)`` pairs."""
        if not separator:
            return [("", ch) for ch in text]
        if not re.search(separator, text):
            return [("", text)]

        parts = re.split(f"({separator})", text)
        raw: list[_Piece] = [("", parts[0])]
        for i in range(1, len(parts), 2):
            if self.keep_separator:
                raw.append(("", parts[i] + parts[i + 1]))
            else:
                raw.append((parts[i], parts[i + 1]))

        # Empty pieces (adjacent separators) fold their gap into the next piece.
        pieces: list[_Piece] = []
        carry = ""
        for gap, piece in raw:
            if piece == "":
                carry += gap
                continue
            pieces.append((carry + gap, piece))
            carry = ""
        return pieces

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def _merge(self, pieces: list[_Piece], budget: int) -> list[str]:
        """Merge small pieces into chunks of at most *budget*, with overlap."""
        overlap = self.effective_overlap(budget)
        chunks: list[str] = []
        current: list[_Piece] = []
        total = 0

        for gap, piece in pieces:
            size = self.length(piece)
            joint = self.length(gap) if current else 0
            if current and total + joint + size > budget:
                chunk = self._join(current)
                if chunk:
                    chunks.append(chunk)
                # Drop leading pieces until only the overlap tail remains and
                # the next piece fits behind it.
                while current and (
                    total > overlap or total + self.length(gap) + size > budget
                ):
                    _, first = current.pop(0)
                    total -= self.length(first)
                    if current:
                        total -= self.length(current[0][0])
            current.append((gap, piece))
            total += size + (self.length(gap) if len(current) > 1 else 0)

        chunk = self._join(current)
        if chunk:
            chunks.append(chunk)
        return chunks

    @staticmethod
    def _join(pieces: list[_Piece]) -> str:
        text = "".join(piece if i == 0 else gap + piece for i, (gap, piece) in enumerate(pieces))
        return text.strip()
