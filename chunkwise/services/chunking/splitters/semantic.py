"""Paragraph-first semantic chunking.

Paragraphs are accumulated into a running chunk.  When the next paragraph
would overflow the budget and the running chunk already holds at least
``min_chunk_size`` characters, the chunk is closed and the next one opens
with whole trailing sentences of the just-finished paragraph as overlap.

A paragraph that is larger than the budget on its own, or that overflows a
running chunk still below the minimum size, is consumed sentence by
sentence with the same accumulate/close rule.  A running chunk below the
minimum is never closed as is: it is topped up with the leading words of
the sentence that overflows it, and the rest of that sentence carries on.
A single sentence larger than the budget is emitted on its own.
"""

from __future__ import annotations

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.sentences import split_paragraphs, split_sentences
from chunkwise.services.chunking.splitters.base import BaseSplitter

_PARAGRAPH_JOIN = "\n\n"
_SENTENCE_JOIN = " "


class SemanticSplitter(BaseSplitter):
    """Splits on paragraph, then sentence, boundaries."""

    strategy = SplitterType.SEMANTIC

    def _split(self, text: str) -> list[str]:
        budget = self.content_budget
        min_size = min(self._config.min_chunk_size, budget)
        chunks: list[str] = []
        current = ""

        for paragraph in split_paragraphs(text):
            candidate = self._append(current, paragraph, _PARAGRAPH_JOIN)
            if self.length(candidate) <= budget:
                current = candidate
                continue

            if current and self.length(current) >= min_size and self.length(paragraph) <= budget:
                chunks.append(current)
                current = self._open_next(current, paragraph, _PARAGRAPH_JOIN, budget)
                continue

            current = self._consume_sentences(paragraph, current, chunks, budget, min_size)

        if current:
            chunks.append(current)
        return chunks

    # ------------------------------------------------------------------
    # Sentence-level accumulation
    # ------------------------------------------------------------------

    def _consume_sentences(
        self,
        paragraph: str,
        current: str,
        chunks: list[str],
        budget: int,
        min_size: int,
    ) -> str:
        """Add *paragraph* sentence by sentence; return the new running chunk."""
        for i, sentence in enumerate(split_sentences(paragraph)):
            join = _PARAGRAPH_JOIN if i == 0 else _SENTENCE_JOIN
            candidate = self._append(current, sentence, join)
            if self.length(candidate) <= budget:
                current = candidate
                continue

            if current and self.length(current) < min_size:
                split = self._top_up(current, sentence, join, budget, min_size)
                if split is None:
                    current = candidate
                    continue
                closed, sentence = split
                chunks.append(closed)
                current = ""

            if self.length(sentence) > budget:
                if current:
                    chunks.append(current)
                chunks.append(sentence)
                current = ""
                continue

            if current:
                chunks.append(current)
                current = self._open_next(current, sentence, join, budget)
            else:
                current = sentence
        return current

    def _top_up(
        self,
        current: str,
        sentence: str,
        join: str,
        budget: int,
        min_size: int,
    ) -> tuple[str, str] | None:
        """Move leading words of *sentence* into the undersized *current*.

        Returns ``(closed, rest)``.  The cut is the last word boundary that
        fits the budget and leaves *rest* at least ``min_size`` long, or the
        last one that fits when no cut does both.  ``None`` when not even
        the first word fits.
        """
        words = sentence.split(_SENTENCE_JOIN)
        fitting = balanced = 0
        for cut in range(1, len(words)):
            head = self._append(current, _SENTENCE_JOIN.join(words[:cut]), join)
            if self.length(head) > budget:
                break
            fitting = cut
            if self.length(_SENTENCE_JOIN.join(words[cut:])) >= min_size:
                balanced = cut
        cut = balanced or fitting
        if not cut:
            return None
        return (
            self._append(current, _SENTENCE_JOIN.join(words[:cut]), join),
            _SENTENCE_JOIN.join(words[cut:]),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _append(current: str, unit: str, join: str) -> str:
        return f"{current}{join}{unit}" if current else unit

    def _open_next(self, closed: str, unit: str, join: str, budget: int) -> str:
        """Start a chunk with overlap from *closed*, followed by *unit*."""
        tail = self._overlap_tail(closed)
        if tail:
            candidate = f"{tail}{join}{unit}"
            if self.length(candidate) <= budget:
                return candidate
        return unit

    def _overlap_tail(self, closed: str) -> str:
        """Return whole trailing sentences of the last paragraph within the overlap."""
        overlap = self.chunk_overlap
        if overlap <= 0:
            return ""
        last_paragraph = closed.rsplit(_PARAGRAPH_JOIN, 1)[-1]
        kept: list[str] = []
        size = 0
        for sentence in reversed(split_sentences(last_paragraph)):
            extra = self.length(sentence) + (len(_SENTENCE_JOIN) if kept else 0)
            if size + extra > overlap:
                break
            kept.insert(0, sentence)
            size += extra
        return _SENTENCE_JOIN.join(kept)
