"""Language-aware source code splitting."""

from __future__ import annotations

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.separators import (
    BRACE_LANGUAGES,
    DEFAULT_SEPARATORS,
    separators_for_language,
)
from chunkwise.services.chunking.splitters.recursive import RecursiveSplitter


class CodeSplitter(RecursiveSplitter):
    """Splits on declaration keywords, then closes unbalanced braces.

    Brace balancing counts ``{`` and ``}`` naively, including those inside
    strings and comments.  It is a heuristic to make chunks read as more
    complete, not a parser, and it only appends as many ``}`` as fit in the
    chunk budget.
    """

    strategy = SplitterType.CODE

    @property
    def separators(self) -> tuple[str, ...]:
        if self._config.separators:
            return self._config.separators
        if self._config.language:
            return separators_for_language(self._config.language)
        return DEFAULT_SEPARATORS

    def _split(self, text: str) -> list[str]:
        budget = self.content_budget
        chunks = self._split_recursive(text, self.separators, budget)
        if self._config.language not in BRACE_LANGUAGES:
            return chunks
        return [self._balance_braces(chunk, budget) for chunk in chunks]

    def _balance_braces(self, chunk: str, budget: int) -> str:
        missing = chunk.count("{") - chunk.count("}")
        if missing <= 0:
            return chunk
        room = budget - self.length(chunk) - 1
        if room <= 0:
            return chunk
        return chunk + "\n" + "}" * min(missing, room)
