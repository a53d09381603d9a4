"""Single-separator splitting for plain text, logs and line-oriented data."""

from __future__ import annotations

import re

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.splitters.recursive import RecursiveSplitter

DEFAULT_SEPARATOR = "\n\n"


class CharacterSplitter(RecursiveSplitter):
    """Cuts strictly on one literal separator and merges pieces up to the budget.

    There is no recursion: a piece longer than the budget between two
    separators is kept whole.
    """

    strategy = SplitterType.CHARACTER
    default_keep_separator = False

    @property
    def separator(self) -> str:
        return self._config.separator or DEFAULT_SEPARATOR

    def _split(self, text: str) -> list[str]:
        budget = self.content_budget
        pieces = self._split_on(text, re.escape(self.separator))
        return self._merge(pieces, budget)
