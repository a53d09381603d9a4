"""Structure-aware splitters for markdown, LaTeX and HTML.

Each is a :class:`RecursiveSplitter` whose top-priority separators are the
format's structural boundaries.  The markdown splitter additionally makes
every chunk self-describing by back-filling the heading it sits under.
"""

from __future__ import annotations

import bisect
import re

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.separators import separators_for_language
from chunkwise.services.chunking.splitters.recursive import RecursiveSplitter

_HEADING_RE = re.compile(r"^#{1,6}[ \t]+\S.*$", re.MULTILINE)
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")


class LatexSplitter(RecursiveSplitter):
    strategy = SplitterType.LATEX

    @property
    def separators(self) -> tuple[str, ...]:
        return self._config.separators or separators_for_language("latex")


class HtmlSplitter(RecursiveSplitter):
    strategy = SplitterType.HTML

    @property
    def separators(self) -> tuple[str, ...]:
        return self._config.separators or separators_for_language("html")


class MarkdownSplitter(RecursiveSplitter):
    """Splits on headings, fences and rules; back-fills the enclosing heading.

    Room for the longest heading (capped at half the budget) is reserved
    while splitting, so a chunk with its heading prepended still fits.  A
    heading that does not fit is not back-filled.  Headings inside fenced
    code blocks are ignored.
    """

    strategy = SplitterType.MARKDOWN

    @property
    def separators(self) -> tuple[str, ...]:
        return self._config.separators or separators_for_language("markdown")

    def _split(self, text: str) -> list[str]:
        budget = self.content_budget
        headings = self._headings(text)
        if not headings:
            return self._split_recursive(text, self.separators, budget)

        longest = max(self.length(h) for _, h in headings) + 1
        reserve = min(longest, budget // 2)
        chunks = self._split_recursive(text, self.separators, budget - reserve)

        positions = [pos for pos, _ in headings]
        result: list[str] = []
        cursor = 0
        for chunk in chunks:
            start = text.find(chunk, cursor)
            if start == -1:
                result.append(chunk)
                continue
            cursor = start + 1
            idx = bisect.bisect_right(positions, start) - 1
            if idx < 0:
                result.append(chunk)
                continue
            heading = headings[idx][1]
            if heading in chunk:
                result.append(chunk)
                continue
            filled = f"{heading}\n{chunk}"
            result.append(filled if self.length(filled) <= budget else chunk)
        return result

    @staticmethod
    def _headings(text: str) -> list[tuple[int, str]]:
        """Return ``(offset, heading line)`` for headings outside code fences."""
        fenced: list[tuple[int, int]] = []
        offset = 0
        fence_start: int | None = None
        for line in text.splitlines(keepends=True):
            if _FENCE_RE.match(line):
                if fence_start is None:
                    fence_start = offset
                else:
                    fenced.append((fence_start, offset + len(line)))
                    fence_start = None
            offset += len(line)
        if fence_start is not None:
            fenced.append((fence_start, len(text)))

        headings: list[tuple[int, str]] = []
        for match in _HEADING_RE.finditer(text):
            pos = match.start()
            if any(start <= pos < end for start, end in fenced):
                continue
            headings.append((pos, match.group(0).strip()))
        return headings
