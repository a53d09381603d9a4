"""Token-window splitting; sizes are measured in tokens, not characters."""

from __future__ import annotations

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.splitters.base import BaseSplitter


class TokenSplitter(BaseSplitter):
    """Slides a window of ``chunk_size`` tokens over the text.

    Consecutive windows start ``chunk_size - chunk_overlap`` tokens apart,
    so each shares ``chunk_overlap`` tokens with its predecessor.  Chunks
    are sliced from the source using the tokenizer's character offsets,
    never decoded, so chunk text is always a substring of the input.
    """

    strategy = SplitterType.TOKEN

    def length(self, text: str) -> int:
        return self._token_counter.count(text)

    def _split(self, text: str) -> list[str]:
        offsets = self._token_counter.encode_offsets(text)
        if not offsets:
            return []

        window = self.content_budget
        stride = max(1, window - self.chunk_overlap)
        chunks: list[str] = []
        for start in range(0, len(offsets), stride):
            tokens = offsets[start : start + window]
            chunk = text[tokens[0][0] : tokens[-1][1]].strip()
            if chunk:
                chunks.append(chunk)
            if start + window >= len(offsets):
                break
        return chunks
