"""Abstract base class shared by every chunking strategy."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from chunkwise.models.chunking import SplitterConfig, SplitterType
from chunkwise.utils.tokenizer import TokenCounter

logger = structlog.get_logger(logger_name=__name__)


class BaseSplitter(ABC):
    """Splits text into content chunks within a size budget.

    A splitter measures text with :meth:`length` (characters unless a
    subclass says otherwise).  The optional header is prepended to every
    chunk by the facade, so the space available for content is
    ``chunk_size - length(header)``.  A header that would leave less than
    half of ``chunk_size`` for content is dropped with a warning.

    Parameters
    ----------
    config:
        Fully resolved, immutable splitter configuration.
    header:
        Serialized metadata header, or ``None``.
    token_counter:
        Tokenizer used by token-measured strategies.
    """

    strategy: SplitterType

    def __init__(
        self,
        config: SplitterConfig,
        header: str | None = None,
        token_counter: TokenCounter | None = None,
    ) -> None:
        self._config = config
        self._token_counter = token_counter or TokenCounter()
        self._header = header or None
        if self._header and self.length(self._header) > config.chunk_size / 2:
            logger.warning(
                "chunk_header_omitted",
                strategy=self.strategy.value,
                header_length=self.length(self._header),
                chunk_size=config.chunk_size,
            )
            self._header = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(self, text: str) -> list[str]:
        """Return the content chunks of *text*, left to right.

        Empty or whitespace-only input yields an empty list.
        """
        if not text or not text.strip():
            return []
        return self._split(text)

    def length(self, text: str) -> int:
        """Measure *text* in this strategy's unit."""
        return len(text)

    @property
    def header(self) -> str | None:
        return self._header

    @property
    def config(self) -> SplitterConfig:
        return self._config

    @property
    def content_budget(self) -> int:
        """Space left for content once the header is accounted for."""
        header_length = self.length(self._header) if self._header else 0
        return max(1, self._config.chunk_size - header_length)

    @property
    def chunk_overlap(self) -> int:
        return self.effective_overlap(self.content_budget)

    def effective_overlap(self, budget: int) -> int:
        """Clamp the configured overlap so it stays below *budget*."""
        overlap = self._config.chunk_overlap
        if overlap >= budget:
            return budget // 2
        return overlap

    # ------------------------------------------------------------------
    # Strategy hook
    # ------------------------------------------------------------------

    @abstractmethod
    def _split(self, text: str) -> list[str]:
        """Split non-blank *text*; implemented by each strategy."""
