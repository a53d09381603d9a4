"""Text chunking: strategy selection, splitters and the TextSplitter facade."""

from chunkwise.services.chunking.separators import SUPPORTED_LANGUAGES
from chunkwise.services.chunking.strategy_selector import StrategySelector
from chunkwise.services.chunking.text_splitter import TextSplitter

__all__ = ["SUPPORTED_LANGUAGES", "StrategySelector", "TextSplitter"]
