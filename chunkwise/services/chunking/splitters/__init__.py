"""Chunking strategy implementations, keyed by :class:`SplitterType`."""

from chunkwise.models.chunking import SplitterType
from chunkwise.services.chunking.splitters.base import BaseSplitter
from chunkwise.services.chunking.splitters.character import CharacterSplitter
from chunkwise.services.chunking.splitters.code import CodeSplitter
from chunkwise.services.chunking.splitters.markup import HtmlSplitter, LatexSplitter, MarkdownSplitter
from chunkwise.services.chunking.splitters.recursive import RecursiveSplitter
from chunkwise.services.chunking.splitters.semantic import SemanticSplitter
from chunkwise.services.chunking.splitters.token import TokenSplitter

SPLITTER_REGISTRY: dict[SplitterType, type[BaseSplitter]] = {
    SplitterType.RECURSIVE: RecursiveSplitter,
    SplitterType.CHARACTER: CharacterSplitter,
    SplitterType.TOKEN: TokenSplitter,
    SplitterType.MARKDOWN: MarkdownSplitter,
    SplitterType.LATEX: LatexSplitter,
    SplitterType.HTML: HtmlSplitter,
    SplitterType.SEMANTIC: SemanticSplitter,
    SplitterType.CODE: CodeSplitter,
}

__all__ = [
    "BaseSplitter",
    "CharacterSplitter",
    "CodeSplitter",
    "HtmlSplitter",
    "LatexSplitter",
    "MarkdownSplitter",
    "RecursiveSplitter",
    "SPLITTER_REGISTRY",
    "SemanticSplitter",
    "TokenSplitter",
]
