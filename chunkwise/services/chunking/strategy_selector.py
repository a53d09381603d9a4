"""Chooses a chunking strategy for a document.

Resolution order: explicit override, then the file-extension table, then
content sniffing, then the configured default.  Selection is a pure
function of its inputs.
"""

from __future__ import annotations

import re
from pathlib import PurePath

from chunkwise.models.chunking import SplitterType, StrategySelection
from chunkwise.utils.errors import ConfigurationError

_MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd", ".mdx")
_LATEX_EXTENSIONS = (".tex", ".latex", ".ltx")
_HTML_EXTENSIONS = (".html", ".htm", ".xhtml", ".xml")

_CODE_EXTENSIONS: dict[str, str] = {
    ".js": "js",
    ".jsx": "js",
    ".ts": "js",
    ".tsx": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".py": "python",
    ".pyw": "python",
    ".pyi": "python",
    ".java": "java",
    ".class": "java",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".c++": "cpp",
    ".hpp": "cpp",
    ".h": "cpp",
    ".hh": "cpp",
    ".hxx": "cpp",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".phtml": "php",
    ".php3": "php",
    ".php4": "php",
    ".php5": "php",
    ".php7": "php",
    ".phps": "php",
    ".rb": "ruby",
    ".rbw": "ruby",
    ".swift": "swift",
    ".scala": "scala",
    ".sc": "scala",
    ".proto": "proto",
    ".sol": "sol",
    ".rst": "rst",
}

_CHARACTER_EXTENSIONS: dict[str, str] = {
    ".txt": "\n\n",
    ".log": "\n",
    ".csv": "\n",
    ".tsv": "\n",
    ".json": "\n",
    ".yml": "\n",
    ".yaml": "\n",
    ".toml": "\n",
    ".ini": "\n",
    ".conf": "\n",
    ".config": "\n",
}

_MARKDOWN_SNIFF = re.compile(r"^(```|~~~|#{1,6}[ \t]+\S)", re.MULTILINE)
_LATEX_SNIFF = re.compile(r"\\documentclass|\\section\{|\\begin\{")
_HTML_SNIFF = re.compile(r"<!doctype html|<html[\s>]", re.IGNORECASE)

# Leading lines are tried in order; comment lines are skipped and the
# first other line either matches a pattern here or ends the search.
_CODE_SNIFF: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^#!.*\bpython"), "python"),
    (re.compile(r"^#!.*\bnode\b"), "js"),
    (re.compile(r"^#!.*\bruby\b"), "ruby"),
    (re.compile(r"^<\?php"), "php"),
    (re.compile(r"^pragma solidity"), "sol"),
    (re.compile(r'^syntax\s*=\s*"proto'), "proto"),
    (re.compile(r"^#include\s*[<\"]"), "cpp"),
    (re.compile(r"^package\s+\w+\s*$"), "go"),
    (re.compile(r"^package\s+[\w.]+;"), "java"),
    (re.compile(r"^(public|private|protected)\s+(final\s+)?class\s"), "java"),
    (re.compile(r"^(fn|use|mod|impl)\s"), "rust"),
    (re.compile(r"^func\s"), "swift"),
    (re.compile(r"^(def|class)\s+\w+.*:\s*$"), "python"),
    (re.compile(r"^(from\s+[\w.]+\s+import|import\s+[\w.]+\s*$)"), "python"),
    (re.compile(r"^(import\s.+\sfrom\s|export\s|function\s|const\s|let\s|var\s|'use strict')"), "js"),
    (re.compile(r"^(require\s|module\s)"), "ruby"),
)
_COMMENT_LINE = re.compile(r"^(#|//|/\*|\*|--)")
_MAX_SNIFF_LINES = 20


class StrategySelector:
    """Resolves the strategy for one document.

    Parameters
    ----------
    default:
        Strategy used when nothing else decides (``recursive`` or
        ``semantic`` profile).
    """

    def __init__(self, default: SplitterType | str = SplitterType.RECURSIVE) -> None:
        self._default = _coerce_strategy(default)

    def select(
        self,
        filename: str | None = None,
        content_sample: str | None = None,
        override: SplitterType | str | None = None,
    ) -> StrategySelection:
        """Return the strategy for a document.

        Parameters
        ----------
        filename:
            File name or path; only its extension is used.
        content_sample:
            Leading text of the document for sniffing.
        override:
            Explicit strategy; wins over everything else.

        Raises
        ------
        ConfigurationError
            If *override* names an unknown strategy.
        """
        if override:
            return StrategySelection(strategy=_coerce_strategy(override), source="override")

        by_extension = self.from_extension(filename)
        if by_extension is not None:
            return by_extension

        if content_sample and content_sample.strip():
            by_content = self.from_content(content_sample)
            if by_content is not None:
                return by_content

        return StrategySelection(strategy=self._default, source="default")

    @staticmethod
    def from_extension(filename: str | None) -> StrategySelection | None:
        """Look the extension of *filename* up in the static table."""
        if not filename or not isinstance(filename, str):
            return None
        extension = PurePath(filename).suffix.lower()
        if not extension:
            return None

        if extension in _MARKDOWN_EXTENSIONS:
            return StrategySelection(strategy=SplitterType.MARKDOWN, source="extension")
        if extension in _LATEX_EXTENSIONS:
            return StrategySelection(strategy=SplitterType.LATEX, source="extension")
        if extension in _HTML_EXTENSIONS:
            return StrategySelection(strategy=SplitterType.HTML, source="extension")
        if extension in _CODE_EXTENSIONS:
            return StrategySelection(
                strategy=SplitterType.CODE,
                source="extension",
                language=_CODE_EXTENSIONS[extension],
                keep_separator=True,
            )
        if extension in _CHARACTER_EXTENSIONS:
            return StrategySelection(
                strategy=SplitterType.CHARACTER,
                source="extension",
                separator=_CHARACTER_EXTENSIONS[extension],
                keep_separator=False,
            )
        return None

    @staticmethod
    def from_content(sample: str) -> StrategySelection | None:
        """Guess a strategy from the leading text of a document."""
        if _LATEX_SNIFF.search(sample):
            return StrategySelection(strategy=SplitterType.LATEX, source="content")
        if _HTML_SNIFF.search(sample):
            return StrategySelection(strategy=SplitterType.HTML, source="content")

        language = _sniff_language(sample)
        if language is not None:
            return StrategySelection(
                strategy=SplitterType.CODE,
                source="content",
                language=language,
                keep_separator=True,
            )

        if _MARKDOWN_SNIFF.search(sample):
            return StrategySelection(strategy=SplitterType.MARKDOWN, source="content")
        if _looks_structured(sample):
            return StrategySelection(strategy=SplitterType.RECURSIVE, source="content")
        return None


def _coerce_strategy(value: SplitterType | str) -> SplitterType:
    try:
        return SplitterType(value)
    except ValueError as exc:
        valid = ", ".join(t.value for t in SplitterType)
        raise ConfigurationError(
            message=f"Unknown splitter type {value!r}. Valid types: {valid}"
        ) from exc


def _sniff_language(sample: str) -> str | None:
    """Return the language of the first non-comment line that identifies one."""
    lines = [line.strip() for line in sample.splitlines() if line.strip()]
    for line in lines[:_MAX_SNIFF_LINES]:
        for pattern, language in _CODE_SNIFF:
            if pattern.match(line):
                return language
        if not _COMMENT_LINE.match(line):
            return None
    return None


def _looks_structured(sample: str) -> bool:
    """Return ``True`` for JSON-like text whose brackets balance."""
    text = sample.strip()
    if not text or (text[0], text[-1]) not in (("{", "}"), ("[", "]")):
        return False
    depth = 0
    for ch in text:
        if ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0
