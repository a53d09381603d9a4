"""Priority-ordered separator patterns per document format and language.

Every separator is a regular expression without capturing groups.  Lists
run from the coarsest boundary (class / section / heading) down to the
empty pattern, which splits into single characters.
"""

from __future__ import annotations

import re

from chunkwise.utils.errors import ConfigurationError

# Paragraph, line, sentence end, word, character.
DEFAULT_SEPARATORS: tuple[str, ...] = (r"\n\n", r"\n", r"(?<=[.!?])\s+", r" ", "")

_TAIL: tuple[str, ...] = (r"\n\n", r"\n", r" ", "")


def _keywords(*words: str) -> tuple[str, ...]:
    """Build line-leading keyword separators, e.g. ``"\\nclass "``."""
    return tuple(re.escape(f"\n{word} ") for word in words) + _TAIL


_LANGUAGE_SEPARATORS: dict[str, tuple[str, ...]] = {
    "cpp": _keywords("class", "void", "int", "float", "double", "if", "for", "while", "switch", "case"),
    "go": _keywords("func", "var", "const", "type", "if", "for", "switch", "case"),
    "java": _keywords(
        "class", "public", "protected", "private", "static", "if", "for", "while", "switch", "case"
    ),
    "js": _keywords(
        "function", "const", "let", "var", "class", "if", "for", "while", "switch", "case", "default"
    ),
    "php": _keywords("function", "class", "if", "foreach", "while", "do", "switch", "case"),
    "proto": _keywords("message", "service", "enum", "option", "import", "syntax"),
    "python": (r"\nclass ", r"\ndef ", r"\n\tdef ", r"\n    def ") + _TAIL,
    "rst": (r"\n=+\n", r"\n-+\n", r"\n\*+\n", r"\n\n\.\. *\n\n") + _TAIL,
    "ruby": _keywords("def", "class", "if", "unless", "while", "for", "do", "begin", "rescue"),
    "rust": _keywords("fn", "const", "let", "if", "while", "for", "loop", "match"),
    "scala": _keywords("class", "object", "def", "val", "var", "if", "for", "while", "match", "case"),
    "swift": _keywords("func", "class", "struct", "enum", "if", "for", "while", "do", "switch", "case"),
    "sol": _keywords(
        "pragma",
        "using",
        "contract",
        "interface",
        "library",
        "constructor",
        "type",
        "function",
        "event",
        "modifier",
        "error",
        "struct",
        "enum",
        "if",
        "for",
        "while",
        "do while",
        "assembly",
    ),
    "markdown": (
        r"\n#{1,6} ",
        r"```\n",
        r"\n\*\*\*+\n",
        r"\n---+\n",
        r"\n___+\n",
    )
    + _TAIL,
    "latex": (
        r"\n\\chapter\{",
        r"\n\\section\{",
        r"\n\\subsection\{",
        r"\n\\subsubsection\{",
        r"\n\\begin\{enumerate\}",
        r"\n\\begin\{itemize\}",
        r"\n\\begin\{description\}",
        r"\n\\begin\{list\}",
        r"\n\\begin\{quote\}",
        r"\n\\begin\{quotation\}",
        r"\n\\begin\{verse\}",
        r"\n\\begin\{verbatim\}",
        r"\n\\begin\{align\}",
        r"\$\$",
        r"\$",
    )
    + _TAIL,
    "html": (
        r"<body",
        r"<div",
        r"<p",
        r"<br",
        r"<li",
        r"<h1",
        r"<h2",
        r"<h3",
        r"<h4",
        r"<h5",
        r"<h6",
        r"<span",
        r"<table",
        r"<tr",
        r"<td",
        r"<th",
        r"<ul",
        r"<ol",
        r"<header",
        r"<footer",
        r"<nav",
        r"<head",
        r"<style",
        r"<script",
        r"<meta",
        r"<title",
        "",
    ),
}

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "cpp",
    "go",
    "java",
    "js",
    "php",
    "proto",
    "python",
    "rst",
    "ruby",
    "rust",
    "scala",
    "swift",
    "markdown",
    "latex",
    "html",
    "sol",
)

# Languages whose blocks are delimited by braces.
BRACE_LANGUAGES = frozenset({"cpp", "go", "java", "js", "php", "proto", "rust", "scala", "swift", "sol"})


def separators_for_language(language: str) -> tuple[str, ...]:
    """Return the separator patterns for *language*.

    Raises
    ------
    ConfigurationError
        If *language* is not one of :data:`SUPPORTED_LANGUAGES`.
    """
    if language not in _LANGUAGE_SEPARATORS:
        raise ConfigurationError(
            message=(
                f"Language {language} is not supported. "
                f"Supported languages: {', '.join(SUPPORTED_LANGUAGES)}"
            )
        )
    return _LANGUAGE_SEPARATORS[language]
