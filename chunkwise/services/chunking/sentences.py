"""Paragraph and abbreviation-aware sentence boundary detection."""

from __future__ import annotations

import re

# A period after one of these does not end a sentence.
_ABBREVIATIONS = frozenset(
    "Dr Mr Mrs Ms Prof Jr Sr St Mt Inc Ltd Co Corp vs etc al approx "
    "e.g i.e cf Fig Figs Eq Eqs Sec Ch Vol No pp Ref Tab App Jan Feb Mar "
    "Apr Jun Jul Aug Sep Sept Oct Nov Dec".split()
)

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(re.escape(a) for a in sorted(_ABBREVIATIONS, key=len, reverse=True)) + r")\."
)
_SENTENCE_END_RE = re.compile(r"[.!?](?:\s|$)")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> list[str]:
    """Split *text* on blank lines, discarding blanks."""
    parts = _PARAGRAPH_RE.split(text)
    return [p.strip() for p in parts if p.strip()]


def split_sentences(text: str) -> list[str]:
    """Split *text* at sentence boundaries while respecting abbreviations.

    Handles ``.``, ``!``, ``?`` followed by whitespace or end-of-string.
    Periods after known abbreviations are masked with ``\\x00`` first (same
    length, so match offsets still index the original text).
    """
    masked = _ABBREVIATION_RE.sub(lambda m: m.group(1) + "\x00", text)

    sentences: list[str] = []
    last = 0
    for match in _SENTENCE_END_RE.finditer(masked):
        end = match.end()
        sentence = text[last:end].strip()
        if sentence:
            sentences.append(sentence)
        last = end

    remainder = text[last:].strip()
    if remainder:
        sentences.append(remainder)

    return sentences
