"""Token counting with a HuggingFace ``tokenizers`` backend.

:class:`TokenCounter` lazily loads a fast tokenizer the first time it is
asked to count or encode.  When the tokenizer cannot be loaded (library
missing, no network for the first download, unknown model id) it falls
back to a fixed estimate of four characters per token, so token-based
splitting and token estimates keep working offline.
"""

from __future__ import annotations

import math

import structlog

logger = structlog.get_logger(logger_name=__name__)

CHARS_PER_TOKEN = 4
DEFAULT_ENCODING = "gpt2"


def estimate_tokens(text: str) -> int:
    """Return ``ceil(len(text) / 4)``, the fallback token estimate."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class TokenCounter:
    """Counts tokens and maps them back to character offsets.

    Parameters
    ----------
    model_name:
        HuggingFace tokenizer id passed to ``Tokenizer.from_pretrained``.
        ``None`` disables the tokenizer and always uses the estimate.
    """

    def __init__(self, model_name: str | None = DEFAULT_ENCODING) -> None:
        self._model_name = model_name
        self._tokenizer = None
        self._load_attempted = model_name is None

    @property
    def uses_estimate(self) -> bool:
        self._ensure_loaded()
        return self._tokenizer is None

    def count(self, text: str) -> int:
        """Return the number of tokens in *text*."""
        if not text:
            return 0
        self._ensure_loaded()
        if self._tokenizer is not None:
            return len(self._tokenizer.encode(text, add_special_tokens=False).ids)
        return estimate_tokens(text)

    def encode_offsets(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` character offsets for each token of *text*.

        With the estimate, every token covers four characters (the last
        one may be shorter).
        """
        if not text:
            return []
        self._ensure_loaded()
        if self._tokenizer is not None:
            encoding = self._tokenizer.encode(text, add_special_tokens=False)
            return [tuple(o) for o in encoding.offsets]
        return [
            (start, min(start + CHARS_PER_TOKEN, len(text)))
            for start in range(0, len(text), CHARS_PER_TOKEN)
        ]

    def _ensure_loaded(self) -> None:
        if self._load_attempted:
            return
        self._load_attempted = True
        try:
            from tokenizers import Tokenizer  # type: ignore[import-untyped]

            self._tokenizer = Tokenizer.from_pretrained(self._model_name)
        except Exception as exc:  # noqa: BLE001
            logger.info(
                "tokenizer_unavailable",
                model=self._model_name,
                error=str(exc),
                msg="Falling back to approximate token counting (4 chars/token).",
            )
            self._tokenizer = None
