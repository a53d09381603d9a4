"""Unit tests for the chunkwise exception hierarchy."""

from __future__ import annotations

import pytest

from chunkwise.utils.errors import (
    ChunkwiseError,
    ConfigurationError,
    IndexUnavailableError,
    NamespaceConflictError,
    UpsertError,
    VectorIndexError,
)


class TestErrors:
    def test_str_prefixes_provider(self) -> None:
        assert str(VectorIndexError(message="down", provider_name="qdrant")) == "[qdrant] down"
        assert str(ConfigurationError(message="bad")) == "bad"

    def test_message_and_provider(self) -> None:
        exc = UpsertError(message="gave up", provider_name="memory")
        assert exc.message == "gave up"
        assert exc.provider_name == "memory"

    @pytest.mark.parametrize(
        "cls", [IndexUnavailableError, UpsertError, NamespaceConflictError]
    )
    def test_index_errors_share_base(self, cls) -> None:
        exc = cls()
        assert isinstance(exc, VectorIndexError)
        assert isinstance(exc, ChunkwiseError)
        assert exc.message
