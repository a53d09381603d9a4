"""Unit tests for Settings and the layered YAML config loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from chunkwise.config.loader import _deep_merge, load_config, resolve_settings
from chunkwise.config.settings import Settings
from chunkwise.utils.errors import ConfigurationError


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)
        assert settings.vector_db == "memory"
        assert settings.text_splitter_chunk_size == 1000
        assert settings.text_splitter_chunk_overlap == 20
        assert settings.upsert_max_retries == 3

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("VECTOR_DB", "qdrant")
        monkeypatch.setenv("TEXT_SPLITTER_CHUNK_SIZE", "512")
        settings = Settings(_env_file=None)
        assert settings.vector_db == "qdrant"
        assert settings.text_splitter_chunk_size == 512

    def test_env_file(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("QDRANT_ENDPOINT=http://qdrant:6333\n")
        assert Settings(_env_file=str(env_file)).qdrant_endpoint == "http://qdrant:6333"

    def test_available_embedding_providers(self) -> None:
        assert Settings(_env_file=None, openai_api_key="").get_available_embedding_providers() == [
            "fastembed"
        ]
        assert Settings(_env_file=None, openai_api_key="sk").get_available_embedding_providers() == [
            "openai",
            "fastembed",
        ]


class TestLoadConfig:
    def test_yaml_merged_with_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  name: chunkwise\n"
            "text_splitter:\n  chunk_size: 1000\n  default_strategy: semantic\n"
        )
        settings = Settings(_env_file=None, text_splitter_chunk_size=256, vector_db="chromadb")

        config = load_config(str(path), settings=settings)

        assert config["app"]["name"] == "chunkwise"
        assert config["text_splitter"]["chunk_size"] == 256
        assert config["text_splitter"]["default_strategy"] == "semantic"
        assert config["vector_index"]["backend"] == "chromadb"

    def test_environment_overrides_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("text_splitter:\n  default_strategy: semantic\n  chunk_size: 700\n")
        monkeypatch.setenv("TEXT_SPLITTER_DEFAULT_STRATEGY", "recursive")

        config = load_config(str(path), settings=Settings(_env_file=None))

        assert config["text_splitter"]["default_strategy"] == "recursive"
        assert config["text_splitter"]["chunk_size"] == 700
        assert config["text_splitter"]["chunk_overlap"] == 20

    def test_missing_file_uses_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))
        assert config["vector_index"]["backend"] == "memory"
        assert "name" not in config["app"]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        config = load_config(str(path), settings=Settings(_env_file=None))
        assert config["logging"]["level"] == "INFO"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("text_splitter: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(path), settings=Settings(_env_file=None))

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(str(path), settings=Settings(_env_file=None))

    def test_repository_config_loads(self, project_root: Path) -> None:
        config = load_config(
            str(project_root / "config" / "config.yaml"), settings=Settings(_env_file=None)
        )
        assert config["search"]["top_n"] == 4


class TestDeepMerge:
    def test_nested_merge(self) -> None:
        base = {"a": {"x": 1, "y": 2}, "b": 1}
        _deep_merge(base, {"a": {"y": 3}, "c": 4})
        assert base == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

    def test_scalar_replaces_dict(self) -> None:
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": 5})
        assert base == {"a": 5}


class TestResolveSettings:
    def test_yaml_values_reach_settings(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "text_splitter:\n  default_strategy: semantic\n  chunk_overlap: 40\n"
            "search:\n  strategy: hybrid\n  top_n: 9\n  rerank: false\n"
        )

        settings = resolve_settings(str(path), settings=Settings(_env_file=None))

        assert settings.text_splitter_default_strategy == "semantic"
        assert settings.text_splitter_chunk_overlap == 40
        assert settings.search_strategy == "hybrid"
        assert settings.search_top_n == 9
        assert settings.reranker_enabled is False
        assert settings.text_splitter_chunk_size == 1000

    def test_explicit_settings_win(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("search:\n  top_n: 9\n")

        settings = resolve_settings(str(path), settings=Settings(_env_file=None, search_top_n=2))

        assert settings.search_top_n == 2

    def test_fields_outside_yaml_are_kept(self, tmp_path: Path) -> None:
        settings = resolve_settings(
            str(tmp_path / "absent.yaml"),
            settings=Settings(_env_file=None, storage_dir="/srv/docs", qdrant_api_key="k"),
        )
        assert settings.storage_dir == "/srv/docs"
        assert settings.qdrant_api_key == "k"

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("search:\n  top_n: many\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            resolve_settings(str(path), settings=Settings(_env_file=None))

    def test_repository_config_matches_defaults(self, project_root: Path) -> None:
        settings = resolve_settings(
            str(project_root / "config" / "config.yaml"), settings=Settings(_env_file=None)
        )
        assert settings.text_splitter_default_strategy == "recursive"
        assert settings.search_strategy == "vector"
        assert settings.search_top_n == 4
