"""Layered configuration: ``config/config.yaml`` under Settings.

Layers, lowest precedence first:

  1. Settings field defaults
  2. config/config.yaml: repository defaults for the splitter, ingestion
     batching, search and the vector index
  3. .env file: local overrides, not committed
  4. Environment variables: deployment overrides

Layers 3 and 4 arrive through :class:`Settings` as explicitly set fields.
:func:`load_config` returns the merged tree; :func:`resolve_settings`
folds it back into a :class:`Settings` for the service factories in
``chunkwise/main.py``.
"""

from pathlib import Path
from typing import Any

import yaml

from chunkwise.config.settings import Settings
from chunkwise.utils.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/config.yaml"

# (section, key) in the YAML tree -> Settings field
_SETTINGS_FIELDS: dict[tuple[str, str], str] = {
    ("app", "env"): "app_env",
    ("vector_index", "backend"): "vector_db",
    ("vector_index", "qdrant_endpoint"): "qdrant_endpoint",
    ("vector_index", "qdrant_timeout"): "qdrant_timeout",
    ("vector_index", "chromadb_persist_dir"): "chromadb_persist_dir",
    ("embedding", "fastembed_model"): "fastembed_model",
    ("embedding", "max_chunk_length"): "embedding_max_chunk_length",
    ("text_splitter", "chunk_size"): "text_splitter_chunk_size",
    ("text_splitter", "chunk_overlap"): "text_splitter_chunk_overlap",
    ("text_splitter", "min_chunk_size"): "text_splitter_min_chunk_size",
    ("text_splitter", "default_strategy"): "text_splitter_default_strategy",
    ("ingestion", "embed_batch_size"): "embed_batch_size",
    ("ingestion", "upsert_batch_size"): "upsert_batch_size",
    ("ingestion", "delete_batch_size"): "delete_batch_size",
    ("ingestion", "upsert_max_retries"): "upsert_max_retries",
    ("search", "similarity_threshold"): "search_similarity_threshold",
    ("search", "top_n"): "search_top_n",
    ("search", "rerank"): "reranker_enabled",
    ("search", "strategy"): "search_strategy",
    ("logging", "level"): "log_level",
}


def load_config(path: str = DEFAULT_CONFIG_PATH, settings: Settings | None = None) -> dict:
    """Return the resolved configuration tree.

    Settings defaults fill keys the YAML file leaves out; fields set from
    the environment, the ``.env`` file or the constructor override the
    file.  A missing file yields the Settings-derived sections alone.

    Raises
    ------
    ConfigurationError
        If the file exists but is not a YAML mapping.
    """
    settings = settings or Settings()
    config = _settings_sections(settings)
    _deep_merge(config, _read_yaml(Path(path)))
    _deep_merge(config, _settings_sections(settings, settings.model_fields_set))
    embedding = config.get("embedding")
    if isinstance(embedding, dict):
        embedding["available_providers"] = settings.get_available_embedding_providers()
    return config


def resolve_settings(path: str = DEFAULT_CONFIG_PATH, settings: Settings | None = None) -> Settings:
    """Return Settings carrying the values of the resolved configuration tree.

    Raises
    ------
    ConfigurationError
        If the file is not a YAML mapping or a value does not validate.
    """
    settings = settings or Settings()
    config = load_config(path, settings=settings)
    values = settings.model_dump()
    for (section, key), field in _SETTINGS_FIELDS.items():
        branch = config.get(section)
        if isinstance(branch, dict) and key in branch:
            values[field] = branch[key]
    try:
        return Settings.model_validate(values)
    except ValueError as exc:
        raise ConfigurationError(message=f"Invalid configuration in {path}: {exc}") from exc


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(message=f"Invalid YAML in {config_path}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(message=f"{config_path} must contain a mapping at the top level")
    return loaded


def _settings_sections(
    settings: Settings, fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """Settings fields keyed by the YAML section they map to.

    With *fields*, only those Settings fields are included.
    """
    sections: dict[str, dict[str, Any]] = {}
    for (section, key), field in _SETTINGS_FIELDS.items():
        if fields is None or field in fields:
            sections.setdefault(section, {})[key] = getattr(settings, field)
    return sections


def _deep_merge(base: dict, overrides: dict) -> None:
    """Merge *overrides* into *base* in place; nested mappings merge key by key."""
    for key, value in overrides.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _deep_merge(current, value)
        else:
            base[key] = value
