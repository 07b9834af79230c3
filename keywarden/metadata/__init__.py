"""Metadata persistence for keywarden."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import KeyManagerConfig, load_config
from ..constants import METADATA_FILE
from .file import JsonFileMetadataStore
from .inmemory import InMemoryMetadataStore
from .store import MetadataStore


def get_metadata_store(config: Optional[KeyManagerConfig] = None) -> MetadataStore:
    """Factory returning the JSON file store inside the keys directory."""

    config = config or load_config()
    return JsonFileMetadataStore(Path(config.keys_directory).resolve() / METADATA_FILE)


__all__ = [
    "MetadataStore",
    "JsonFileMetadataStore",
    "InMemoryMetadataStore",
    "get_metadata_store",
]
