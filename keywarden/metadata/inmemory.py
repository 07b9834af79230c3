"""In-memory implementation of the metadata store."""

from __future__ import annotations

from ..models import KeyMetadata
from .store import MetadataStore


class InMemoryMetadataStore(MetadataStore):
    """Store key metadata in local memory.

    Useful for tests or dry runs. Data is not persisted across process
    restarts.
    """

    def __init__(self, metadata: KeyMetadata | None = None) -> None:
        self._metadata = metadata.model_copy(deep=True) if metadata else None
        self.save_count = 0

    def load(self) -> KeyMetadata:
        if self._metadata is None:
            return KeyMetadata()
        return self._metadata.model_copy(deep=True)

    def save(self, metadata: KeyMetadata) -> None:
        self._metadata = metadata.model_copy(deep=True)
        self.save_count += 1
