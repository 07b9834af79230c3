"""Store abstraction for key metadata persistence."""

from __future__ import annotations

from typing import Protocol

from ..models import KeyMetadata


class MetadataStore(Protocol):
    """Protocol for key metadata persistence backends."""

    def load(self) -> KeyMetadata:
        """Return the persisted collection, empty when nothing was saved yet."""

    def save(self, metadata: KeyMetadata) -> None:
        """Overwrite the persisted collection with ``metadata``."""
