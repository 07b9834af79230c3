"""JSON file implementation of the metadata store."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from ..errors import MetadataError, PersistenceError
from ..models import KeyMetadata
from .store import MetadataStore

logger = logging.getLogger(__name__)


class JsonFileMetadataStore(MetadataStore):
    """Persist key metadata as a single JSON document.

    Every save rewrites the whole document. The new content is written to a
    sibling temporary file first and moved over the old one, so a failed
    write leaves the previous document intact.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> KeyMetadata:
        if not self.path.exists():
            logger.info(f"Metadata not found at {self.path}, starting empty")
            return KeyMetadata()

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            metadata = KeyMetadata.model_validate(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            raise MetadataError(f"Invalid metadata file {self.path}: {exc}") from exc
        except OSError as exc:
            raise MetadataError(f"Cannot read metadata file {self.path}: {exc}") from exc

        logger.info(f"Metadata loaded: {len(metadata.keys)} key(s)")
        return metadata

    def save(self, metadata: KeyMetadata) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(metadata.to_document()), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(f"Cannot write metadata file {self.path}: {exc}") from exc
        logger.info("Metadata saved")
