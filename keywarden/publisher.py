"""Derive the published JSON Web Key Set from key metadata."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .crypto import CryptoGateway
from .errors import CryptoError, UnknownKeyError
from .models import KeyRecord, KeyStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedKeySet:
    """One consistent snapshot of the JWKS and its verification index."""

    keys: tuple[dict, ...] = ()
    index: Mapping[str, Any] = field(default_factory=dict)


class JwksPublisher:
    """Builds the discovery document for every trusted public key.

    Each rebuild produces a fresh :class:`PublishedKeySet` and replaces the
    previous snapshot in a single assignment, so readers always see either
    the old or the new key set, never a mix.
    """

    def __init__(
        self,
        gateway: CryptoGateway,
        algorithm: str,
        publish_revoked: bool = False,
    ) -> None:
        self._gateway = gateway
        self._algorithm = algorithm
        self._publish_revoked = publish_revoked
        self._snapshot = PublishedKeySet()

    def is_published(self, record: KeyRecord) -> bool:
        if record.status is KeyStatus.EXPIRED:
            return False
        if record.status is KeyStatus.REVOKED:
            return self._publish_revoked
        return True

    def rebuild(self, records: Iterable[KeyRecord]) -> PublishedKeySet:
        logger.info("Updating JWKS...")

        keys: list[dict] = []
        index: dict[str, Any] = {}
        for record in records:
            if not self.is_published(record):
                continue
            if not record.key_path:
                logger.warning(f"Key {record.kid} has no stored material, skipping")
                continue
            try:
                data = self._gateway.read_material(record.key_path)
                public_key = self._gateway.decode_public_key(data, self._algorithm)
                jwk = self._gateway.to_discovery_entry(
                    public_key, record.kid, self._algorithm
                )
            except OSError as exc:
                logger.warning(f"Missing public key file for {record.kid}: {exc}")
                continue
            except CryptoError as exc:
                logger.warning(f"Unreadable public key for {record.kid}: {exc}")
                continue
            keys.append(jwk)
            index[record.kid] = public_key

        self._snapshot = PublishedKeySet(keys=tuple(keys), index=index)
        logger.info(f"JWKS: {len(keys)} key(s) loaded")
        return self._snapshot

    @property
    def snapshot(self) -> PublishedKeySet:
        return self._snapshot

    @property
    def kids(self) -> list[str]:
        return [jwk["kid"] for jwk in self._snapshot.keys]

    def document(self) -> dict:
        """Return a copy of the current ``{"keys": [...]}`` document."""
        return {"keys": copy.deepcopy(list(self._snapshot.keys))}

    def to_json(self) -> str:
        return json.dumps(self.document())

    def get_key(self, kid: str) -> Any:
        """Resolve the public key used to verify tokens signed with ``kid``."""
        try:
            return self._snapshot.index[kid]
        except KeyError:
            raise UnknownKeyError(kid) from None
