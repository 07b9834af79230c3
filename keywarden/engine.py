"""Key lifecycle engine: rotation, revocation and purge of signing keys."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from .config import KeyManagerConfig, validate_config
from .crypto import CryptoGateway, get_crypto_gateway
from .errors import NoActiveKeyError, PersistenceError
from .metadata import MetadataStore, get_metadata_store
from .models import KeyMetadata, KeyRecord, KeyStatus, SigningKey
from .publisher import JwksPublisher
from .scheduler import RotationScheduler

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyLifecycleEngine:
    """Owns key metadata, the published key set and the current signer.

    Every mutating operation runs under one ``asyncio.Lock`` and follows the
    same sequence: mutate a working copy of the metadata, save it, then swap
    it in and rebuild the published key set. A failed save leaves the live
    state untouched.

    Args:
        config: Key management settings. Validated on construction.
        store: Metadata backend, defaults to ``metadata.json`` in the keys
            directory.
        gateway: Crypto gateway, defaults to PEM files in the keys directory.
        publisher: JWKS publisher, built from ``gateway`` when omitted.
        clock: Returns the current aware datetime.
    """

    def __init__(
        self,
        config: Optional[KeyManagerConfig] = None,
        store: Optional[MetadataStore] = None,
        gateway: Optional[CryptoGateway] = None,
        publisher: Optional[JwksPublisher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config or KeyManagerConfig()
        validate_config(self.config)

        self.keys_directory = Path(self.config.keys_directory).resolve()
        self._store = store or get_metadata_store(self.config)
        self._gateway = gateway or get_crypto_gateway(self.config)
        self._publisher = publisher or JwksPublisher(
            self._gateway,
            self.config.algorithm,
            publish_revoked=self.config.publish_revoked_keys,
        )
        self._clock = clock or _utcnow

        self._metadata = KeyMetadata()
        self._signer: SigningKey | None = None
        self._lock = asyncio.Lock()
        self._scheduler = RotationScheduler(self._scheduled_rotation)
        self._running = False

    # ------------------------------------------------------------------
    # Lifecycle
    async def load(self) -> None:
        """Load persisted metadata and publish its keys without rotating."""
        async with self._lock:
            self.keys_directory.mkdir(parents=True, exist_ok=True)
            self._metadata = self._store.load()
            self._publisher.rebuild(self._metadata.keys)

    async def initialize(self) -> None:
        """Load metadata, rotate once and start the rotation schedule."""
        await self.load()
        self._running = True
        try:
            await self.rotate()
        except Exception:
            self._running = False
            raise

    async def shutdown(self) -> None:
        """Stop scheduling rotations; a rotation already running finishes."""
        self._running = False
        self._scheduler.close()
        await self._scheduler.wait_idle()
        logger.info("Key rotation stopped")

    async def __aenter__(self) -> "KeyLifecycleEngine":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Operations
    async def rotate(self) -> KeyRecord:
        """Expire overdue keys, deprecate the active one and generate a new signer."""
        async with self._lock:
            record = await self._rotate(self._working_copy())
        return record.model_copy()

    async def revoke(self, kid: Optional[str] = None) -> KeyRecord | None:
        """Revoke ``kid``, or the active key when no id is given.

        Returns the revoked record, or ``None`` when there was nothing to
        revoke. Revoking the active key triggers a rotation so that a signer
        is always available.
        """
        async with self._lock:
            working = self._working_copy()
            if kid is None:
                target = working.active()
                if target is None:
                    logger.warning("No active key to revoke")
                    return None
            else:
                target = working.find(kid)
                if target is None:
                    logger.warning(f"Key not found: {kid}")
                    return None

            if target.status.is_terminal:
                logger.warning(
                    f"Key {target.kid} is already {target.status.value}, not revoking"
                )
                return None

            was_active = target.status is KeyStatus.ACTIVE
            target.revoke(self._clock())
            logger.info(f"Key revoked: {target.kid}")

            if was_active:
                await self._rotate(working)
            else:
                self._commit(working)
            return target.model_copy()

    async def revoke_all(self) -> list[KeyRecord]:
        """Revoke every non-terminal key, then rotate."""
        async with self._lock:
            working = self._working_copy()
            now = self._clock()
            revoked: list[KeyRecord] = []
            for record in working.keys:
                if not record.status.is_terminal:
                    record.revoke(now)
                    revoked.append(record)
            logger.info(f"Revoked {len(revoked)} key(s)")
            await self._rotate(working)
            return [record.model_copy() for record in revoked]

    async def purge(self) -> list[KeyRecord]:
        """Delete stored material of expired and revoked keys."""
        async with self._lock:
            working = self._working_copy()
            now = self._clock()
            purged = [
                record
                for record in working.keys
                if record.status.is_terminal
                and record.key_path
                and self._remove_material(record, now)
            ]
            if not purged:
                logger.info("Nothing to purge")
                return []
            self._commit(working)
            logger.info(f"Purged {len(purged)} key(s)")
            return [record.model_copy() for record in purged]

    # ------------------------------------------------------------------
    # Accessors
    @property
    def current_signer(self) -> SigningKey:
        active = self._metadata.active()
        if active is None:
            raise NoActiveKeyError("No active key")
        if self._signer is None or self._signer.kid != active.kid:
            raise NoActiveKeyError(f"No private key available for {active.kid}")
        return self._signer

    @property
    def jwks(self) -> dict:
        return self._publisher.document()

    @property
    def publisher(self) -> JwksPublisher:
        return self._publisher

    @property
    def records(self) -> tuple[KeyRecord, ...]:
        return tuple(record.model_copy() for record in self._metadata.keys)

    @property
    def running(self) -> bool:
        return self._running

    def get_verification_key(self, kid: str) -> Any:
        return self._publisher.get_key(kid)

    async def get_signing_key(self) -> SigningKey:
        return self.current_signer

    async def get_verification_keys(self) -> dict[str, Any]:
        return dict(self._publisher.snapshot.index)

    # ------------------------------------------------------------------
    # Internals
    def _working_copy(self) -> KeyMetadata:
        return self._metadata.model_copy(deep=True)

    def _commit(self, working: KeyMetadata) -> None:
        self._store.save(working)
        self._metadata = working
        self._publisher.rebuild(working.keys)

    async def _rotate(self, working: KeyMetadata) -> KeyRecord:
        now = self._clock()
        logger.info("Rotation started...")

        expired: list[str] = []
        for record in working.keys:
            if not record.status.is_terminal and record.is_expired_at(now):
                record.expire(now)
                expired.append(record.kid)
                logger.info(f"Key expired: {record.kid}")

        for record in working.keys:
            if record.status is KeyStatus.ACTIVE:
                record.deprecate(now)
                logger.info(f"Key deprecated: {record.kid}")

        kid = str(uuid.uuid4())
        key_pair = await asyncio.to_thread(
            self._gateway.generate_key_pair,
            self.config.algorithm,
            self.config.effective_modulus_length,
        )
        key_path = self._gateway.store_material(
            kid, self._gateway.encode_public_key(key_pair.public_key)
        )
        logger.info(f"Key generated: {kid}")

        record = KeyRecord(
            kid=kid,
            status=KeyStatus.ACTIVE,
            created_at=now,
            expires_at=now + self.config.expiration_window,
            key_path=key_path,
        )
        working.keys.append(record)

        try:
            self._commit(working)
        except PersistenceError:
            logger.error(f"Rotation aborted, metadata not saved; discarding key {kid}")
            self._discard_material(key_path)
            raise

        self._signer = SigningKey(
            kid=kid, algorithm=self.config.algorithm, private_key=key_pair.private_key
        )
        logger.info("Rotation completed")
        if self.config.auto_purge and expired:
            self._purge_expired(expired, now)
        self._schedule_next()
        return record

    def _purge_expired(self, kids: list[str], now: datetime) -> None:
        # Called only after the rotation itself is committed.
        working = self._working_copy()
        removed = [
            record
            for record in working.keys
            if record.kid in kids
            and record.key_path
            and self._remove_material(record, now)
        ]
        if not removed:
            return
        try:
            self._commit(working)
        except PersistenceError:
            logger.error(
                "Expired key material deleted but metadata not updated; "
                "run purge to record the removal",
                exc_info=True,
            )

    def _remove_material(self, record: KeyRecord, now: datetime) -> bool:
        try:
            self._gateway.delete_stored_material(record.key_path)
        except OSError as exc:
            logger.warning(f"Could not delete material for {record.kid}: {exc}")
            return False
        record.mark_removed(now)
        logger.info(f"Key material removed: {record.kid}")
        return True

    def _discard_material(self, key_path: str) -> None:
        try:
            self._gateway.delete_stored_material(key_path)
        except OSError as exc:
            logger.warning(f"Could not discard uncommitted key file {key_path}: {exc}")

    def _schedule_next(self) -> None:
        if self._running:
            self._scheduler.arm(self.config.rotation_interval)

    async def _scheduled_rotation(self) -> None:
        try:
            await self.rotate()
        except Exception:
            logger.exception("Scheduled key rotation failed")
            self._schedule_next()
