"""Data models for key metadata and the in-memory signer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, model_validator


class KeyStatus(str, Enum):
    """Lifecycle states of a signing key."""

    ACTIVE = "active"
    DEPRECATED = "deprecated"
    EXPIRED = "expired"
    REVOKED = "revoked"

    @property
    def is_terminal(self) -> bool:
        return self in (KeyStatus.EXPIRED, KeyStatus.REVOKED)


class KeyRecord(BaseModel):
    """Metadata for one generated key pair.

    Transition timestamps are set once, when the transition happens, and are
    never reset. ``key_path`` references the stored public key and is cleared
    only when that material is purged.
    """

    model_config = ConfigDict(populate_by_name=True)

    kid: str
    status: KeyStatus
    created_at: AwareDatetime = Field(alias="createdAt")
    expires_at: AwareDatetime = Field(alias="expiresAt")
    deprecated_at: Optional[AwareDatetime] = Field(default=None, alias="deprecatedAt")
    expired_at: Optional[AwareDatetime] = Field(default=None, alias="expiredAt")
    revoked_at: Optional[AwareDatetime] = Field(default=None, alias="revokedAt")
    removed_at: Optional[AwareDatetime] = Field(default=None, alias="removedAt")
    key_path: Optional[str] = Field(default=None, alias="keyPath")

    @model_validator(mode="after")
    def _check_expiry(self) -> "KeyRecord":
        if self.expires_at < self.created_at:
            raise ValueError("expiresAt must not precede createdAt")
        return self

    def is_expired_at(self, now: datetime) -> bool:
        return self.expires_at <= now

    def deprecate(self, now: datetime) -> None:
        self.status = KeyStatus.DEPRECATED
        self.deprecated_at = now

    def expire(self, now: datetime) -> None:
        self.status = KeyStatus.EXPIRED
        self.expired_at = now

    def revoke(self, now: datetime) -> None:
        self.status = KeyStatus.REVOKED
        self.revoked_at = now

    def mark_removed(self, now: datetime) -> None:
        self.key_path = None
        self.removed_at = now


class KeyMetadata(BaseModel):
    """Every key ever created, in creation order."""

    keys: list[KeyRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_single_active(self) -> "KeyMetadata":
        active = [record.kid for record in self.keys if record.status is KeyStatus.ACTIVE]
        if len(active) > 1:
            raise ValueError(f"more than one active key: {', '.join(active)}")
        return self

    def active(self) -> KeyRecord | None:
        for record in self.keys:
            if record.status is KeyStatus.ACTIVE:
                return record
        return None

    def find(self, kid: str) -> KeyRecord | None:
        for record in self.keys:
            if record.kid == kid:
                return record
        return None

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready persisted representation."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class SigningKey:
    """The private key currently used to sign new tokens."""

    kid: str
    algorithm: str
    private_key: Any


@dataclass(frozen=True)
class KeyPair:
    private_key: Any
    public_key: Any
