"""Gateway interface between the lifecycle engine and key cryptography."""

from __future__ import annotations

import abc
from typing import Any, Optional

from ..models import KeyPair


class CryptoGateway(metaclass=abc.ABCMeta):
    """Abstract boundary for key generation, encoding and material storage.

    The engine never touches key bytes or files directly; everything that
    depends on a concrete algorithm or storage medium goes through here.
    """

    @abc.abstractmethod
    def generate_key_pair(
        self, algorithm: str, modulus_length: Optional[int] = None
    ) -> KeyPair:
        """Generate a new key pair for ``algorithm``."""
        raise NotImplementedError

    @abc.abstractmethod
    def encode_public_key(self, public_key: Any) -> bytes:
        """Serialize ``public_key`` into its storage format."""
        raise NotImplementedError

    @abc.abstractmethod
    def decode_public_key(self, data: bytes, algorithm: str) -> Any:
        """Load a public key previously produced by :meth:`encode_public_key`."""
        raise NotImplementedError

    @abc.abstractmethod
    def to_discovery_entry(self, public_key: Any, kid: str, algorithm: str) -> dict:
        """Return the JWK representation of ``public_key``."""
        raise NotImplementedError

    @abc.abstractmethod
    def store_material(self, kid: str, data: bytes) -> str:
        """Persist encoded material for ``kid`` and return its reference."""
        raise NotImplementedError

    @abc.abstractmethod
    def read_material(self, ref: str) -> bytes:
        """Read material stored under ``ref``."""
        raise NotImplementedError

    @abc.abstractmethod
    def delete_stored_material(self, ref: str) -> None:
        """Remove material stored under ``ref``."""
        raise NotImplementedError
