"""Key access interface for token signing and verification services."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .models import SigningKey


@runtime_checkable
class KeyProvider(Protocol):
    """What a token service needs from a key source.

    :class:`~keywarden.engine.KeyLifecycleEngine` satisfies it; token issuers
    and verifiers should depend on this protocol rather than on the engine.
    """

    async def get_signing_key(self) -> SigningKey:
        """Return the active signer, raising ``NoActiveKeyError`` if none."""

    async def get_verification_keys(self) -> dict[str, Any]:
        """Return the published public keys indexed by ``kid``."""
