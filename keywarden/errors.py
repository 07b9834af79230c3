"""Exception hierarchy for keywarden."""

from __future__ import annotations


class KeywardenError(Exception):
    """Base class for all keywarden errors."""


class ConfigurationError(KeywardenError):
    """Invalid configuration; the process must not continue."""


class MetadataError(ConfigurationError):
    """The persisted metadata document is malformed or violates its schema."""


class PersistenceError(KeywardenError):
    """Writing metadata failed; the mutation was not committed."""


class CryptoError(KeywardenError):
    """The crypto gateway could not produce or decode key material."""


class NoActiveKeyError(KeywardenError):
    """No key currently holds the ``active`` status."""


class UnknownKeyError(KeywardenError, LookupError):
    """The requested ``kid`` is not part of the published key set."""

    def __init__(self, kid: str) -> None:
        super().__init__(f"Unknown key id: {kid}")
        self.kid = kid
